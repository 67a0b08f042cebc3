"""
Main Orchestrator for the Expense Tracker

This module ties together all the components and defines the
end-to-end flows for:
1. Editing the log (raw record -> validate -> store -> audit)
2. Analytics (load log and profile -> compute snapshot -> store unlocks)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing enters storage without passing the validators
- The analytics core only ever sees validated, immutable snapshots
- Every write is audited

A snapshot is computed completely before it replaces the cached one; a
failure halfway leaves the previous snapshot in place.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional, Union
from uuid import UUID

import structlog
from pydantic import BaseModel, ConfigDict, Field
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from expense_tracker.analytics import (
    analyze_finances,
    build_achievement_state,
    build_daily_history,
    calendar_days,
    compute_summary,
    daily_progress,
    evaluate_day,
    monthly_analysis,
    recompute_achievements,
    tracked_range,
    weekly_analysis,
)
from expense_tracker.analytics.streaks import StreakTracker
from expense_tracker.audit import AuditLogger, configure_logging, create_correlation_id
from expense_tracker.config import get_settings
from expense_tracker.models.expense import Expense, ExpenseSummary, utc_now
from expense_tracker.models.insights import FinancialInsight
from expense_tracker.models.profile import UserProfile, create_default_profile
from expense_tracker.models.tracker import (
    Achievement,
    CalendarDay,
    DailyExpenses,
    DailyProgress,
    DailyStreak,
    MonthlyAnalysis,
    StreakState,
    WeeklyAnalysis,
)
from expense_tracker.services.storage import (
    ExpenseStorageInterface,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueAuditStorage,
    KeyValueExpenseStorage,
    KeyValueStoreInterface,
    NotFoundError,
    StorageUnavailableError,
)
from expense_tracker.validation import (
    ExpenseValidator,
    InvalidInputError,
    ProfileValidator,
    parse_day,
)


logger = structlog.get_logger(__name__)


class AnalyticsSnapshot(BaseModel):
    """
    Every derived view of one expense log at one reference date.

    Views that need a budget (daily status, streak, weekly/monthly/calendar,
    achievements) are empty until a profile exists.
    """
    model_config = ConfigDict(frozen=True)

    reference_date: date
    computed_at: datetime = Field(default_factory=utc_now)
    expense_count: int = Field(..., ge=0)
    has_profile: bool

    summary: ExpenseSummary
    today: Optional[DailyExpenses] = None
    progress: Optional[DailyProgress] = None
    history: list[DailyExpenses] = Field(default_factory=list)
    streak: DailyStreak = Field(default_factory=DailyStreak)
    streak_state: StreakState = StreakState.NO_STREAK
    achievements: list[Achievement] = Field(default_factory=list)
    newly_unlocked: list[str] = Field(default_factory=list)
    weekly: Optional[WeeklyAnalysis] = None
    monthly: Optional[MonthlyAnalysis] = None
    calendar: list[CalendarDay] = Field(default_factory=list)
    insights: FinancialInsight


class ExpenseTrackerService:
    """
    Facade over storage, validation, audit and the analytics core.

    Flow of a recomputation:
    1. Load expenses, profile and stored achievements (retried)
    2. Evaluate days, streak, achievements and insights
    3. Persist achievement progress, audit new unlocks
    4. Swap in the new snapshot
    """

    def __init__(
        self,
        storage: ExpenseStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        expense_validator: Optional[ExpenseValidator] = None,
        profile_validator: Optional[ProfileValidator] = None,
        retry_attempts: Optional[int] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self._expense_validator = expense_validator or ExpenseValidator()
        self._profile_validator = profile_validator or ProfileValidator()
        self._retry_attempts = retry_attempts or get_settings().storage.retry_attempts
        self._snapshot: Optional[AnalyticsSnapshot] = None

    @property
    def snapshot(self) -> Optional[AnalyticsSnapshot]:
        """The last snapshot computed, if any."""
        return self._snapshot

    # =========================================================================
    # EXPENSE LOG
    # =========================================================================

    async def list_expenses(self) -> list[Expense]:
        return await self._storage.list_expenses()

    async def add_expense(
        self,
        raw: Union[dict, Expense],
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Expense, list[str]]:
        """
        Validate and store a new expense.

        Returns:
            (expense, warnings) - warnings are non-blocking hints for the user

        Raises:
            InvalidInputError: If the record is rejected
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            expense = self._expense_validator.validate(raw)
        except InvalidInputError as e:
            await self._audit_logger.log_validation_failed(
                entity_type="expense",
                error=e,
                correlation_id=correlation_id,
            )
            raise

        await self._storage.add_expense(expense)
        await self._audit_logger.log_expense_added(expense, correlation_id)

        warnings = self._expense_validator.semantic_warnings(
            expense, today or date.today()
        )
        if warnings:
            logger.info("expense_warnings", expense_id=expense.id, warnings=warnings)
        return expense, warnings

    async def update_expense(
        self,
        expense_id: str,
        changes: dict,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """
        Apply an edit to a stored expense.

        Raises:
            NotFoundError: If the expense doesn't exist
            InvalidInputError: If the edited record is rejected
        """
        correlation_id = correlation_id or create_correlation_id()

        existing = await self._storage.get_expense(expense_id)
        if existing is None:
            raise NotFoundError(f"Expense not found: {expense_id}")

        try:
            updated = self._expense_validator.validate_changes(existing, changes)
        except InvalidInputError as e:
            await self._audit_logger.log_validation_failed(
                entity_type="expense",
                error=e,
                correlation_id=correlation_id,
            )
            raise

        await self._storage.update_expense(updated)
        await self._audit_logger.log_expense_updated(updated, list(changes), correlation_id)
        return updated

    async def delete_expense(
        self,
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        correlation_id = correlation_id or create_correlation_id()
        await self._storage.delete_expense(expense_id)
        await self._audit_logger.log_expense_deleted(expense_id, correlation_id)
        return True

    async def clear_expenses(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> int:
        correlation_id = correlation_id or create_correlation_id()
        removed = await self._storage.clear_expenses()
        await self._audit_logger.log_expenses_cleared(removed, correlation_id)
        return removed

    # =========================================================================
    # PROFILE
    # =========================================================================

    async def get_profile(self) -> Optional[UserProfile]:
        return await self._storage.get_profile()

    async def save_profile(
        self,
        raw: Union[dict, UserProfile],
        correlation_id: Optional[UUID] = None,
    ) -> UserProfile:
        """
        Validate and store the profile.

        Raises:
            InvalidProfileError: Negative limits or budgets, missing fields
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            profile = self._profile_validator.validate(raw)
        except InvalidInputError as e:
            await self._audit_logger.log_validation_failed(
                entity_type="profile",
                error=e,
                correlation_id=correlation_id,
            )
            raise

        profile = profile.model_copy(update={"updated_at": utc_now()})
        await self._storage.save_profile(profile)
        await self._audit_logger.log_profile_saved(profile, correlation_id)
        return profile

    async def onboard(
        self,
        monthly_income: Decimal,
        currency: str = "USD",
        language: str = "en",
        correlation_id: Optional[UUID] = None,
    ) -> UserProfile:
        """Create and store the default profile proposed during onboarding."""
        profile = create_default_profile(
            monthly_income=monthly_income,
            currency=currency,
            language=language,
        )
        return await self.save_profile(profile, correlation_id=correlation_id)

    # =========================================================================
    # ANALYTICS
    # =========================================================================

    async def _load_state(
        self,
    ) -> tuple[list[Expense], Optional[UserProfile], list[Achievement]]:
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(StorageUnavailableError),
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
            reraise=True,
        ):
            with attempt:
                expenses = await self._storage.list_expenses()
                profile = await self._storage.get_profile()
                achievements = await self._storage.get_achievements()
        return expenses, profile, achievements

    async def compute_snapshot(
        self,
        reference_date: Union[date, str, None] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AnalyticsSnapshot:
        """
        Recompute every derived view as of `reference_date` (default today).

        Returns:
            The new snapshot, also available as `snapshot` afterwards
        """
        correlation_id = correlation_id or create_correlation_id()
        reference = parse_day(reference_date or date.today(), field="reference_date")

        try:
            expenses, profile, stored_achievements = await self._load_state()
        except StorageUnavailableError as e:
            await self._audit_logger.log_storage_error(
                operation="compute_snapshot",
                error=e,
                correlation_id=correlation_id,
            )
            raise

        try:
            if profile is not None:
                profile = self._profile_validator.validate(profile)
            snapshot = build_snapshot(expenses, profile, stored_achievements, reference)
        except Exception as e:
            await self._audit_logger.log_error(
                e,
                details={"reference_date": reference.isoformat()},
                correlation_id=correlation_id,
            )
            raise

        if profile is not None:
            await self._storage.save_achievements(snapshot.achievements)
            for achievement in snapshot.achievements:
                if achievement.id in snapshot.newly_unlocked:
                    await self._audit_logger.log_achievement_unlocked(achievement, correlation_id)

        await self._audit_logger.log_analytics_recomputed(
            reference_date=reference,
            expense_count=snapshot.expense_count,
            health_score=snapshot.insights.health.score,
            correlation_id=correlation_id,
        )

        self._snapshot = snapshot
        return snapshot


def streak_history(
    history: list[DailyExpenses],
    reference_date: date,
) -> list[DailyExpenses]:
    """
    The days that count towards the streak.

    The reference day is still in progress: it only counts once something
    has been logged on it, so an empty "today" never breaks the streak.
    """
    if history and history[-1].date == reference_date and not history[-1].has_data:
        return history[:-1]
    return history


def build_snapshot(
    expenses: list[Expense],
    profile: Optional[UserProfile],
    stored_achievements: list[Achievement],
    reference_date: date,
) -> AnalyticsSnapshot:
    """Pure snapshot computation over already loaded state."""
    summary = compute_summary(expenses, reference_date)

    if profile is None:
        return AnalyticsSnapshot(
            reference_date=reference_date,
            expense_count=len(expenses),
            has_profile=False,
            summary=summary,
            achievements=stored_achievements,
            insights=analyze_finances(expenses, [], DailyStreak(), reference_date),
        )

    tracked = tracked_range(expenses, reference_date)
    history = build_daily_history(expenses, profile, *tracked) if tracked else []
    tracker = StreakTracker()
    for day in streak_history(history, reference_date):
        tracker.advance(day)
    streak = tracker.streak

    result = recompute_achievements(
        build_achievement_state(expenses, profile, streak, reference_date),
        previous=stored_achievements,
    )

    today = evaluate_day(
        reference_date,
        profile,
        [e for e in expenses if e.date == reference_date],
    )
    week_start = reference_date - timedelta(days=reference_date.weekday())

    return AnalyticsSnapshot(
        reference_date=reference_date,
        expense_count=len(expenses),
        has_profile=True,
        summary=summary,
        today=today,
        progress=daily_progress(expenses, profile, reference_date),
        history=history,
        streak=streak,
        streak_state=tracker.state,
        achievements=result.achievements,
        newly_unlocked=result.newly_unlocked,
        weekly=weekly_analysis(expenses, profile, week_start),
        monthly=monthly_analysis(
            expenses, profile, reference_date.year, reference_date.month
        ),
        calendar=calendar_days(
            expenses, profile, reference_date.year, reference_date.month, reference_date
        ),
        insights=analyze_finances(expenses, history, streak, reference_date),
    )


def create_key_value_store() -> KeyValueStoreInterface:
    """The key-value backend selected in settings."""
    settings = get_settings().storage
    if settings.backend == "json":
        return JsonFileKeyValueStore(settings.data_path)
    return InMemoryKeyValueStore()


def create_app_components(
    store: Optional[KeyValueStoreInterface] = None,
    use_audit_storage: bool = True,
) -> tuple[ExpenseTrackerService, KeyValueExpenseStorage, AuditLogger]:
    """
    Factory function to create all application components.

    Args:
        store: Key-value backend. Defaults to the one selected in settings.
        use_audit_storage: Whether audit events are persisted.
                    Set to False to log locally only.

    Returns:
        (service, expense_storage, audit_logger)
    """
    configure_logging(get_settings().app.log_level)
    store = store or create_key_value_store()

    expense_storage = KeyValueExpenseStorage(store)
    audit_logger = AuditLogger(KeyValueAuditStorage(store) if use_audit_storage else None)
    service = ExpenseTrackerService(
        storage=expense_storage,
        audit_logger=audit_logger,
    )

    logger.info(
        "app_components_created",
        backend=type(store).__name__,
        audit_storage=use_audit_storage,
    )
    return service, expense_storage, audit_logger
