"""
Streak Tracker

A state machine over the chronological sequence of daily evaluations.

Rules:
- under_budget:    a day counts iff something was logged and its status
                   is 'under' or 'near'
- logged_expenses: a day counts iff at least one expense was logged

A day with nothing logged is "no data" and breaks BOTH rules, since both
require a daily check-in. A calendar gap between two evaluated days is
treated the same way.

Transitions per day:
- satisfied: current_streak += 1, longest_streak = max(longest, current)
- violated:  current_streak = 0
- always:    last_streak_date = the evaluated day

DESIGN DECISION: The streak is re-derived from the full history on demand
(recompute_streak). StreakTracker.advance exists for incremental use and
yields exactly the same counters.
"""

from datetime import timedelta
from typing import Iterable, Optional

from expense_tracker.config import get_settings
from expense_tracker.models.tracker import (
    BudgetStatus,
    DailyExpenses,
    DailyStreak,
    StreakState,
    StreakType,
)
from expense_tracker.validation import InvalidDateError, InvalidInputError


COMPLIANT_STATUSES = frozenset({BudgetStatus.UNDER, BudgetStatus.NEAR})


def day_satisfies(day: DailyExpenses, rule: StreakType) -> bool:
    """Does this day extend a streak under the given rule?"""
    if not day.has_data:
        return False
    if rule == StreakType.LOGGED_EXPENSES:
        return True
    return day.budget_status in COMPLIANT_STATUSES


def default_streak_type() -> StreakType:
    return StreakType(get_settings().analytics.default_streak_type)


class StreakTracker:
    """
    Incrementally maintained streak counters.

    Usage:
        tracker = StreakTracker(StreakType.UNDER_BUDGET)
        for day in history:
            tracker.advance(day)
        tracker.streak.current_streak
    """

    def __init__(
        self,
        rule: Optional[StreakType] = None,
        streak: Optional[DailyStreak] = None,
    ):
        rule = rule or (streak.streak_type if streak else default_streak_type())
        if streak is not None and streak.streak_type != rule:
            raise InvalidInputError(
                f"Cannot resume a {streak.streak_type.value} streak "
                f"under the {rule.value} rule",
                field="rule",
                value=rule.value,
            )
        self._rule = rule
        self._streak = streak or DailyStreak(streak_type=rule)

    @property
    def rule(self) -> StreakType:
        return self._rule

    @property
    def streak(self) -> DailyStreak:
        return self._streak

    @property
    def state(self) -> StreakState:
        if self._streak.current_streak > 0:
            return StreakState.ACTIVE
        if self._streak.longest_streak > 0:
            return StreakState.BROKEN
        return StreakState.NO_STREAK

    def advance(self, day: DailyExpenses) -> DailyStreak:
        """
        Evaluate the next day.

        Raises:
            InvalidDateError: If the day is not after the last evaluated day
        """
        last = self._streak.last_streak_date
        if last is not None and day.date <= last:
            raise InvalidDateError(
                f"Streak history must be strictly increasing: {day.date} "
                f"follows {last}",
                field="history",
                value=day.date,
            )

        current = self._streak.current_streak
        longest = self._streak.longest_streak

        # Missing days in between are no-data days
        if last is not None and day.date - last > timedelta(days=1):
            current = 0

        if day_satisfies(day, self._rule):
            current += 1
            longest = max(longest, current)
        else:
            current = 0

        self._streak = DailyStreak(
            current_streak=current,
            longest_streak=longest,
            last_streak_date=day.date,
            streak_type=self._rule,
        )
        return self._streak


def recompute_streak(
    history: Iterable[DailyExpenses],
    rule: Optional[StreakType] = None,
) -> DailyStreak:
    """
    Derive the streak from scratch, oldest day to newest, in one pass.

    Unsorted history is sorted first; two evaluations of the same day
    raise InvalidDateError.
    """
    tracker = StreakTracker(rule)
    for day in sorted(history, key=lambda d: d.date):
        tracker.advance(day)
    return tracker.streak
