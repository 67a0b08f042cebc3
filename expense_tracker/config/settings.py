"""
Configuration Management for Expense Tracker

Settings are read from the environment (prefixed per group) and an
optional .env file through pydantic-settings.

Every policy constant of the analytics engine lives here
(thresholds, windows, health weights). The analytics functions take these
values as parameters, so tests can pin them while the application reads
them from the environment.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AnalyticsSettings(BaseSettings):
    """Tunable policies of the budget analytics engine."""

    model_config = SettingsConfigDict(
        env_prefix="EXPENSE_TRACKER_ANALYTICS_",
        extra="ignore"
    )

    # Daily budget evaluation
    near_budget_threshold: float = Field(
        default=0.90,
        gt=0.0,
        le=1.0,
        description="Share of the daily limit at which a day becomes 'near'"
    )

    # Trends and duplicates
    duplicate_window_days: int = Field(
        default=3,
        ge=0,
        le=31,
        description="Maximum day gap between two probable duplicates"
    )
    trend_noise_threshold: float = Field(
        default=0.05,
        ge=0.0,
        le=1.0,
        description="Month-over-month relative change treated as noise"
    )
    trend_months: int = Field(
        default=3,
        ge=3,
        le=24,
        description="Number of months compared for category trends"
    )

    # Projections
    projection_months: int = Field(
        default=3,
        ge=1,
        le=24,
        description="Default number of trailing months a projection averages"
    )
    projection_max_confidence: int = Field(
        default=85,
        ge=0,
        le=100,
    )
    projection_min_confidence: int = Field(
        default=30,
        ge=0,
        le=100,
    )

    # Achievements
    category_window_days: int = Field(
        default=30,
        ge=1,
        le=365,
        description="Rolling window for category compliance achievements"
    )

    # Alerts
    high_spending_ratio: float = Field(
        default=1.3,
        gt=1.0,
        description="Current month vs monthly average that raises a high alert"
    )
    category_spike_ratio: float = Field(
        default=1.5,
        gt=1.0,
        description="Current category total vs its average expense amount"
    )

    # Financial health
    insufficient_data_score: int = Field(
        default=50,
        ge=0,
        le=100,
        description="Health score reported when no day has been tracked yet"
    )
    health_weight_adherence: int = Field(default=50, ge=0, le=100)
    health_weight_streak: int = Field(default=20, ge=0, le=100)
    health_weight_trend: int = Field(default=15, ge=0, le=100)
    health_weight_alerts: int = Field(default=15, ge=0, le=100)

    default_streak_type: str = Field(
        default="under_budget",
        pattern="^(under_budget|logged_expenses)$",
    )

    @model_validator(mode='after')
    def validate_health_weights(self) -> 'AnalyticsSettings':
        """Health weights must add up to the full score range."""
        total = (
            self.health_weight_adherence
            + self.health_weight_streak
            + self.health_weight_trend
            + self.health_weight_alerts
        )
        if total != 100:
            raise ValueError(f"Health weights must sum to 100, got {total}")
        if self.projection_min_confidence > self.projection_max_confidence:
            raise ValueError("Projection min confidence exceeds max confidence")
        return self


class StorageSettings(BaseSettings):
    """Key-value persistence configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EXPENSE_TRACKER_STORAGE_",
        extra="ignore"
    )

    backend: str = Field(
        default="memory",
        pattern="^(memory|json)$",
        description="Which key-value backend to use"
    )
    data_path: str = Field(
        default="expense_tracker_data.json",
        description="Path of the JSON file used by the 'json' backend"
    )
    retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for storage reads and writes before giving up"
    )

    @field_validator('data_path')
    @classmethod
    def validate_data_path(cls, v: str) -> str:
        """Warn if the parent directory is missing (it may be created later)."""
        parent = Path(v).expanduser().parent
        if not parent.exists():
            import warnings
            warnings.warn(
                f"Data directory {parent} does not exist yet. "
                "It will be created on first write."
            )
        return v


class AppSettings(BaseSettings):
    """Process-wide knobs: environment, log level and input sanity limits."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Deployment name, e.g. development or production"
    )
    debug_mode: bool = Field(
        default=False,
        description="Verbose output for local runs"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )
    max_expense_amount: float = Field(
        default=1_000_000.0,
        gt=0,
        description="Maximum reasonable single expense (for sanity warnings)"
    )
    future_date_tolerance_days: int = Field(
        default=1,
        ge=0,
        description="How many days in the future an expense date can be"
    )


class Settings(BaseSettings):
    """Entry point for the three settings groups, each read on access."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def analytics(self) -> AnalyticsSettings:
        return AnalyticsSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Shared Settings instance.

    Tests that change the environment clear the cache with
    get_settings.cache_clear().
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Load every settings group and report which ones fail validation.

    Returns a dict of {setting_name: is_valid}, with an extra
    "<name>_error" entry describing each failure.
    """
    results = {}
    settings = get_settings()

    for name in ("analytics", "storage", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
