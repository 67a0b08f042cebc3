"""
Tests for configuration loading.
"""

import pytest
from pydantic import ValidationError

from expense_tracker.config import (
    AnalyticsSettings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)
from expense_tracker.orchestrator import create_key_value_store
from expense_tracker.services.storage import InMemoryKeyValueStore, JsonFileKeyValueStore


class TestAnalyticsSettings:
    """Tests for the analytics policy constants."""

    def test_defaults(self):
        """Test the documented defaults."""
        settings = AnalyticsSettings()
        assert settings.near_budget_threshold == 0.90
        assert settings.duplicate_window_days == 3
        assert settings.insufficient_data_score == 50

    def test_environment_override(self, monkeypatch):
        """Test that policies are read from the environment."""
        monkeypatch.setenv("EXPENSE_TRACKER_ANALYTICS_NEAR_BUDGET_THRESHOLD", "0.8")
        assert get_settings().analytics.near_budget_threshold == 0.8

    def test_health_weights_must_sum_to_100(self):
        """Test that inconsistent weights are rejected."""
        with pytest.raises(ValidationError):
            AnalyticsSettings(health_weight_trend=20)


class TestStorageSettings:
    """Tests for backend selection."""

    def test_unknown_backend_rejected(self):
        """Test that only the supported backends are accepted."""
        with pytest.raises(ValidationError):
            StorageSettings(backend="sheets")

    def test_backend_selection(self, monkeypatch, tmp_path):
        """Test that the configured backend is built."""
        assert isinstance(create_key_value_store(), InMemoryKeyValueStore)

        monkeypatch.setenv("EXPENSE_TRACKER_STORAGE_BACKEND", "json")
        monkeypatch.setenv("EXPENSE_TRACKER_STORAGE_DATA_PATH", str(tmp_path / "data.json"))
        store = create_key_value_store()
        assert isinstance(store, JsonFileKeyValueStore)
        assert store.path == tmp_path / "data.json"


class TestValidateAllSettings:
    """Tests for validate_all_settings."""

    def test_all_valid(self):
        """Test the report for the defaults."""
        assert validate_all_settings() == {"analytics": True, "storage": True, "app": True}

    def test_reports_invalid_section(self, monkeypatch):
        """Test that a broken section is reported, not raised."""
        monkeypatch.setenv("EXPENSE_TRACKER_ANALYTICS_HEALTH_WEIGHT_TREND", "40")
        results = validate_all_settings()
        assert results["analytics"] is False
        assert "analytics_error" in results
        assert results["storage"] is True
