"""Tests for configuration settings."""
import pytest

from wordladder.config import (
    DatabaseSettings,
    MonitoringSettings,
    SchedulingSettings,
    Settings,
    settings,
)


def test_settings_defaults():
    """Test default settings values."""
    assert settings.database.url == "sqlite://"
    assert settings.scheduling.default_timezone == "UTC"
    assert settings.scheduling.feedback_delay_seconds == 1.5
    assert settings.scheduling.shuffle_options is True
    assert settings.monitoring.enabled is False
    assert settings.monitoring.port == 9090


def test_settings_validate_ok():
    Settings().validate()


def test_unknown_timezone_is_rejected():
    test_settings = Settings(scheduling=SchedulingSettings(default_timezone="Mars/Olympus_Mons"))
    with pytest.raises(ValueError, match="DEFAULT_TIMEZONE"):
        test_settings.validate()


def test_negative_feedback_delay_is_rejected():
    test_settings = Settings(scheduling=SchedulingSettings(feedback_delay_seconds=-1))
    with pytest.raises(ValueError, match="FEEDBACK_DELAY_SECONDS"):
        test_settings.validate()


def test_missing_database_url_is_rejected():
    with pytest.raises(ValueError, match="DATABASE_URL"):
        Settings(database=DatabaseSettings(url="")).validate()


def test_metrics_port_range():
    with pytest.raises(ValueError, match="METRICS_PORT"):
        Settings(monitoring=MonitoringSettings(port=70000)).validate()


if __name__ == "__main__":
    pytest.main([__file__])
