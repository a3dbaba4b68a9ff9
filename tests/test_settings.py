import pytest
from pydantic import ValidationError

from taximeter.settings import APISettings, FilterSettings, MeterSettings, Settings, get_settings


@pytest.mark.unit
class TestMeterSettings:
    def test_defaults(self):
        settings = MeterSettings()
        assert settings.log_level == "INFO"
        assert settings.tick_interval_seconds == 1.0
        assert settings.snapshot_interval_seconds == 2.0
        assert settings.resume_active_ride is True

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("METER_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("METER_SNAPSHOT_INTERVAL_SECONDS", "5")
        monkeypatch.setenv("METER_RESUME_ACTIVE_RIDE", "false")

        settings = MeterSettings()
        assert settings.log_level == "DEBUG"
        assert settings.snapshot_interval_seconds == 5.0
        assert settings.resume_active_ride is False

    def test_validation(self):
        with pytest.raises(ValidationError):
            MeterSettings(tick_interval_seconds=0)

        with pytest.raises(ValidationError):
            MeterSettings(snapshot_interval_seconds=301)

        with pytest.raises(ValidationError):
            MeterSettings(log_format="xml")


@pytest.mark.unit
class TestFilterSettings:
    def test_defaults(self):
        settings = FilterSettings()
        assert settings.max_accuracy_m == 50.0
        assert settings.max_speed_kmh == 150.0
        assert settings.min_moving_speed_kmh == 5.0

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("FILTER_MAX_ACCURACY_M", "100")
        assert FilterSettings().max_accuracy_m == 100.0

    def test_speed_window_must_be_ordered(self):
        with pytest.raises(ValidationError, match="must be below"):
            FilterSettings(min_moving_speed_kmh=200.0)


@pytest.mark.unit
class TestAPISettings:
    def test_key_from_env(self):
        # Set by tests/conftest.py
        assert APISettings().key == "test-api-key"

    def test_missing_key_rejected(self, monkeypatch):
        monkeypatch.delenv("API_KEY", raising=False)
        with pytest.raises(ValidationError, match="API_KEY"):
            APISettings()

    def test_port_range(self):
        with pytest.raises(ValidationError):
            APISettings(port=70000)


@pytest.mark.unit
class TestSettings:
    def test_get_settings_aggregates_sections(self):
        settings = get_settings()
        assert isinstance(settings, Settings)
        assert settings.meter.db_path.endswith("taximeter.db")
        assert settings.filter.max_speed_kmh == 150.0
        assert settings.api.port == 8000
