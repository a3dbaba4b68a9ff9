from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class MeterSettings(BaseSettings):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["text", "json"] = "text"
    db_path: str = Field(default="./db/taximeter.db")

    tick_interval_seconds: float = Field(
        default=1.0,
        gt=0.0,
        le=60.0,
        description="Wall-clock seconds between meter clock ticks (one tick = one ride second)",
    )
    snapshot_interval_seconds: float = Field(
        default=2.0,
        gt=0.0,
        le=300.0,
        description="Seconds between active-ride snapshots written to the store",
    )
    resume_active_ride: bool = Field(
        default=True,
        description="Resume a persisted active ride when the process starts",
    )

    model_config = SettingsConfigDict(env_prefix="METER_")


class FilterSettings(BaseSettings):
    """Location filter thresholds."""

    max_accuracy_m: float = Field(
        default=50.0,
        gt=0.0,
        description="Fixes with a worse accuracy estimate are rejected as poor signal",
    )
    max_speed_kmh: float = Field(
        default=150.0,
        gt=0.0,
        description="Implied speed above which a fix is treated as a GPS jump",
    )
    min_moving_speed_kmh: float = Field(
        default=5.0,
        ge=0.0,
        description="Below this speed no distance is credited unless waiting mode is on",
    )

    model_config = SettingsConfigDict(env_prefix="FILTER_")

    @model_validator(mode="after")
    def validate_speed_window(self) -> "FilterSettings":
        if self.min_moving_speed_kmh >= self.max_speed_kmh:
            raise ValueError(
                f"min_moving_speed_kmh ({self.min_moving_speed_kmh}) must be below "
                f"max_speed_kmh ({self.max_speed_kmh})"
            )
        return self


class APISettings(BaseSettings):
    key: str = ""
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)

    model_config = SettingsConfigDict(env_prefix="API_")

    @model_validator(mode="after")
    def validate_credentials_provided(self) -> "APISettings":
        if not self.key:
            raise ValueError("Required credential not provided: API_KEY")
        return self


class Settings(BaseSettings):
    meter: MeterSettings = Field(default_factory=MeterSettings)
    filter: FilterSettings = Field(default_factory=FilterSettings)
    api: APISettings = Field(default_factory=APISettings)

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        case_sensitive=False,
    )


def get_settings() -> Settings:
    """Load and validate settings from environment variables."""
    return Settings()
