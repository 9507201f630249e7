"""
Configuration management using Pydantic models loaded from YAML.
"""

import logging
from pathlib import Path

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import DEFAULT_TIMEZONE
from .domain.slot_generator import ALLOWED_SLOT_INTERVALS, SlotGenerator


class BookingDefaults(BaseModel):
    """Booking page settings that shape the offered slots."""
    slot_interval: int = 30
    max_advance_booking_days: int = 60

    @field_validator("slot_interval")
    @classmethod
    def validate_slot_interval(cls, value: int) -> int:
        """Only 15, 30 and 60 minute grids are offered."""
        if value not in ALLOWED_SLOT_INTERVALS:
            raise ValueError(
                f"slot_interval must be one of {ALLOWED_SLOT_INTERVALS}, got {value}"
            )
        return value

    @field_validator("max_advance_booking_days")
    @classmethod
    def validate_horizon(cls, value: int) -> int:
        """Ensure the booking horizon is not negative."""
        if value < 0:
            raise ValueError("max_advance_booking_days must not be negative")
        return value

    def build_slot_generator(self) -> SlotGenerator:
        return SlotGenerator(
            slot_interval=self.slot_interval,
            max_advance_booking_days=self.max_advance_booking_days,
        )


class RestConfig(BaseModel):
    """Connection settings for the REST database API."""
    base_url: str
    api_key: str
    timeout_seconds: float = 30

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL, got '{value}'")
        return value.rstrip("/")


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = DEFAULT_TIMEZONE
    booking: BookingDefaults = Field(default_factory=BookingDefaults)
    data_file: Path | None = None
    rest: RestConfig | None = None
    log_level: str = "WARNING"

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA name."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: '{value}'") from exc
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: '{value}'")
        return level

    @model_validator(mode="after")
    def validate_data_source(self) -> "AppConfig":
        """Ensure there is somewhere to read scheduling data from."""
        if self.data_file is None and self.rest is None:
            raise ValueError("Configure either data_file or rest")
        return self

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        A relative ``data_file`` is resolved against the config file's
        directory.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)
        if config.data_file is not None and not config.data_file.is_absolute():
            config = config.model_copy(
                update={"data_file": config_path.parent / config.data_file}
            )
        return config


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
