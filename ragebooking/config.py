"""
Configuration management using Pydantic models loaded from YAML.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator

from .domain.business_hours import (
    DEFAULT_WEEKLY_SCHEDULE,
    WEEKDAY_NAMES,
    OperatingWindow,
    WeeklySchedule,
)
from .domain.models import TimeOfDay

CONFIG_ENV_VAR = "RAGEBOOKING_CONFIG"


class WindowConfig(BaseModel):
    """Opening hours for one weekday."""
    open: str
    close: str

    @field_validator("open", "close")
    @classmethod
    def validate_time(cls, value: str) -> str:
        """Validate HH:MM on the 30-minute grid."""
        TimeOfDay.parse(value)
        return value

    def to_window(self) -> OperatingWindow:
        return OperatingWindow(open=TimeOfDay.parse(self.open), close=TimeOfDay.parse(self.close))


class AppConfig(BaseModel):
    """Application configuration."""
    business_name: str = "Smash Room"
    timezone: str = "Europe/Paris"
    calendar_id: str = "primary"
    service_account_key_file: Optional[Path] = None
    max_party_size: int = 5
    request_timeout_seconds: float = 15.0
    frontend_url: str = "http://localhost:5173"
    log_level: str = "INFO"
    schedule: Optional[Dict[str, Optional[WindowConfig]]] = Field(default=None)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone exists in the timezone database."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("max_party_size")
    @classmethod
    def validate_party_size(cls, value: int) -> int:
        if value < 1:
            raise ValueError("max_party_size must be at least 1")
        return value

    @field_validator("request_timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("request_timeout_seconds must be greater than zero")
        return value

    @field_validator("schedule")
    @classmethod
    def validate_schedule(
        cls, value: Optional[Dict[str, Optional[WindowConfig]]]
    ) -> Optional[Dict[str, Optional[WindowConfig]]]:
        """Ensure weekday names are valid and every window opens before it closes."""
        if value is None:
            return None
        normalized: Dict[str, Optional[WindowConfig]] = {}
        for name, window in value.items():
            key = name.lower()
            if key not in WEEKDAY_NAMES:
                raise ValueError(f"Unknown weekday in schedule: {name}")
            if window is not None:
                window.to_window()
            normalized[key] = window
        return normalized

    def weekly_schedule(self) -> WeeklySchedule:
        """Build the domain schedule; unlisted weekdays are closed."""
        if self.schedule is None:
            return DEFAULT_WEEKLY_SCHEDULE
        return WeeklySchedule(
            {
                WEEKDAY_NAMES.index(name): window.to_window() if window else None
                for name, window in self.schedule.items()
            }
        )

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

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
        key_file = config.service_account_key_file
        if key_file is not None and not key_file.is_absolute():
            config.service_account_key_file = config_path.parent / key_file
        return config


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)

    # Look for config.yaml in current directory
    config_path = Path.cwd() / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of ragebooking/)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path


def load_config(config_path: Path | None = None) -> AppConfig:
    """
    Load the config file, falling back to defaults when no default file exists.

    An explicitly given path must exist.
    """
    if config_path is not None:
        return AppConfig.load_from_yaml(config_path)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)
    return AppConfig()
