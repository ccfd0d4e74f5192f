"""
Tests for configuration loading.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from ragebooking.config import AppConfig, load_config
from ragebooking.domain.business_hours import DEFAULT_WEEKLY_SCHEDULE
from ragebooking.domain.models import TimeOfDay


def test_defaults():
    config = AppConfig()

    assert config.timezone == "Europe/Paris"
    assert config.max_party_size == 5
    assert config.weekly_schedule() == DEFAULT_WEEKLY_SCHEDULE


def test_load_from_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "business_name: Rage Cage\n"
        "timezone: Africa/Tunis\n"
        "service_account_key_file: keys/sa.json\n"
        "schedule:\n"
        "  Friday: {open: '18:00', close: '23:00'}\n"
        "  saturday: null\n",
        encoding="utf-8",
    )

    config = AppConfig.load_from_yaml(path)
    schedule = config.weekly_schedule()

    assert config.business_name == "Rage Cage"
    assert config.service_account_key_file == tmp_path / "keys" / "sa.json"
    assert schedule.window_for(5).open == TimeOfDay(18, 0)
    assert schedule.window_for(6) is None
    assert schedule.window_for(0) is None


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        AppConfig.load_from_yaml(tmp_path / "missing.yaml")


def test_load_config_without_default_file_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.setenv("RAGEBOOKING_CONFIG", str(tmp_path / "none.yaml"))

    assert load_config() == AppConfig()


def test_non_mapping_yaml_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ValueError, match="mapping"):
        AppConfig.load_from_yaml(path)


@pytest.mark.parametrize(
    "overrides",
    [
        {"timezone": "Mars/Olympus_Mons"},
        {"max_party_size": 0},
        {"request_timeout_seconds": 0},
        {"schedule": {"funday": {"open": "10:00", "close": "12:00"}}},
        {"schedule": {"monday": {"open": "10:15", "close": "12:00"}}},
        {"schedule": {"monday": {"open": "12:00", "close": "10:00"}}},
    ],
)
def test_invalid_values_rejected(overrides):
    with pytest.raises(PydanticValidationError):
        AppConfig(**overrides)
