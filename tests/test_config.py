from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from teslapoll.config import PollerConfig, WakePolicy
from teslapoll.exceptions import ConfigError

_ENV_KEYS = (
    "TESLA_CLIENT_ID",
    "TESLA_CLIENT_SECRET",
    "TESLA_REDIRECT_URI",
    "TESLA_REGION",
    "TESLA_VEHICLE_TAG",
    "EXTRA_SCOPES",
    "WAKE_POLICY",
    "QUIET_WINDOW",
    "MAX_WAKE_PER_DAY",
    "LOG_FILE",
    "DAILY_WAKE_FILE",
    "TOKENS_PATH",
    "STATE_PATH",
    "AUTO_PARTNER_REGISTER",
    "TESLA_PARTNER_DOMAIN",
    "EXIT_ZERO_ON_QUIET",
    "TZ_NAME",
    "POST_WAKE_ATTEMPTS",
    "POST_WAKE_DELAY",
    "REQUEST_TIMEOUT",
    "HISTORY_DAYS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults() -> None:
    config = PollerConfig.from_env()

    assert config.client_id == ""
    assert config.region == "eu"
    assert config.wake_policy is WakePolicy.ONFAIL
    assert config.quiet_window == "00:00-07:30"
    assert config.max_wakes_per_day == 16
    assert config.post_wake_attempts == 6
    assert config.post_wake_delay == 10.0
    assert config.request_timeout == 30.0
    assert config.auto_partner_register is True
    assert config.exit_zero_on_quiet is True
    assert config.time_zone is None
    assert config.log_file == Path(".runner_state/tesla_soc.jsonl")
    assert config.api_base == "https://fleet-api.prd.eu.vn.cloud.tesla.com/api/1"


def test_environment_is_read(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("TESLA_CLIENT_ID", " client-1 ")
    monkeypatch.setenv("TESLA_VEHICLE_TAG", "5YJ3E1EA7KF000001")
    monkeypatch.setenv("TESLA_REGION", "na")
    monkeypatch.setenv("EXTRA_SCOPES", "vehicle_device_data, offline_access")
    monkeypatch.setenv("WAKE_POLICY", "NEVER")
    monkeypatch.setenv("MAX_WAKE_PER_DAY", "4")
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "log.jsonl"))
    monkeypatch.setenv("AUTO_PARTNER_REGISTER", "false")
    monkeypatch.setenv("EXIT_ZERO_ON_QUIET", "0")
    monkeypatch.setenv("TZ_NAME", "Europe/Amsterdam")
    monkeypatch.setenv("POST_WAKE_DELAY", "2.5")

    config = PollerConfig.from_env()

    assert config.client_id == "client-1"
    assert config.api_base == "https://fleet-api.prd.na.vn.cloud.tesla.com/api/1"
    assert config.extra_scopes == ("vehicle_device_data", "offline_access")
    assert config.wake_policy is WakePolicy.NEVER
    assert config.max_wakes_per_day == 4
    assert config.log_file == tmp_path / "log.jsonl"
    assert config.auto_partner_register is False
    assert config.exit_zero_on_quiet is False
    assert config.post_wake_delay == 2.5
    config.validate()


def test_overrides_take_precedence(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WAKE_POLICY", "bogus")
    monkeypatch.setenv("MAX_WAKE_PER_DAY", "4")

    config = PollerConfig.from_env(wake_policy=WakePolicy.ALWAYS, max_wakes_per_day=1)

    assert config.wake_policy is WakePolicy.ALWAYS
    assert config.max_wakes_per_day == 1


def test_unknown_wake_policy_is_config_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WAKE_POLICY", "sometimes")
    with pytest.raises(ConfigError, match="WAKE_POLICY"):
        PollerConfig.from_env()


def test_unparsable_numbers_fall_back_to_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MAX_WAKE_PER_DAY", "lots")
    monkeypatch.setenv("REQUEST_TIMEOUT", "")
    config = PollerConfig.from_env()
    assert config.max_wakes_per_day == 16
    assert config.request_timeout == 30.0


def test_unknown_region_falls_back_to_eu() -> None:
    assert PollerConfig(client_id="c", vehicle_tag="1", region="mars").api_base.endswith("eu.vn.cloud.tesla.com/api/1")
    assert "apac" in PollerConfig(client_id="c", vehicle_tag="1", region="AP").api_base


@pytest.mark.parametrize(
    ("overrides", "match"),
    [
        ({"client_id": ""}, "TESLA_CLIENT_ID"),
        ({"vehicle_tag": " "}, "TESLA_VEHICLE_TAG"),
        ({"max_wakes_per_day": -1}, "max_wakes_per_day"),
        ({"post_wake_attempts": 0}, "post_wake_attempts"),
        ({"time_zone": "Nowhere/Special"}, "time zone"),
    ],
)
def test_validate_rejects_invalid_settings(overrides: dict[str, object], match: str) -> None:
    values: dict[str, object] = {"client_id": "c", "vehicle_tag": "1"}
    values.update(overrides)
    config = PollerConfig(**values)  # type: ignore[arg-type]
    with pytest.raises(ConfigError, match=match):
        config.validate()


def test_local_now_uses_configured_zone() -> None:
    now = PollerConfig(client_id="c", vehicle_tag="1", time_zone="Asia/Tokyo").local_now()
    assert isinstance(now, datetime)
    assert now.utcoffset() is not None
    assert now.utcoffset().total_seconds() == 9 * 3600
