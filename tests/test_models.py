from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from teslapoll.models import Credential, VehicleSnapshot, WakeCounter
from teslapoll.models._base import parse_instant
from teslapoll.models.normalize import normalize_timestamp_seconds, safe_float, safe_int, safe_str


def test_parse_instant_accepts_seconds_milliseconds_and_iso() -> None:
    expected = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)
    seconds = int(expected.timestamp())

    assert parse_instant(seconds) == expected
    assert parse_instant(seconds * 1000) == expected
    assert parse_instant("2026-03-15T12:00:00Z") == expected
    assert parse_instant("2026-03-15T12:00:00") == expected
    assert parse_instant(None) is None
    assert parse_instant("") is None


def test_credential_expiry() -> None:
    now = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)

    assert Credential(refresh_token="r").is_expired(now) is True
    assert Credential(access_token="a", refresh_token="r", expires_at="2026-03-15T12:00:00Z").is_expired(now) is True
    assert Credential(access_token="a", refresh_token="r", expires_at="2026-03-15T12:00:01Z").is_expired(now) is False


def test_credential_ignores_unknown_keys_and_dumps_iso() -> None:
    credential = Credential.model_validate(
        {"access_token": "a", "refresh_token": "r", "expires_at": 1773576000000, "token_type": "Bearer"}
    )
    assert credential.model_dump(mode="json")["expires_at"] == "2026-03-15T12:00:00+00:00"


def test_wake_counter_rejects_negative_count() -> None:
    with pytest.raises(ValueError):
        WakeCounter.model_validate({"date": "2026-03-15", "count": -1})


@pytest.mark.parametrize(
    ("value", "expected"),
    [(None, None), ("", None), (True, None), ("12.5", 12.5), (float("nan"), None), ("abc", None)],
)
def test_safe_float(value: object, expected: float | None) -> None:
    assert safe_float(value) == expected


def test_other_normalizers() -> None:
    assert safe_int("80.6") == 81
    assert safe_str("  Charging ") == "Charging"
    assert safe_str("   ") is None
    assert normalize_timestamp_seconds(1773576000000) == 1773576000
    assert normalize_timestamp_seconds(0) is None


def test_snapshot_tolerates_missing_sections() -> None:
    read_at = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)
    snapshot = VehicleSnapshot.from_vehicle_data({"state": "online", "charge_state": None}, read_at=read_at)

    assert snapshot.soc_percent is None
    assert snapshot.range_km is None
    assert snapshot.timestamp == read_at
    assert snapshot.online is True
    assert snapshot.is_charging is False


def test_snapshot_out_of_range_timestamp_falls_back_to_read_time() -> None:
    read_at = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)
    snapshot = VehicleSnapshot.from_vehicle_data(
        {"charge_state": {"timestamp": 1e20, "battery_level": 55}}, read_at=read_at
    )

    assert snapshot.timestamp == read_at
    assert snapshot.soc_percent == 55


def test_short_lived_token_is_not_expired_on_arrival() -> None:
    now = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)
    credential = Credential(refresh_token="r")

    credential.apply_token_response({"access_token": "a", "expires_in": 30}, now)

    assert credential.expires_at == now + timedelta(seconds=15)
    assert credential.is_expired(now) is False
