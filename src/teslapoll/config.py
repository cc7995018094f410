"""Poller configuration for teslapoll."""

from __future__ import annotations

import dataclasses
import os
from datetime import datetime, tzinfo
from enum import StrEnum
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from teslapoll._constants import (
    API_BASES,
    DEFAULT_POST_WAKE_ATTEMPTS,
    DEFAULT_POST_WAKE_DELAY_S,
    DEFAULT_REGION,
    DEFAULT_REQUEST_TIMEOUT_S,
)
from teslapoll.exceptions import ConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError:
        return default


def _env_float(value: str | None, default: float) -> float:
    if value is None or not value.strip():
        return default
    try:
        return float(value.strip())
    except ValueError:
        return default


class WakePolicy(StrEnum):
    """When the poller may actively wake the vehicle.

    ``ONFAIL`` and ``ALWAYS`` behave the same: a wake is only considered
    after a read has failed with an unavailability error.
    """

    NEVER = "never"
    ONFAIL = "onfail"
    ALWAYS = "always"

    @property
    def allows_wake(self) -> bool:
        return self is not WakePolicy.NEVER


@dataclasses.dataclass(frozen=True)
class PollerConfig:
    """Immutable configuration for one poll tick.

    Parameters
    ----------
    client_id : str
        OAuth client id of the registered Fleet API application.
    vehicle_tag : str
        Numeric vehicle id or VIN of the vehicle to poll.
    client_secret : str
        OAuth client secret. Optional for public clients.
    redirect_uri : str
        Redirect URI sent with the refresh grant when set.
    region : str
        Fleet API region (``"eu"``, ``"na"`` or ``"ap"``). Unknown
        values fall back to ``"eu"``.
    extra_scopes : tuple[str, ...]
        Additional OAuth scopes requested on refresh.
    wake_policy : WakePolicy
        Whether the vehicle may be woken when unreachable.
    quiet_window : str
        ``"HH:MM-HH:MM"`` local window during which waking is forbidden.
        Malformed or empty values disable the window.
    max_wakes_per_day : int
        Wake budget per local calendar day.
    log_file, wake_counter_file, tokens_path, state_path : Path
        Persisted file locations.
    auto_partner_register : bool
        Register ``partner_domain`` with the platform once per run and
        when a read reports the domain as unregistered.
    partner_domain : str
        Partner domain to register.
    exit_zero_on_quiet : bool
        Exit status 0 (instead of 1) when a run is skipped by the quiet window.
    time_zone : str or None
        IANA time zone for the quiet window and wake budget day.
        ``None`` uses the system local time zone.
    post_wake_attempts : int
        Number of reads attempted after a wake before giving up.
    post_wake_delay : float
        Seconds to wait before each post-wake read.
    request_timeout : float
        Per-request HTTP timeout in seconds.
    history_days : int
        Days of wake/poll timestamps kept in the run-state file.
    """

    client_id: str
    vehicle_tag: str
    client_secret: str = ""
    redirect_uri: str = ""
    region: str = DEFAULT_REGION
    extra_scopes: tuple[str, ...] = ()
    wake_policy: WakePolicy = WakePolicy.ONFAIL
    quiet_window: str = "00:00-07:30"
    max_wakes_per_day: int = 16
    log_file: Path = Path(".runner_state/tesla_soc.jsonl")
    wake_counter_file: Path = Path(".runner_state/wake_counter.json")
    tokens_path: Path = Path(".runner_state/tokens.json")
    state_path: Path = Path(".runner_state/state.json")
    auto_partner_register: bool = True
    partner_domain: str = ""
    exit_zero_on_quiet: bool = True
    time_zone: str | None = None
    post_wake_attempts: int = DEFAULT_POST_WAKE_ATTEMPTS
    post_wake_delay: float = DEFAULT_POST_WAKE_DELAY_S
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT_S
    history_days: int = 7

    @property
    def api_base(self) -> str:
        """Fleet API base URL for the configured region."""
        return API_BASES.get(self.region.strip().lower(), API_BASES[DEFAULT_REGION])

    def tzinfo(self) -> tzinfo | None:
        """Configured time zone, or ``None`` for the system local zone."""
        if not self.time_zone:
            return None
        try:
            return ZoneInfo(self.time_zone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ConfigError(f"Unknown time zone: {self.time_zone!r}") from exc

    def local_now(self) -> datetime:
        """Current time in the configured (or system) local time zone."""
        zone = self.tzinfo()
        if zone is None:
            return datetime.now().astimezone()
        return datetime.now(zone)

    def validate(self) -> None:
        """Raise :class:`ConfigError` when required settings are missing or invalid."""
        if not self.client_id.strip():
            raise ConfigError("TESLA_CLIENT_ID is not set")
        if not self.vehicle_tag.strip():
            raise ConfigError("TESLA_VEHICLE_TAG is not set")
        if not isinstance(self.wake_policy, WakePolicy):
            raise ConfigError(f"Unknown wake policy: {self.wake_policy!r}")
        if self.max_wakes_per_day < 0:
            raise ConfigError(f"max_wakes_per_day must be >= 0, got {self.max_wakes_per_day}")
        if self.post_wake_attempts < 1:
            raise ConfigError(f"post_wake_attempts must be >= 1, got {self.post_wake_attempts}")
        if self.post_wake_delay < 0:
            raise ConfigError(f"post_wake_delay must be >= 0, got {self.post_wake_delay}")
        self.tzinfo()

    @classmethod
    def from_env(cls, **overrides: Any) -> PollerConfig:
        """Create configuration from environment variables.

        Reads ``TESLA_CLIENT_ID``, ``TESLA_VEHICLE_TAG`` and the optional
        variables listed in the README. Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        PollerConfig
            Populated configuration. Call :meth:`validate` before use.

        Raises
        ------
        ConfigError
            If ``WAKE_POLICY`` holds an unknown value.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "TESLA_CLIENT_ID": "client_id",
            "TESLA_CLIENT_SECRET": "client_secret",
            "TESLA_REDIRECT_URI": "redirect_uri",
            "TESLA_REGION": "region",
            "TESLA_VEHICLE_TAG": "vehicle_tag",
            "QUIET_WINDOW": "quiet_window",
            "TESLA_PARTNER_DOMAIN": "partner_domain",
            "TZ_NAME": "time_zone",
        }
        _ENV_PATH_MAP = {
            "LOG_FILE": "log_file",
            "DAILY_WAKE_FILE": "wake_counter_file",
            "TOKENS_PATH": "tokens_path",
            "STATE_PATH": "state_path",
        }

        config_kwargs: dict[str, Any] = {"client_id": "", "vehicle_tag": ""}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val.strip()
        for env_key, field_name in _ENV_PATH_MAP.items():
            val = env.get(env_key)
            if val:
                config_kwargs[field_name] = Path(val)

        if not config_kwargs.get("time_zone"):
            config_kwargs.pop("time_zone", None)

        scopes_env = env.get("EXTRA_SCOPES")
        if scopes_env:
            config_kwargs["extra_scopes"] = tuple(scopes_env.replace(",", " ").split())

        policy_env = env.get("WAKE_POLICY")
        if policy_env is not None and "wake_policy" not in overrides:
            try:
                config_kwargs["wake_policy"] = WakePolicy(policy_env.strip().lower())
            except ValueError as exc:
                raise ConfigError(f"Unknown WAKE_POLICY: {policy_env!r}") from exc

        config_kwargs["max_wakes_per_day"] = _env_int(env.get("MAX_WAKE_PER_DAY"), 16)
        config_kwargs["post_wake_attempts"] = _env_int(env.get("POST_WAKE_ATTEMPTS"), DEFAULT_POST_WAKE_ATTEMPTS)
        config_kwargs["history_days"] = _env_int(env.get("HISTORY_DAYS"), 7)
        config_kwargs["post_wake_delay"] = _env_float(env.get("POST_WAKE_DELAY"), DEFAULT_POST_WAKE_DELAY_S)
        config_kwargs["request_timeout"] = _env_float(env.get("REQUEST_TIMEOUT"), DEFAULT_REQUEST_TIMEOUT_S)

        config_kwargs["auto_partner_register"] = _env_bool(env.get("AUTO_PARTNER_REGISTER"), True)
        config_kwargs["exit_zero_on_quiet"] = _env_bool(env.get("EXIT_ZERO_ON_QUIET"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
