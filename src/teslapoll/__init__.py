"""teslapoll - Tesla Fleet API charge-state logger with guarded vehicle wakes."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("teslapoll")
except PackageNotFoundError:
    __version__ = "0+local"
from teslapoll.budget import WakeBudget
from teslapoll.classify import FailureClass, classify
from teslapoll.client import FleetClient
from teslapoll.config import PollerConfig, WakePolicy
from teslapoll.credentials import CredentialStore
from teslapoll.exceptions import (
    AuthError,
    ConfigError,
    FleetApiError,
    RegistrationError,
    TeslaPollError,
    TransportError,
    UnavailableError,
    VehicleNotFoundError,
    WakeDisabledError,
)
from teslapoll.models import (
    Credential,
    Fatal,
    OutcomeKind,
    PollOutcome,
    QuietBlocked,
    QuotaBlocked,
    Success,
    Timeout,
    VehicleSnapshot,
    WakeCounter,
    WakeResult,
)
from teslapoll.poller import AvailabilityPoller
from teslapoll.quiet import QuietWindow, is_quiet, parse_quiet_window
from teslapoll.registration import RegistrationGuard
from teslapoll.runner import exit_code, run_once

__all__ = [
    "AuthError",
    "AvailabilityPoller",
    "ConfigError",
    "Credential",
    "CredentialStore",
    "FailureClass",
    "Fatal",
    "FleetApiError",
    "FleetClient",
    "OutcomeKind",
    "PollOutcome",
    "PollerConfig",
    "QuietBlocked",
    "QuietWindow",
    "QuotaBlocked",
    "RegistrationError",
    "RegistrationGuard",
    "Success",
    "TeslaPollError",
    "Timeout",
    "TransportError",
    "UnavailableError",
    "VehicleNotFoundError",
    "VehicleSnapshot",
    "WakeBudget",
    "WakeCounter",
    "WakeDisabledError",
    "WakePolicy",
    "WakeResult",
    "classify",
    "exit_code",
    "is_quiet",
    "parse_quiet_window",
    "run_once",
]
