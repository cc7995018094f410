"""Custom exception hierarchy for teslapoll."""

from __future__ import annotations


class TeslaPollError(Exception):
    """Base exception for all teslapoll errors."""


class ConfigError(TeslaPollError):
    """Invalid or missing configuration."""


class FleetApiError(TeslaPollError):
    """Failure talking to the Fleet API or the token endpoint.

    The concrete subclass encodes how the poller treats the failure; see
    :mod:`teslapoll.classify` for the mapping.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
        error_text: str = "",
        timed_out: bool = False,
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        self.error_text = error_text
        self.timed_out = timed_out
        super().__init__(message)


class TransportError(FleetApiError):
    """HTTP-level failure (network, unexpected status, invalid JSON)."""


class AuthError(FleetApiError):
    """Credential missing, refresh rejected, or request unauthorized.

    Not recoverable within a run: the refresh token has to be re-seeded
    out of band.
    """


class RegistrationError(FleetApiError):
    """Partner domain is not registered in the current region.

    The poller remediates this once per run by registering the domain
    and retrying the read; a repeat is fatal.
    """


class UnavailableError(FleetApiError):
    """Vehicle is asleep, offline or the request timed out.

    Expected during normal operation; drives the wake decision.
    """


class VehicleNotFoundError(TeslaPollError):
    """The configured vehicle tag does not match any vehicle on the account."""


class WakeDisabledError(TeslaPollError):
    """Vehicle is unavailable and the wake policy forbids waking it."""
