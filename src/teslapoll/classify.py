"""Failure classification for Fleet API errors.

The Fleet API reports most conditions only through free-form error text.
Classification is kept in explicit tables so new provider strings can be
added without touching the poller's control flow. Rules are evaluated in
order: error text first, then HTTP status, then request timeouts.
"""

from __future__ import annotations

from enum import StrEnum

from teslapoll.exceptions import (
    AuthError,
    FleetApiError,
    RegistrationError,
    TransportError,
    UnavailableError,
)


class FailureClass(StrEnum):
    UNAVAILABLE = "unavailable"
    REGISTRATION = "registration"
    AUTH = "auth"
    TRANSPORT = "transport"


#: Case-insensitive substrings of the provider's error text.
ERROR_TEXT_RULES: tuple[tuple[str, FailureClass], ...] = (
    ("must be registered in the current region", FailureClass.REGISTRATION),
    ("vehicle unavailable", FailureClass.UNAVAILABLE),
    ("asleep", FailureClass.UNAVAILABLE),
    ("offline", FailureClass.UNAVAILABLE),
)

STATUS_RULES: dict[int, FailureClass] = {
    408: FailureClass.UNAVAILABLE,
    401: FailureClass.AUTH,
    403: FailureClass.AUTH,
}

_ERROR_TYPES: dict[FailureClass, type[FleetApiError]] = {
    FailureClass.UNAVAILABLE: UnavailableError,
    FailureClass.REGISTRATION: RegistrationError,
    FailureClass.AUTH: AuthError,
    FailureClass.TRANSPORT: TransportError,
}


def classify(error: BaseException) -> FailureClass:
    """Map an exception to the failure class that decides how it is handled."""
    if isinstance(error, UnavailableError):
        return FailureClass.UNAVAILABLE
    if isinstance(error, RegistrationError):
        return FailureClass.REGISTRATION
    if isinstance(error, AuthError):
        return FailureClass.AUTH
    if not isinstance(error, FleetApiError):
        return FailureClass.TRANSPORT

    # Only the provider's error field; messages may embed arbitrary response bodies.
    text = error.error_text.lower()
    for needle, failure_class in ERROR_TEXT_RULES:
        if needle in text:
            return failure_class

    if error.status_code is not None and error.status_code in STATUS_RULES:
        return STATUS_RULES[error.status_code]

    if error.timed_out:
        return FailureClass.UNAVAILABLE
    return FailureClass.TRANSPORT


def reclassify(error: FleetApiError) -> FleetApiError:
    """Return *error* as the exception type matching its failure class.

    The original exception is returned unchanged when it already has the
    right type; otherwise a new instance carrying the same details is built
    (callers chain it with ``raise ... from error``).
    """
    target = _ERROR_TYPES[classify(error)]
    if type(error) is target:
        return error
    return target(
        str(error),
        status_code=error.status_code,
        endpoint=error.endpoint,
        error_text=error.error_text,
        timed_out=error.timed_out,
    )
