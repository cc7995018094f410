"""Helpers for safe debug logging.

teslapoll handles OAuth secrets (client secret, access and refresh tokens).
Request forms, JSON bodies, headers and token responses pass through
:func:`redact_for_log` before they reach DEBUG logs.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import parse_qsl, urlencode

_REDACTED = "<redacted>"
_MAX_DEPTH = 20

_SECRET_KEYS: frozenset[str] = frozenset(
    {
        "access_token",
        "refresh_token",
        "id_token",
        "client_secret",
        "code",
        "code_verifier",
        "authorization",
        "token",
        "cookie",
        "set-cookie",
    }
)

# "Bearer eyJ..." / "Basic abc=" -> keep the scheme, drop the credential.
_AUTH_SCHEME_RE = re.compile(r"^(Bearer|Basic)\s+\S+$", re.IGNORECASE)
# application/x-www-form-urlencoded body such as "grant_type=refresh_token&refresh_token=...".
_FORM_BODY_RE = re.compile(r"^[\w.~-]+=[^&\s]*(&[\w.~-]+=[^&\s]*)*$")


def _is_secret_key(key: str) -> bool:
    return key.lower() in _SECRET_KEYS


def _redact_string(value: str, max_string: int) -> str:
    scheme = _AUTH_SCHEME_RE.match(value)
    if scheme is not None:
        return f"{scheme.group(1)} {_REDACTED}"
    if "=" in value and _FORM_BODY_RE.match(value):
        pairs = [(k, _REDACTED if _is_secret_key(k) else v) for k, v in parse_qsl(value, keep_blank_values=True)]
        value = urlencode(pairs, safe="<>")
    if len(value) > max_string:
        return f"{value[:max_string]}…<truncated>"
    return value


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a copy of *value* with OAuth secrets masked and long strings cut."""
    if _depth > _MAX_DEPTH:
        return "<max-depth>"
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return _redact_string(value, max_string)
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"
    if isinstance(value, Mapping):
        return {
            str(k): _REDACTED if _is_secret_key(str(k)) else redact_for_log(v, max_string=max_string, _depth=_depth + 1)
            for k, v in value.items()
        }
    if isinstance(value, Sequence):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]
    return repr(value)


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Mask credential headers (``Authorization``, cookies) for logging."""
    return {name: _REDACTED if _is_secret_key(name) else value for name, value in headers.items()}
