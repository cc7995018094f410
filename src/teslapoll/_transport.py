"""HTTP transport for the Fleet API and the OAuth token endpoint."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from teslapoll._constants import USER_AGENT
from teslapoll._redact import redact_for_log, redact_headers
from teslapoll.exceptions import TransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the API and credential layers.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.

    Implementations return the decoded JSON object of a 2xx response and
    raise :class:`TransportError` for everything else, filling in
    ``status_code``, ``error_text`` and ``timed_out`` so the failure can be
    classified.
    """

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        token: str | None = None,
        json_body: Mapping[str, Any] | None = None,
        form: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
    ) -> dict[str, Any]:
        ...


def _extract_error_text(text: str) -> str:
    """Pull the provider's error message out of a response body."""
    try:
        body = json.loads(text)
    except json.JSONDecodeError:
        return text[:200]
    if not isinstance(body, dict):
        return text[:200]
    parts = [str(body[key]) for key in ("error", "error_description") if body.get(key)]
    return ": ".join(parts) if parts else text[:200]


class HttpTransport:
    """aiohttp-backed transport with bearer auth and error capture."""

    def __init__(self, http_session: aiohttp.ClientSession, *, timeout: float) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        token: str | None = None,
        json_body: Mapping[str, Any] | None = None,
        form: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
    ) -> dict[str, Any]:
        headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }
        if token:
            headers["authorization"] = f"Bearer {token}"

        kwargs: dict[str, Any] = {"headers": headers, "timeout": self._timeout}
        if json_body is not None:
            kwargs["json"] = dict(json_body)
        if form is not None:
            kwargs["data"] = dict(form)
        if params is not None:
            kwargs["params"] = dict(params)

        _logger.debug(
            "%s %s headers=%s body=%s",
            method,
            url,
            redact_headers(headers),
            redact_for_log(json_body if json_body is not None else form),
        )

        try:
            async with self._http.request(method, url, **kwargs) as resp:
                raw = await resp.read()
                status = resp.status
        except TimeoutError as exc:
            raise TransportError(
                f"Request to {url} timed out",
                endpoint=url,
                error_text="request timed out",
                timed_out=True,
            ) from exc
        except aiohttp.ClientError as exc:
            raise TransportError(
                f"Request to {url} failed: {exc}",
                endpoint=url,
                error_text=str(exc),
            ) from exc

        # Undecodable bytes are replaced so error text stays classifiable.
        text = raw.decode("utf-8", errors="replace")

        if not 200 <= status < 300:
            error_text = _extract_error_text(text)
            raise TransportError(
                f"HTTP {status} from {url}: {error_text}",
                status_code=status,
                endpoint=url,
                error_text=error_text,
            )

        if not text.strip():
            return {}

        try:
            body_json = json.loads(text)
        except json.JSONDecodeError as exc:
            raise TransportError(
                f"Invalid JSON from {url}: {text[:200]}",
                status_code=status,
                endpoint=url,
            ) from exc

        if not isinstance(body_json, dict):
            raise TransportError(
                f"Unexpected JSON shape from {url}: {type(body_json).__name__}",
                status_code=status,
                endpoint=url,
            )

        _logger.debug("%s %s -> %d %s", method, url, status, redact_for_log(body_json, max_string=128))
        return body_json
