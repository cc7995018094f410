"""OAuth credential persistence and refresh.

The credential file holds ``{access_token, refresh_token, expires_at}``.
Access tokens are refreshed with the refresh-token grant when missing or
expired; a rotated refresh token replaces the stored one, otherwise the old
one is kept. The full credential is persisted before the new access token
is handed out, so a crash after refresh cannot lose a rotated token.

The file is replaced atomically, but the load-refresh-persist sequence is
not locked across processes; teslapoll assumes a single running instance.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError

from teslapoll._constants import TOKEN_URL
from teslapoll._storage import read_json, write_json_atomic
from teslapoll._transport import Transport
from teslapoll.config import PollerConfig
from teslapoll.exceptions import AuthError, FleetApiError
from teslapoll.models.credential import Credential

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CredentialStore:
    """Load, refresh and persist the OAuth credential."""

    def __init__(
        self,
        config: PollerConfig,
        transport: Transport,
        *,
        path: Path | None = None,
        token_url: str = TOKEN_URL,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config
        self._transport = transport
        self._path = path if path is not None else config.tokens_path
        self._token_url = token_url
        self._clock = clock
        self._credential: Credential | None = None

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Credential:
        """Return the persisted credential.

        Raises
        ------
        AuthError
            If no credential is stored or it has no refresh token.
        """
        if self._credential is not None:
            return self._credential

        raw = read_json(self._path)
        if raw is None:
            raise AuthError(f"No credential found at {self._path}; seed a refresh token first")
        try:
            credential = Credential.model_validate(raw)
        except ValidationError as exc:
            raise AuthError(f"Credential file {self._path} is invalid: {exc}") from exc
        if not credential.refresh_token:
            raise AuthError(f"Credential file {self._path} has no refresh token; seed a refresh token first")

        self._credential = credential
        return credential

    def save(self, credential: Credential) -> None:
        write_json_atomic(self._path, credential.model_dump(mode="json"))
        self._credential = credential

    def seed(self, refresh_token: str) -> Credential:
        """Store a credential holding only *refresh_token*.

        The next :meth:`get_valid_access_token` call performs a refresh.
        """
        token = refresh_token.strip()
        if not token:
            raise AuthError("Refresh token is empty")
        credential = Credential(refresh_token=token)
        self.save(credential)
        _logger.info("Seeded refresh token into %s", self._path)
        return credential

    async def refresh(self) -> Credential:
        """Exchange the refresh token for a new access token and persist the result.

        Not retried: any transport or grant failure is raised as :class:`AuthError`.
        """
        credential = self.load()
        assert credential.refresh_token is not None  # noqa: S101

        form: dict[str, str] = {
            "grant_type": "refresh_token",
            "refresh_token": credential.refresh_token,
            "client_id": self._config.client_id,
        }
        if self._config.client_secret:
            form["client_secret"] = self._config.client_secret
        if self._config.redirect_uri:
            form["redirect_uri"] = self._config.redirect_uri
        if self._config.extra_scopes:
            form["scope"] = " ".join(self._config.extra_scopes)

        try:
            data = await self._transport.request_json("POST", self._token_url, form=form)
        except FleetApiError as exc:
            raise AuthError(
                f"Token refresh failed: {exc}",
                status_code=exc.status_code,
                endpoint=self._token_url,
                error_text=exc.error_text,
            ) from exc

        if not data.get("access_token"):
            raise AuthError("Token refresh response has no access_token", endpoint=self._token_url)

        previous_refresh = credential.refresh_token
        updated = credential.model_copy(deep=True)
        updated.apply_token_response(data, self._clock())
        self.save(updated)

        if updated.refresh_token != previous_refresh:
            _logger.info("Access token refreshed; refresh token rotated")
        else:
            _logger.info("Access token refreshed")
        return updated

    async def get_valid_access_token(self) -> str:
        """Return an unexpired access token, refreshing it when needed."""
        credential = self.load()
        if credential.is_expired(self._clock()):
            credential = await self.refresh()
        assert credential.access_token is not None  # noqa: S101
        return credential.access_token
