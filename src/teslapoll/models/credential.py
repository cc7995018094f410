"""OAuth credential model."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from pydantic import BaseModel, ConfigDict

from teslapoll._constants import DEFAULT_TOKEN_LIFETIME_S, TOKEN_EXPIRY_MARGIN_S
from teslapoll.models._base import Instant


class Credential(BaseModel):
    """Persisted OAuth credential.

    Parameters
    ----------
    access_token : str or None
        Bearer token for Fleet API calls.
    refresh_token : str or None
        Long-lived token used to obtain new access tokens. Replaced only
        when the provider rotates it.
    expires_at : datetime or None
        Instant after which the access token is treated as expired. Always
        set :data:`TOKEN_EXPIRY_MARGIN_S` before the provider's real expiry.
    """

    model_config = ConfigDict(extra="ignore")

    access_token: str | None = None
    refresh_token: str | None = None
    expires_at: Instant = None

    def is_expired(self, now: datetime) -> bool:
        """Whether the access token is missing or past its (margined) expiry."""
        if not self.access_token or self.expires_at is None:
            return True
        return now >= self.expires_at

    def apply_token_response(self, data: dict[str, object], now: datetime) -> None:
        """Update from a token-endpoint response, keeping the refresh token unless rotated."""
        self.access_token = str(data["access_token"])
        rotated = data.get("refresh_token")
        if isinstance(rotated, str) and rotated:
            self.refresh_token = rotated
        try:
            lifetime = float(data.get("expires_in") or DEFAULT_TOKEN_LIFETIME_S)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            lifetime = DEFAULT_TOKEN_LIFETIME_S
        # Short-lived tokens keep at least half their lifetime.
        usable = max(lifetime - TOKEN_EXPIRY_MARGIN_S, lifetime / 2)
        self.expires_at = now.astimezone(UTC) + timedelta(seconds=usable)
