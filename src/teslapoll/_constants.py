"""Internal constants shared across the library."""

AUTH_BASE = "https://fleet-auth.prd.vn.cloud.tesla.com/oauth2/v3"
TOKEN_URL = f"{AUTH_BASE}/token"

API_BASES: dict[str, str] = {
    "eu": "https://fleet-api.prd.eu.vn.cloud.tesla.com/api/1",
    "na": "https://fleet-api.prd.na.vn.cloud.tesla.com/api/1",
    "ap": "https://fleet-api.prd.apac.vn.cloud.tesla.com/api/1",
}
DEFAULT_REGION = "eu"

USER_AGENT = "teslapoll/1"

#: Subtracted from the provider's ``expires_in`` so a token is refreshed
#: before the provider starts rejecting it.
TOKEN_EXPIRY_MARGIN_S: float = 60.0

#: Used when the token response omits ``expires_in``.
DEFAULT_TOKEN_LIFETIME_S: float = 3600.0

DEFAULT_POST_WAKE_ATTEMPTS = 6
DEFAULT_POST_WAKE_DELAY_S = 10.0
DEFAULT_REQUEST_TIMEOUT_S = 30.0

# ------------------------------------------------------------------
# Distance units
# ------------------------------------------------------------------

#: The Fleet API reports ``battery_range`` and ``odometer`` in miles.
KM_PER_MILE = 1.609344


def miles_to_km(miles: float | None) -> float | None:
    """Convert miles to kilometres, rounded to one decimal."""
    if miles is None:
        return None
    return round(miles * KM_PER_MILE, 1)
