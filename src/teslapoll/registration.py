"""Partner domain registration with the Fleet API.

Endpoints:
  - POST /partner_accounts (register)
  - GET /partner_accounts/public_key?domain= (status check)

Registration is attempted unconditionally: the platform treats
re-registering an already registered domain as a no-op.
"""

from __future__ import annotations

import logging

from teslapoll._transport import Transport
from teslapoll.classify import FailureClass, classify
from teslapoll.config import PollerConfig
from teslapoll.exceptions import FleetApiError, RegistrationError

_logger = logging.getLogger(__name__)

REGISTER_PATH = "/partner_accounts"
PUBLIC_KEY_PATH = "/partner_accounts/public_key"


class RegistrationGuard:
    """Make sure the partner domain is registered before data calls are trusted.

    Proactive calls (once per run) never fail the run. Reactive calls, made
    after a read reported the domain as unregistered, raise
    :class:`RegistrationError` because the read cannot succeed without them.
    """

    def __init__(self, config: PollerConfig, transport: Transport) -> None:
        self._config = config
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return self._config.auto_partner_register

    async def ensure_registered(self, domain: str, token: str, *, reactive: bool = False) -> None:
        if not self.enabled:
            if reactive:
                raise RegistrationError("Partner domain is not registered and AUTO_PARTNER_REGISTER is off")
            return
        if not domain:
            if reactive:
                raise RegistrationError("Partner domain is not registered and TESLA_PARTNER_DOMAIN is not set")
            _logger.warning("AUTO_PARTNER_REGISTER is on but TESLA_PARTNER_DOMAIN is not set; skipping")
            return

        try:
            await self._transport.request_json(
                "POST",
                f"{self._config.api_base}{REGISTER_PATH}",
                token=token,
                json_body={"domain": domain},
            )
        except FleetApiError as exc:
            if reactive:
                raise RegistrationError(
                    f"Partner registration for {domain} failed: {exc}",
                    status_code=exc.status_code,
                    endpoint=exc.endpoint,
                    error_text=exc.error_text,
                    timed_out=exc.timed_out,
                ) from exc
            _logger.warning("Partner registration for %s not completed: %s", domain, exc.error_text or exc)
            return

        _logger.info("Partner domain verified/registered: %s", domain)

    async def check_registered(self, domain: str, token: str) -> bool:
        """Whether the platform knows a public key for *domain*.

        A 404 or a registration-class error means "not registered"; other
        failures propagate.
        """
        try:
            data = await self._transport.request_json(
                "GET",
                f"{self._config.api_base}{PUBLIC_KEY_PATH}",
                token=token,
                params={"domain": domain},
            )
        except FleetApiError as exc:
            if exc.status_code == 404 or classify(exc) is FailureClass.REGISTRATION:
                return False
            raise
        response = data.get("response")
        return isinstance(response, dict) and bool(response.get("public_key"))
