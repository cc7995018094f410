"""High-level async client for the Tesla Fleet API."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

import aiohttp

from teslapoll._transport import HttpTransport, Transport
from teslapoll.classify import reclassify
from teslapoll.config import PollerConfig
from teslapoll.exceptions import FleetApiError, TeslaPollError, TransportError, VehicleNotFoundError
from teslapoll.models.snapshot import VehicleSnapshot
from teslapoll.models.wake import WakeResult

_logger = logging.getLogger(__name__)


class FleetClient:
    """Async client for the vehicle endpoints used by the poller.

    Usage::

        async with FleetClient(config) as client:
            snapshot = await client.read_vehicle_data(token)

    Failures are raised as the :mod:`teslapoll.classify` exception type for
    their failure class (``UnavailableError``, ``RegistrationError``,
    ``AuthError`` or ``TransportError``).
    """

    def __init__(
        self,
        config: PollerConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        self._owns_transport = transport is None
        self._vehicle_id: str | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> FleetClient:
        if self._owns_transport:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._http_session, timeout=self._config.request_timeout)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if self._owns_transport:
            self._transport = None

    @property
    def transport(self) -> Transport:
        return self._require_transport()

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise TeslaPollError("Client not initialized. Use 'async with FleetClient(...) as client:'")
        return self._transport

    async def _request(
        self,
        method: str,
        path: str,
        token: str,
        *,
        json_body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        transport = self._require_transport()
        try:
            return await transport.request_json(
                method,
                f"{self._config.api_base}{path}",
                token=token,
                json_body=json_body,
            )
        except FleetApiError as exc:
            classified = reclassify(exc)
            if classified is exc:
                raise
            raise classified from exc

    # ------------------------------------------------------------------
    # Vehicles
    # ------------------------------------------------------------------

    async def list_vehicles(self, token: str) -> list[dict[str, Any]]:
        """Fetch all vehicles on the account."""
        data = await self._request("GET", "/vehicles", token)
        vehicles = data.get("response", data.get("vehicles"))
        if not isinstance(vehicles, list):
            return []
        return [v for v in vehicles if isinstance(v, dict)]

    async def resolve_vehicle_id(self, token: str) -> str:
        """Map the configured vehicle tag (id or VIN) to a vehicle id.

        A numeric tag is used directly. The result is cached for the
        lifetime of the client.
        """
        if self._vehicle_id is not None:
            return self._vehicle_id

        tag = self._config.vehicle_tag.strip()
        if tag.isdigit():
            self._vehicle_id = tag
            return tag

        vehicles = await self.list_vehicles(token)
        if not vehicles:
            raise VehicleNotFoundError("No vehicles found on the account")

        vin_upper = tag.upper()
        for vehicle in vehicles:
            vehicle_id = str(vehicle.get("id") or vehicle.get("vehicle_id") or "").strip()
            if str(vehicle.get("vin") or "").upper() == vin_upper or vehicle_id == tag:
                self._vehicle_id = vehicle_id
                _logger.debug("Resolved vehicle tag %s to id %s", tag, vehicle_id)
                return vehicle_id

        vins = ", ".join(str(v["vin"]) for v in vehicles if v.get("vin"))
        raise VehicleNotFoundError(f"Vehicle {tag} not found. Available VINs: {vins}")

    async def read_vehicle_data(self, token: str) -> VehicleSnapshot:
        """Read and normalize ``/vehicles/{id}/vehicle_data``."""
        vehicle_id = await self.resolve_vehicle_id(token)
        endpoint = f"/vehicles/{vehicle_id}/vehicle_data"
        data = await self._request("GET", endpoint, token)
        response = data.get("response")
        if not isinstance(response, dict):
            raise TransportError(f"Missing 'response' object from {endpoint}", endpoint=endpoint)
        return VehicleSnapshot.from_vehicle_data(response, read_at=datetime.now(UTC))

    async def wake_up(self, token: str) -> WakeResult:
        """Ask the vehicle to wake up.

        Best effort: some regions answer with a non-2xx status even though
        the wake was accepted, so request failures are returned as a warning.
        """
        try:
            vehicle_id = await self.resolve_vehicle_id(token)
            data = await self._request("POST", f"/vehicles/{vehicle_id}/wake_up", token, json_body={})
        except FleetApiError as exc:
            warning = exc.error_text or str(exc)
            _logger.warning("wake_up warning: %s", warning)
            return WakeResult(issued=exc.status_code is not None, warning=warning)

        response = data.get("response")
        state = response.get("state") if isinstance(response, dict) else None
        if not data:
            _logger.warning("wake_up returned an empty response")
            return WakeResult(issued=True, warning="empty response")
        return WakeResult(issued=True, vehicle_state=str(state) if state is not None else None)
