"""Availability poller: read, decide whether to wake, retry after waking.

State machine::

    IDLE -> READING -> AVAILABLE                                   -> TERMINAL
                    -> UNAVAILABLE -> DECIDING -> (quiet | quota)   -> TERMINAL
                                              -> WAKING -> POLLING_AFTER_WAKE
                                                 -> AVAILABLE | TIMED_OUT -> TERMINAL

A registration failure on the first read triggers one reactive
registration and one more read. Any failure that is neither "unavailable"
nor "registration" ends the run as :class:`Fatal` from whatever state the
poller is in.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from enum import StrEnum
from typing import Protocol

from teslapoll.budget import WakeBudget
from teslapoll.classify import reclassify
from teslapoll.config import PollerConfig
from teslapoll.exceptions import (
    FleetApiError,
    RegistrationError,
    TeslaPollError,
    UnavailableError,
    WakeDisabledError,
)
from teslapoll.models.outcome import Fatal, PollOutcome, QuietBlocked, QuotaBlocked, Success, Timeout
from teslapoll.models.snapshot import VehicleSnapshot
from teslapoll.models.wake import WakeResult
from teslapoll.quiet import is_quiet, parse_quiet_window
from teslapoll.registration import RegistrationGuard
from teslapoll.runstate import RunStateStore

_logger = logging.getLogger(__name__)


class TokenProvider(Protocol):
    async def get_valid_access_token(self) -> str:
        ...


class VehicleApi(Protocol):
    async def read_vehicle_data(self, token: str) -> VehicleSnapshot:
        ...

    async def wake_up(self, token: str) -> WakeResult:
        ...


class PollerState(StrEnum):
    IDLE = "idle"
    READING = "reading"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    DECIDING = "deciding"
    WAKING = "waking"
    POLLING_AFTER_WAKE = "polling_after_wake"
    TIMED_OUT = "timed_out"
    TERMINAL = "terminal"


class AvailabilityPoller:
    """Run one poll tick and return its :data:`PollOutcome`.

    Parameters
    ----------
    config : PollerConfig
        Wake policy, quiet window, wake budget and post-wake retry settings.
    credentials : TokenProvider
        Source of a valid access token (normally a ``CredentialStore``).
    api : VehicleApi
        Vehicle read/wake surface (normally a ``FleetClient``).
    registration : RegistrationGuard
        Proactive and reactive partner registration.
    budget : WakeBudget
        Daily wake counter.
    run_state : RunStateStore or None
        When given, every read attempt, wake and success is recorded.
    clock : callable
        Returns the current local time; used for the quiet window.
    sleep : callable
        Awaitable sleep used between post-wake reads.
    """

    def __init__(
        self,
        config: PollerConfig,
        *,
        credentials: TokenProvider,
        api: VehicleApi,
        registration: RegistrationGuard,
        budget: WakeBudget,
        run_state: RunStateStore | None = None,
        clock: Callable[[], datetime] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._config = config
        self._credentials = credentials
        self._api = api
        self._registration = registration
        self._budget = budget
        self._run_state = run_state
        self._clock = clock or config.local_now
        self._sleep = sleep
        self._quiet_window = parse_quiet_window(config.quiet_window)
        if self._quiet_window is None and config.quiet_window.strip():
            _logger.warning("Ignoring malformed QUIET_WINDOW %r", config.quiet_window)

        self.state = PollerState.IDLE
        self.read_attempts = 0
        self.post_wake_attempts = 0
        self.wake_result: WakeResult | None = None

    def _transition(self, state: PollerState) -> None:
        _logger.debug("Poller %s -> %s", self.state, state)
        self.state = state

    async def run(self) -> PollOutcome:
        try:
            outcome = await self._run()
        except TeslaPollError as exc:
            _logger.error("Poll failed in state %s: %s", self.state, exc)
            outcome = Fatal(exc)
        self._transition(PollerState.TERMINAL)
        return outcome

    async def _run(self) -> PollOutcome:
        token = await self._credentials.get_valid_access_token()
        await self._registration.ensure_registered(self._config.partner_domain, token)

        try:
            snapshot = await self._read_with_registration_retry()
        except UnavailableError as exc:
            self._transition(PollerState.UNAVAILABLE)
            _logger.info("Vehicle unavailable: %s", exc.error_text or exc)
        else:
            return self._succeed(snapshot, woke=False)

        blocked = self._decide()
        if blocked is not None:
            return blocked

        await self._wake()
        return await self._poll_after_wake()

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    async def _read(self) -> VehicleSnapshot:
        token = await self._credentials.get_valid_access_token()
        self.read_attempts += 1
        if self._run_state is not None:
            self._run_state.record_poll()
        try:
            return await self._api.read_vehicle_data(token)
        except FleetApiError as exc:
            classified = reclassify(exc)
            if classified is exc:
                raise
            raise classified from exc

    async def _read_with_registration_retry(self) -> VehicleSnapshot:
        self._transition(PollerState.READING)
        try:
            return await self._read()
        except RegistrationError as exc:
            _logger.info("Partner domain not registered in this region (%s); registering and retrying", exc)

        token = await self._credentials.get_valid_access_token()
        await self._registration.ensure_registered(self._config.partner_domain, token, reactive=True)
        return await self._read()

    def _succeed(self, snapshot: VehicleSnapshot, *, woke: bool) -> Success:
        self._transition(PollerState.AVAILABLE)
        if self._run_state is not None:
            self._run_state.record_success()
        return Success(snapshot=snapshot, woke=woke)

    # ------------------------------------------------------------------
    # Wake decision
    # ------------------------------------------------------------------

    def _decide(self) -> QuietBlocked | QuotaBlocked | None:
        self._transition(PollerState.DECIDING)

        if self._quiet_window is not None and is_quiet(self._quiet_window, self._clock()):
            _logger.warning("Read skipped: vehicle unavailable during quiet window (%s)", self._quiet_window)
            return QuietBlocked(window=str(self._quiet_window))

        if not self._config.wake_policy.allows_wake:
            raise WakeDisabledError("Vehicle unavailable and wake policy 'never' does not allow waking it")

        max_per_day = self._config.max_wakes_per_day
        if self._budget.remaining_today(max_per_day) == 0:
            count = self._budget.load().count
            _logger.warning("Wake skipped: daily limit reached (%d/%d)", count, max_per_day)
            return QuotaBlocked(count=count, max_per_day=max_per_day)
        return None

    async def _wake(self) -> None:
        self._transition(PollerState.WAKING)
        _logger.info("Waking vehicle")
        token = await self._credentials.get_valid_access_token()
        self.wake_result = await self._api.wake_up(token)
        self._budget.increment()
        if self._run_state is not None:
            self._run_state.record_wake()

    async def _poll_after_wake(self) -> Success | Timeout:
        self._transition(PollerState.POLLING_AFTER_WAKE)
        max_attempts = self._config.post_wake_attempts
        for attempt in range(1, max_attempts + 1):
            await self._sleep(self._config.post_wake_delay)
            self.post_wake_attempts = attempt
            try:
                snapshot = await self._read()
            except UnavailableError:
                _logger.debug("Vehicle still unavailable after wake (attempt %d/%d)", attempt, max_attempts)
                continue
            _logger.info("Vehicle awake after %d attempt(s)", attempt)
            return self._succeed(snapshot, woke=True)

        self._transition(PollerState.TIMED_OUT)
        _logger.error("Vehicle did not wake after %d attempts", max_attempts)
        return Timeout(attempts=max_attempts)
