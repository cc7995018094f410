"""One poll tick: wire the components, run the poller, record the outcome."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

from teslapoll._transport import Transport
from teslapoll.budget import WakeBudget
from teslapoll.client import FleetClient
from teslapoll.config import PollerConfig
from teslapoll.credentials import CredentialStore
from teslapoll.models.outcome import Fatal, PollOutcome, QuietBlocked, QuotaBlocked, Success, Timeout
from teslapoll.poller import AvailabilityPoller
from teslapoll.registration import RegistrationGuard
from teslapoll.runstate import RunStateStore
from teslapoll.telemetry_log import TelemetryLog

_logger = logging.getLogger(__name__)


def exit_code(outcome: PollOutcome, config: PollerConfig) -> int:
    """Process exit status for *outcome*."""
    if isinstance(outcome, Success | QuotaBlocked):
        return 0
    if isinstance(outcome, QuietBlocked):
        return 0 if config.exit_zero_on_quiet else 1
    return 1


def _summarize(outcome: PollOutcome) -> None:
    if isinstance(outcome, Success):
        snap = outcome.snapshot
        _logger.info(
            "SOC %s%% charging=%s range=%s km (%s)",
            snap.soc_percent,
            snap.is_charging,
            snap.range_km,
            "woken" if outcome.woke else "already awake",
        )
    elif isinstance(outcome, QuietBlocked):
        _logger.info("Skipped: quiet window %s", outcome.window)
    elif isinstance(outcome, QuotaBlocked):
        _logger.info("Skipped: wake quota %d/%d", outcome.count, outcome.max_per_day)
    elif isinstance(outcome, Timeout):
        _logger.error("Timed out after %d post-wake attempts", outcome.attempts)
    elif isinstance(outcome, Fatal):
        _logger.error("Failed: %s", outcome.error)


async def run_once(
    config: PollerConfig,
    *,
    transport: Transport | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> PollOutcome:
    """Run a single poll tick and append its outcome to the log.

    Parameters
    ----------
    config : PollerConfig
        Validated configuration.
    transport : Transport or None
        Injected HTTP backend. When ``None`` an aiohttp session is opened
        for the duration of the tick.
    sleep : callable
        Awaitable sleep used between post-wake reads.

    Returns
    -------
    PollOutcome
        The terminal outcome, already written to ``config.log_file``.
    """
    log = TelemetryLog(config.log_file)

    try:
        async with FleetClient(config, transport=transport) as client:
            credentials = CredentialStore(config, client.transport)
            poller = AvailabilityPoller(
                config,
                credentials=credentials,
                api=client,
                registration=RegistrationGuard(config, client.transport),
                budget=WakeBudget(config.wake_counter_file, clock=config.local_now),
                run_state=RunStateStore(config.state_path, history_days=config.history_days),
                clock=config.local_now,
                sleep=sleep,
            )
            outcome = await poller.run()
    except Exception as exc:
        log.append(Fatal(exc), api_region=config.region, ts=datetime.now(UTC))
        raise

    log.append(outcome, api_region=config.region, ts=datetime.now(UTC))
    _summarize(outcome)
    return outcome
