"""Command-line entry point.

Usage::

    teslapoll [-v] [poll]
    teslapoll seed --refresh-token TOKEN
    teslapoll register [--check]
    teslapoll status

Configuration is read from the environment (see :class:`PollerConfig`).
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from teslapoll._storage import read_json
from teslapoll.client import FleetClient
from teslapoll.config import PollerConfig
from teslapoll.credentials import CredentialStore
from teslapoll.exceptions import ConfigError, TeslaPollError
from teslapoll.models.credential import Credential
from teslapoll.registration import RegistrationGuard
from teslapoll.runner import exit_code, run_once
from teslapoll.runstate import RunStateStore

_logger = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="teslapoll", description="Poll a Tesla vehicle and log its charge state")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("poll", help="Run one poll tick (default)")

    seed = sub.add_parser("seed", help="Store a refresh token for the first run")
    seed.add_argument(
        "--refresh-token",
        default=os.environ.get("TESLA_REFRESH_TOKEN", ""),
        help="OAuth refresh token (default: $TESLA_REFRESH_TOKEN)",
    )

    register = sub.add_parser("register", help="Register the partner domain in the configured region")
    register.add_argument("--check", action="store_true", help="Only report whether the domain is registered")

    sub.add_parser("status", help="Print wake counter, run state and token expiry as JSON")
    return parser.parse_args(argv)


async def _poll(config: PollerConfig) -> int:
    config.validate()
    outcome = await run_once(config)
    return exit_code(outcome, config)


async def _seed(config: PollerConfig, refresh_token: str) -> int:
    async with FleetClient(config) as client:
        store = CredentialStore(config, client.transport)
        store.seed(refresh_token)
    print(f"Refresh token stored in {store.path}")
    return 0


async def _register(config: PollerConfig, *, check_only: bool) -> int:
    config.validate()
    domain = config.partner_domain
    if not domain:
        raise ConfigError("TESLA_PARTNER_DOMAIN is not set")

    async with FleetClient(config) as client:
        token = await CredentialStore(config, client.transport).get_valid_access_token()
        guard = RegistrationGuard(config, client.transport)
        if not check_only:
            await guard.ensure_registered(domain, token, reactive=True)
        registered = await guard.check_registered(domain, token)

    print(json.dumps({"domain": domain, "region": config.region, "registered": registered}))
    return 0 if registered else 1


def _status(config: PollerConfig) -> int:
    token_info: dict[str, Any] | None = None
    raw_credential = read_json(config.tokens_path)
    if raw_credential is not None:
        try:
            credential = Credential.model_validate(raw_credential)
        except ValidationError:
            token_info = {"valid": False}
        else:
            token_info = {
                "valid": True,
                "has_refresh_token": bool(credential.refresh_token),
                "expires_at": credential.expires_at.isoformat() if credential.expires_at else None,
                "expired": credential.is_expired(datetime.now(UTC)),
            }

    run_state = RunStateStore(config.state_path, history_days=config.history_days).load()
    status = {
        "wake_counter": read_json(config.wake_counter_file),
        "max_wakes_per_day": config.max_wakes_per_day,
        "run_state": run_state.model_dump(mode="json"),
        "token": token_info,
    }
    print(json.dumps(status, indent=2))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    command = args.command or "poll"
    try:
        config = PollerConfig.from_env()
        if command == "poll":
            return asyncio.run(_poll(config))
        if command == "seed":
            return asyncio.run(_seed(config, args.refresh_token))
        if command == "register":
            return asyncio.run(_register(config, check_only=args.check))
        return _status(config)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2
    except TeslaPollError as exc:
        _logger.error("%s failed: %s", command, exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
