"""Command-line client for PIN-based clock in/out."""
from __future__ import annotations

import argparse
from datetime import datetime
from typing import Callable, Sequence

from pinclock.api_client import ApiError, AuthenticationError, ClockApiClient
from pinclock.clocking import PinClocking
from pinclock.config import PinClockConfig
from pinclock.geolocation import Coordinates, StaticLocator
from pinclock.lockout_state import LockoutStateStore
from pinclock.logging_setup import configure_logging
from pinclock.pin_prompt import PinPrompt
from pinclock.session import ClockAction


def _build_api(config: PinClockConfig) -> ClockApiClient:
    return ClockApiClient(config.api_base_url, timeout=config.request_timeout_seconds)


def cmd_clock(args: argparse.Namespace, config: PinClockConfig) -> int:
    locator = None
    if args.latitude is not None and args.longitude is not None:
        try:
            locator = StaticLocator(Coordinates(args.latitude, args.longitude))
        except ValueError as exc:
            print(f"Invalid coordinates: {exc}")
            return 2
    clocking = PinClocking(_build_api(config), locator, pin_length=config.pin_length)
    prompt = PinPrompt(
        clocking.verifier_for(use_location=not args.no_location),
        config=config,
        lockout_store=LockoutStateStore(config),
    )
    try:
        outcome = prompt.run(args.action, args.site, employee_name=args.employee_name)
    except KeyboardInterrupt:
        print()
        return 130
    if outcome.cancelled:
        print("Cancelled")
        return 1
    verb = "in" if ClockAction(args.action) is ClockAction.CLOCK_IN else "out"
    name = outcome.result.employee_name
    print(f"Thank you for clocking {verb}{', ' + name if name else ''}")
    return 0


def cmd_sites(_: argparse.Namespace, config: PinClockConfig) -> int:
    try:
        sites = _build_api(config).get_sites()
    except ApiError as exc:
        print(f"Error fetching sites: {exc}")
        return 1
    if not sites:
        print("No sites configured.")
        return 0
    for site in sites:
        print(f"{site.get('siteId', site.get('id', '-'))}\t{site.get('name', '-')}")
    return 0


def cmd_recent(args: argparse.Namespace, config: PinClockConfig) -> int:
    try:
        logs = _build_api(config).get_recent_logs(limit=args.limit)
    except AuthenticationError as exc:
        print("Session expired; log in again." if exc.expired else f"Not authorized: {exc}")
        return 1
    except ApiError as exc:
        print(f"Error fetching recent logs: {exc}")
        return 1
    for entry in logs:
        print(
            f"{entry.get('clockIn') or '-'}\t{entry.get('clockOut') or '-'}\t{entry.get('hoursWorked', '-')}"
        )
    return 0


def cmd_lockout_status(_: argparse.Namespace, config: PinClockConfig) -> int:
    store = LockoutStateStore(config)
    records = [r for r in store.list_records() if store.remaining_seconds(r.site_id) > 0]
    if not records:
        print("Lockout: inactive")
        return 0
    for record in records:
        until = datetime.fromtimestamp(record.lock_until).isoformat(timespec="seconds")
        print(f"site={record.site_id}\tlocked until {until}")
    return 0


def cmd_reset_lockout(args: argparse.Namespace, config: PinClockConfig) -> int:
    store = LockoutStateStore(config)
    if args.site:
        store.clear(args.site)
        print(f"Lockout cleared for site {args.site}")
    else:
        store.reset_all()
        print("Lockout counters cleared")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="PinClock time clock client")
    parser.add_argument("--api-url", dest="api_url", help="Clock API base URL")
    parser.add_argument(
        "--console-log",
        action="store_true",
        help="Mirror log output to this console",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    clock_parser = subparsers.add_parser("clock", help="Clock in or out with a PIN")
    clock_parser.add_argument("--site", required=True, help="Site identifier")
    clock_parser.add_argument(
        "--action",
        choices=[action.value for action in ClockAction],
        default=ClockAction.CLOCK_IN.value,
        help="Clock action selected by the employee's current status",
    )
    clock_parser.add_argument("--employee-name", dest="employee_name", help="Name shown in the prompt")
    clock_parser.add_argument("--lat", dest="latitude", type=float, help="Fixed kiosk latitude")
    clock_parser.add_argument("--lon", dest="longitude", type=float, help="Fixed kiosk longitude")
    clock_parser.add_argument(
        "--no-location",
        action="store_true",
        help="Send clock actions without coordinates",
    )

    subparsers.add_parser("sites", help="List clock sites")
    recent_parser = subparsers.add_parser("recent", help="Show your recent clock logs")
    recent_parser.add_argument("--limit", type=int, default=7)
    subparsers.add_parser("lockout-status", help="Show active PIN lockouts")
    reset_parser = subparsers.add_parser("reset-lockout", help="Clear stored lockouts")
    reset_parser.add_argument("--site", help="Only clear this site")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "clock" and (args.latitude is None) != (args.longitude is None):
        parser.error("--lat and --lon must be given together")
    config = PinClockConfig.from_env()
    if args.api_url:
        config.api_base_url = args.api_url.rstrip("/")
    configure_logging(config, force_console=args.console_log or None)

    commands: dict[str, Callable[[argparse.Namespace, PinClockConfig], int]] = {
        "clock": cmd_clock,
        "sites": cmd_sites,
        "recent": cmd_recent,
        "lockout-status": cmd_lockout_status,
        "reset-lockout": cmd_reset_lockout,
    }
    handler = commands[args.command]
    return handler(args, config)


if __name__ == "__main__":
    raise SystemExit(main())
