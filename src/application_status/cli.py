"""Command-line entry point for the status reporter daemon."""

from __future__ import annotations

import argparse
import sys

from .config import StatusSettings
from .daemon import run_daemon


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the application status reporter")
    parser.add_argument("--config", help="Path to TOML configuration file")
    parser.add_argument("--time-sync-server", help="SNTP server used for reference time")
    parser.add_argument("--include-ip", action="store_true", help="Report the local IP address")
    parser.add_argument("--interval", type=float, help="Status report interval in seconds")
    return parser


def load_settings(args: argparse.Namespace) -> StatusSettings:
    settings = StatusSettings.from_toml(args.config) if args.config else StatusSettings()
    overrides: dict[str, object] = {}
    if args.time_sync_server is not None:
        overrides["time_sync_server"] = args.time_sync_server
    if args.include_ip:
        overrides["include_ip_address"] = True
    if args.interval is not None:
        overrides["status_update_interval_s"] = args.interval
    if not overrides:
        return settings
    return StatusSettings.model_validate({**settings.model_dump(), **overrides})


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    run_daemon(load_settings(args))
    return 0


if __name__ == "__main__":
    sys.exit(main())
