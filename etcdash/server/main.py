#!/usr/bin/env python3
"""
etcd Cluster Manager - Main entry point.

Runs the dashboard engine against the cluster status service and renders
endpoint cards to the console. Maintenance actions ask for confirmation.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Optional, Tuple

from ..data.models import ActionKind, DashboardState
from ..insights.maintenance import MaintenanceAdvisor
from .config import Config, ConfigError
from .engine import DashboardEngine
from .views import render_state

COMMANDS = ("watch", "status", "compact", "defrag")


def load_config(args) -> Config:
    """Load configuration and apply CLI overrides."""
    config = Config.load(args.config)
    print(f"[config] Loaded: api.base_url={config.api.base_url!r}, "
          f"polling.interval={config.polling.interval!r}", flush=True)

    if args.api_url:
        config.api.base_url = args.api_url
    if args.interval:
        config.polling.interval = args.interval
    if args.timeout:
        config.api.timeout = args.timeout
    if args.insecure:
        config.api.verify = False
    if args.ca_bundle:
        config.api.ca_bundle = args.ca_bundle
    config.validate()
    return config


def _acknowledge(message: str) -> None:
    print(f"[dashboard] {message}", flush=True)


async def watch(config: Config) -> None:
    """Render the dashboard on every visible state change until cancelled."""
    advisor = MaintenanceAdvisor()
    last_key: Optional[Tuple] = None

    def on_change(state: DashboardState) -> None:
        nonlocal last_key
        # Busy-only flips are not worth a redraw
        key = (state.snapshot, state.last_error, state.active_action)
        if key == last_key:
            return
        last_key = key
        print(render_state(state, title=config.ui.title, advisor=advisor), flush=True)
        print(flush=True)

    engine = DashboardEngine.from_config(config, acknowledge=_acknowledge)
    engine.subscribe(on_change)
    print(f"[dashboard] Polling {config.api.base_url} every {config.polling.interval}s", flush=True)
    async with engine:
        await asyncio.Event().wait()


async def show_status(config: Config) -> int:
    engine = DashboardEngine.from_config(config)
    try:
        await engine.refresh_now()
        state = engine.state
        print(render_state(state, title=config.ui.title, advisor=MaintenanceAdvisor()))
        return 1 if state.last_error else 0
    finally:
        await engine.close()


async def run_action(config: Config, kind: ActionKind) -> int:
    engine = DashboardEngine.from_config(config, acknowledge=_acknowledge)
    try:
        outcome = await engine.actions.run(kind)
        if not outcome.ok:
            print(f"[dashboard] {outcome.message}", file=sys.stderr, flush=True)
            return 1
        print(render_state(engine.state, title=config.ui.title))
        return 0
    finally:
        await engine.close()


def confirm(kind: ActionKind) -> bool:
    """Ask the user to confirm an irreversible maintenance action."""
    prompt = f"{kind.verb.capitalize()} the cluster database? This cannot be undone. [y/N] "
    try:
        answer = input(prompt)
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def run(args) -> int:
    try:
        config = load_config(args)
    except ConfigError as exc:
        print(f"[config] {exc}", file=sys.stderr)
        return 2

    if args.command == "status":
        return asyncio.run(show_status(config))

    if args.command in ("compact", "defrag"):
        kind = ActionKind.COMPACT if args.command == "compact" else ActionKind.DEFRAG
        if config.ui.confirm_actions and not args.yes and not confirm(kind):
            print("[dashboard] Aborted.")
            return 1
        return asyncio.run(run_action(config, kind))

    try:
        asyncio.run(watch(config))
    except KeyboardInterrupt:
        print("\n[dashboard] Shutting down...")
    return 0


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="etcd Cluster Manager",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "command",
        nargs="?",
        choices=COMMANDS,
        default="watch",
        help="What to do",
    )
    parser.add_argument("--config", type=str, help="Path to config YAML file")
    parser.add_argument("--api-url", default=None, help="Base URL of the cluster status service")
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Refresh interval in seconds (default from config: 10)",
    )
    parser.add_argument("--timeout", type=float, default=None, help="HTTP timeout in seconds")
    parser.add_argument("--insecure", action="store_true", help="Skip TLS verification")
    parser.add_argument("--ca-bundle", type=str, help="Path to a custom CA bundle")
    parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Do not ask for confirmation before compact/defrag",
    )
    return parser.parse_args(argv)


def main(argv=None):
    """Entry point for the etcdash command."""
    args = parse_args(argv)
    sys.exit(run(args))


if __name__ == "__main__":
    main()
