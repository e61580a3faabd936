"""Command-line interface for deskpilot.

Usage:
    python -m deskpilot config            # print the merged configuration
    python -m deskpilot history [-n 10]   # list recent runs
    python -m deskpilot models            # list known models and credential status
"""

from __future__ import annotations

import argparse
import dataclasses
import enum
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import yaml

from deskpilot.logging import get_logger, setup_logging

log = get_logger()


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="deskpilot",
        description="Desktop copilot agent engine",
    )
    parser.add_argument("--version", action="version", version="%(prog)s 0.1.0")
    parser.add_argument(
        "--project",
        type=Path,
        help="Project root for .deskpilot/config.yaml (default: current directory)",
    )

    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("config", help="Print the merged configuration as YAML")

    history_parser = subparsers.add_parser("history", help="List recent runs")
    history_parser.add_argument("-n", "--limit", type=int, default=10, help="Number of runs to show")
    history_parser.add_argument("--show", metavar="RUN_ID", help="Print one run in full")

    subparsers.add_parser("models", help="List catalogue models and whether credentials are set")

    return parser


def _plain(value: Any) -> Any:
    """Dataclass tree -> YAML-safe builtins."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def cmd_config(config: Any) -> int:
    print(yaml.safe_dump(_plain(config), default_flow_style=False, sort_keys=False), end="")
    return 0


def cmd_history(config: Any, limit: int, show: str | None) -> int:
    from deskpilot.agent.history import RunHistoryStore
    from deskpilot.config import resolve_data_dir

    store = RunHistoryStore(resolve_data_dir(config.history.root, "history"))
    if show:
        record = store.load(show)
        if record is None:
            print(f"No run with id {show}")
            return 1
        print(yaml.safe_dump(record.to_dict(), default_flow_style=False, sort_keys=False, allow_unicode=True), end="")
        return 0

    records = store.recent(limit)
    if not records:
        print("No runs recorded.")
        return 0
    for record in records:
        print(f"{record.run_id}  {record.summary()}")
    return 0


def cmd_models() -> int:
    from deskpilot.core.llm.credentials import list_models

    for info in list_models():
        status = "ok" if info.available else "no key"
        print(f"{info.model_id:40} {info.provider:10} {info.context_length:>9}  {status}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    from deskpilot.config import load_config

    parser = create_parser()
    args = parser.parse_args(argv)

    config = load_config(project_root=str(args.project) if args.project else None)
    setup_logging(config.logging)

    if args.command == "config":
        return cmd_config(config)
    if args.command == "history":
        return cmd_history(config, args.limit, args.show)
    if args.command == "models":
        return cmd_models()

    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
