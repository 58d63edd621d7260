from __future__ import annotations

import argparse
import importlib
import logging
from collections.abc import Callable, Sequence

from consul_governance.observability.logging import (
    LOG_FORMAT_CONSOLE,
    LOG_FORMAT_JSON,
    configure_logging,
)

SubparsersAction = argparse._SubParsersAction  # Runtime-safe alias for type hints
CommandRegistrar = Callable[[SubparsersAction], None]

_COMMAND_MODULES: dict[str, str] = {
    "nodes": "consul_governance.cli.commands.nodes",
    "register": "consul_governance.cli.commands.register",
    "registered": "consul_governance.cli.commands.registered",
    "version": "consul_governance.cli.commands.version",
}


def _load_registrar(module_path: str) -> CommandRegistrar:
    module = importlib.import_module(module_path)
    registrar = getattr(module, "register_parser", None)
    if not callable(registrar):
        raise ValueError(
            f"Command module '{module_path}' must expose a callable 'register_parser'"
        )
    return registrar


def _configure_logging(verbose: bool, quiet: bool, log_format: str | None) -> None:
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    configure_logging(level, log_format=log_format)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="consul-governance",
        description="Register and discover services in a Consul registry",
    )

    log_group = parser.add_mutually_exclusive_group()
    log_group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging output.",
    )
    log_group.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress info logs; show warnings and errors only.",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to a YAML configuration file.",
    )
    parser.add_argument(
        "--log-format",
        choices=[LOG_FORMAT_CONSOLE, LOG_FORMAT_JSON],
        default=None,
        help="Log output format (default: $CONSUL_GOVERNANCE_LOG_FORMAT or console).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    for module_path in _COMMAND_MODULES.values():
        _load_registrar(module_path)(subparsers)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(
        verbose=bool(getattr(args, "verbose", False)),
        quiet=bool(getattr(args, "quiet", False)),
        log_format=getattr(args, "log_format", None),
    )
    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 1
    result = handler(args)
    return int(result) if isinstance(result, int) else 0


__all__ = ["build_parser", "main"]
