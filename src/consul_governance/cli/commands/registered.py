"""Registration lookup command for consul-governance."""
from __future__ import annotations

import argparse
import asyncio
import sys

from consul_governance.cli.commands import (
    EXIT_ERROR,
    EXIT_SUCCESS,
    add_instance_arguments,
    build_driver,
    load_cli_config,
)
from consul_governance.exceptions import GovernanceException

__all__ = ["register_parser", "run"]


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser(
        "registered",
        help="Check whether a service instance is registered.",
        description="Exits 0 when the instance is registered, 1 otherwise.",
    )
    parser.set_defaults(handler=run)
    add_instance_arguments(parser)


def run(args: argparse.Namespace) -> int:
    config = load_cli_config(args)
    if config is None:
        return EXIT_ERROR
    try:
        registered = asyncio.run(_is_registered(config, args))
    except GovernanceException as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_ERROR
    state = "registered" if registered else "not registered"
    print(f"{args.service_name} {args.host}:{args.port} ({args.protocol}) is {state}")
    return EXIT_SUCCESS if registered else EXIT_ERROR


async def _is_registered(config, args: argparse.Namespace) -> bool:
    async with build_driver(config) as governance:
        return await governance.is_registered(
            args.service_name, args.host, args.port, {"protocol": args.protocol}
        )
