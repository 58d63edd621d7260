"""Register command for consul-governance."""
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
from consul_governance.discover.entities import RegistrationKey
from consul_governance.exceptions import GovernanceException

__all__ = ["register_parser", "run"]


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser(
        "register",
        help="Register a service instance unless it is already registered.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  consul-governance register order-service 10.0.0.5 9000 --protocol jsonrpc-http
  consul-governance register order-service 10.0.0.5 9001 --protocol jsonrpc --id order-service-a
        """,
    )
    parser.set_defaults(handler=run)
    add_instance_arguments(parser)
    parser.add_argument(
        "--id",
        default=None,
        help="Explicit instance id (default: next free <service>-<N>).",
    )


def run(args: argparse.Namespace) -> int:
    config = load_cli_config(args)
    if config is None:
        return EXIT_ERROR
    metadata = {"protocol": args.protocol, "id": args.id}
    try:
        registered = asyncio.run(_register(config, args, metadata))
    except GovernanceException as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_ERROR

    if registered:
        print(f"Service {args.service_name} is registered at {args.host}:{args.port}")
        return EXIT_SUCCESS
    print(f"Service {args.service_name} could not be registered", file=sys.stderr)
    return EXIT_ERROR


async def _register(config, args: argparse.Namespace, metadata: dict) -> bool:
    async with build_driver(config) as governance:
        await governance.ensure_registered(args.service_name, args.host, args.port, metadata)
        key = RegistrationKey(args.service_name, args.protocol, args.host, args.port)
        return governance.registered_services.has(key)
