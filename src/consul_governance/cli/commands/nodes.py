"""Node discovery command for consul-governance.

Lists the healthy nodes of a service that speak the requested protocol.
"""
from __future__ import annotations

import argparse
import asyncio
import json
import sys

from consul_governance.cli.commands import EXIT_ERROR, EXIT_SUCCESS, build_driver, load_cli_config
from consul_governance.discover.entities import DiscoveredNode
from consul_governance.exceptions import GovernanceException

__all__ = ["register_parser", "run"]


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the nodes command subparser.

    Args:
        subparsers: The argparse subparsers action to add to.
    """
    parser = subparsers.add_parser(
        "nodes",
        help="List healthy nodes of a service.",
        description="Query the registry health endpoint for passing nodes of a service.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  consul-governance nodes order-service --protocol jsonrpc-http
  consul-governance nodes order-service --protocol jsonrpc --format json
  consul-governance nodes order-service --protocol jsonrpc --uri http://consul:8500
        """,
    )
    parser.set_defaults(handler=run)
    parser.add_argument("service_name", help="Name of the service to query.")
    parser.add_argument(
        "--protocol",
        default=None,
        help="Only list nodes tagged with this protocol (untagged nodes always match).",
    )
    parser.add_argument(
        "--uri",
        default=None,
        help="Consul base URI (default: from config).",
    )
    parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text).",
    )


def run(args: argparse.Namespace) -> int:
    """Execute the nodes command.

    Returns:
        Exit code (0=success, 1=error).
    """
    config = load_cli_config(args)
    if config is None:
        return EXIT_ERROR
    try:
        nodes = asyncio.run(_get_nodes(config, args))
    except GovernanceException as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_ERROR

    if args.format == "json":
        _print_nodes_json(args.service_name, nodes)
    else:
        _print_nodes_text(args.service_name, nodes)
    return EXIT_SUCCESS


async def _get_nodes(config, args: argparse.Namespace) -> list[DiscoveredNode]:
    async with build_driver(config) as governance:
        return await governance.get_nodes(
            config.consul.uri, args.service_name, {"protocol": args.protocol}
        )


def _print_nodes_text(service_name: str, nodes: list[DiscoveredNode]) -> None:
    if not nodes:
        print(f"No healthy nodes found for service '{service_name}'")
        return
    for i, node in enumerate(nodes, 1):
        print(f"[{i}] {node.host}:{node.port}")


def _print_nodes_json(service_name: str, nodes: list[DiscoveredNode]) -> None:
    output = {
        "service": service_name,
        "nodes": [node.model_dump() for node in nodes],
    }
    print(json.dumps(output, indent=2))
