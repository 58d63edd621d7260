"""Command modules for consul-governance and the helpers they share."""
from __future__ import annotations

import argparse
import sys
from typing import Final

from consul_governance.config import ConfigError, GovernanceConfig, load_config
from consul_governance.discover.registry import ConsulDriver

EXIT_SUCCESS: Final = 0
EXIT_ERROR: Final = 1


def add_instance_arguments(parser: argparse.ArgumentParser) -> None:
    """Add the ``service host port --protocol`` arguments shared by commands."""
    parser.add_argument("service_name", help="Logical service name.")
    parser.add_argument("host", help="Address the instance listens on.")
    parser.add_argument("port", type=int, help="Port the instance listens on.")
    parser.add_argument(
        "--protocol",
        required=True,
        help="Protocol tag, e.g. jsonrpc-http, jsonrpc, multiplex.default.",
    )
    parser.add_argument(
        "--uri",
        default=None,
        help="Consul base URI (default: from config).",
    )


def load_cli_config(args: argparse.Namespace) -> GovernanceConfig | None:
    """Load the configuration named by ``--config`` and apply ``--uri``.

    Returns:
        The configuration, or None after printing the error.
    """
    try:
        config = load_config(getattr(args, "config", None))
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return None
    uri = getattr(args, "uri", None)
    if uri:
        config.consul.uri = uri
    return config


def build_driver(config: GovernanceConfig) -> ConsulDriver:
    return ConsulDriver(config=config)
