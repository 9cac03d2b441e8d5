#!/usr/bin/env python3
"""
Main entry point for the Catalog API Connector

Usage:
    python main.py --config store.json --endpoint products/1

    # Or with credentials from environment:
    export CATALOG_STORE_HASH="abc123"
    export CATALOG_OAUTH_TOKEN="..."
    export CATALOG_CLIENT_ID="..."
    python main.py --endpoint products/1/modifiers

    # Write calls take a JSON body:
    python main.py -c store.yaml -m replace -e products/1 -d '{"price": 9.99}'
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

import yaml

from catalog_connector.config_schema import ConnectorConfig
from catalog_connector.errors import ConfigurationError, RemoteError, TransportError
from catalog_connector.runtime import Connector


VERBS = ("fetch", "replace", "create", "remove")


def load_config(path: Optional[str]) -> ConnectorConfig:
    """
    Get connector config from a file or the environment.

    Looks for config in this order:
    1. --config file (JSON or YAML)
    2. CATALOG_* environment variables
    """
    if path:
        return ConnectorConfig.from_file(path)
    return ConnectorConfig.from_env()


async def run(config: ConnectorConfig, verb: str, endpoint: str, data=None):
    """Execute one verb against the store and return the decoded payload."""
    async with Connector.from_config(config) as connector:
        if verb in ("replace", "create"):
            return await getattr(connector, verb)(endpoint, data)
        return await getattr(connector, verb)(endpoint)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Catalog API Connector - CRUD calls against a store's catalog API"
    )
    parser.add_argument(
        "--config", "-c",
        help="Path to connector config file (.json/.yaml); defaults to CATALOG_* env vars"
    )
    parser.add_argument(
        "--method", "-m",
        choices=VERBS,
        default="fetch",
        help="Verb to perform (default: fetch)"
    )
    parser.add_argument(
        "--endpoint", "-e",
        required=True,
        help="Catalog endpoint, e.g. products/1 or /products"
    )
    parser.add_argument(
        "--data", "-d",
        help="JSON request body for replace/create"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show debug logging (attempts, throttle waits)"
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    data = None
    if args.method in ("replace", "create"):
        if not args.data:
            print(f"Error: --data is required for {args.method}")
            return 1
        try:
            data = json.loads(args.data)
        except json.JSONDecodeError as e:
            print(f"Error: Invalid JSON in --data: {e}")
            return 1

    # Load config
    try:
        config = load_config(args.config)
    except FileNotFoundError:
        print(f"Error: Config file not found: {args.config}")
        return 1
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        print(f"Error: Invalid config file: {e}")
        return 1
    except ConfigurationError as e:
        print(f"Error: {e}")
        return 1

    try:
        result = asyncio.run(run(config, args.method, args.endpoint, data))
    except ConfigurationError as e:
        print(f"Error: {e}")
        return 1
    except TransportError as e:
        print(f"Error: {e}")
        return 1
    except RemoteError as e:
        print(f"Error: {e}")
        if e.status_code:
            print(f"Status code: {e.status_code}")
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
