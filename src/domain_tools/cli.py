"""
Command-line interface for the domain tools.

  domain-tools resolve example.com --ip-version both
  domain-tools serve --port 3000

`resolve` mirrors a single resolve_hostname tool call: validate, resolve, print
the encoded report. A report with "failed": true is still exit code 0; only bad
input (2) or an encoder failure (1) is an error.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

import uvicorn

from reporting import EncodingError
from resolution.errors import InvalidArgument
from resolution.lookup import RESOLVERS

from .app import create_app
from .config import ConfigError, Settings
from .tools import ToolRegistry, build_registry

log = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="domain-tools", description="Domain and network diagnostic tools")
    p.add_argument("--timeout", type=float, default=None, help="Timeout for DNS lookups (seconds)")
    p.add_argument("--resolver", choices=sorted(RESOLVERS), default=None, help="Address lookup backend")
    p.add_argument("--log-level", default=None, help="Logging level (DEBUG, INFO, WARNING, ...)")

    sub = p.add_subparsers(dest="command", required=True)

    r = sub.add_parser("resolve", help="Resolve a hostname to its IP addresses")
    r.add_argument("hostname", help="The hostname to resolve (e.g., example.com)")
    r.add_argument(
        "--ip-version",
        default=None,
        help="IP version to resolve (ipv4, ipv6, or both); defaults to ipv4",
    )
    r.add_argument("--sequential", action="store_true", help="Look up ipv4 and ipv6 one after the other")
    r.add_argument("--pretty", action="store_true", help="Indent the JSON output")

    s = sub.add_parser("serve", help="Serve the tools over HTTP")
    s.add_argument("--host", default=None, help="Listen address")
    s.add_argument("--port", type=int, default=None, help="Listen port")

    return p.parse_args(argv)


def load_settings(args: argparse.Namespace) -> Settings:
    return Settings.from_env(
        None,
        timeout=args.timeout,
        resolver=args.resolver,
        log_level=args.log_level.upper() if args.log_level else None,
        concurrent_lookups=False if getattr(args, "sequential", False) else None,
        host=getattr(args, "host", None),
        port=getattr(args, "port", None),
    )


def run_resolve(args: argparse.Namespace, registry: ToolRegistry) -> int:
    arguments = {"hostname": args.hostname}
    if args.ip_version is not None:
        arguments["ip_version"] = args.ip_version

    try:
        result = registry.call("resolve_hostname", arguments)
    except InvalidArgument as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return 2
    except EncodingError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.pretty:
        print(json.dumps(json.loads(result.text), indent=2, sort_keys=True))
    else:
        print(result.text)
    return 0


def run_serve(settings: Settings, registry: ToolRegistry) -> int:
    log.info("starting HTTP server on %s:%d", settings.host, settings.port)
    uvicorn.run(
        create_app(settings, registry=registry),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    CLI entrypoint.

    Returns:
        Process exit code (0 = success).
    """
    args = parse_args(argv)

    try:
        settings = load_settings(args)
        registry = build_registry(settings)
    except ConfigError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    if not logging.getLogger().handlers:
        logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")

    if args.command == "serve":
        return run_serve(settings, registry)
    return run_resolve(args, registry)


if __name__ == "__main__":
    raise SystemExit(main())
