"""CLI entry point for the query client."""

from __future__ import annotations

import argparse
import logging
import sys

from sampquery.client import QueryError, SampQuery
from sampquery.completer import QueryCompleter
from sampquery.config import (
    AppConfig,
    ServerConfig,
    ensure_config_dir,
    load_config,
)
from sampquery.protocol import DEFAULT_PORT, parse_address
from sampquery.repl import run_command, run_repl

QUERIES = ("info", "rules", "players", "detailed", "ping", "all")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="sampquery",
        description="Query a SA-MP server for its info, rules and players",
    )
    parser.add_argument(
        "server",
        nargs="?",
        help="Server name (from config) or host[:port] (e.g., 127.0.0.1:7777)",
    )
    parser.add_argument(
        "-q",
        "--query",
        choices=QUERIES,
        help="Run a single query and exit (non-interactive mode)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Reply timeout in seconds (default: from config, or 2)",
    )
    parser.add_argument(
        "--resolve",
        action="store_true",
        default=None,
        help="Resolve the server host name via DNS before querying",
    )
    parser.add_argument(
        "--encoding",
        help="Codepage used to decode server strings (default: cp1251)",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        default=False,
        help="Strip colour embeds instead of converting to ANSI colors",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Log protocol activity to stderr",
    )
    return parser


def select_server(config: AppConfig) -> tuple[str, ServerConfig]:
    """Ask which configured server to query.

    Exits when no servers are configured or stdin is closed before a valid
    choice is made.
    """
    choices = list(config.servers.items())
    if not choices:
        print(
            "No servers configured. Pass host:port, or add a [servers.<name>] "
            "table to ~/.config/sampquery/config.toml",
            file=sys.stderr,
        )
        sys.exit(1)

    print("Configured servers:")
    for number, (key, srv) in enumerate(choices, 1):
        print(f"  {number}. {srv.name} [{key}] {srv.host}:{srv.port}")

    while True:
        try:
            answer = input(f"\nServer number [1-{len(choices)}]: ").strip()
        except EOFError:
            print("\nNo server selected.", file=sys.stderr)
            sys.exit(1)
        if answer.isdigit() and 1 <= int(answer) <= len(choices):
            return choices[int(answer) - 1]
        print(f"Enter a number from 1 to {len(choices)}.")


def parse_target(target: str) -> ServerConfig:
    """Build an ad-hoc server entry from ``host`` or ``host:port``.

    Host names that are not dotted-quad addresses are marked for DNS
    resolution.

    Raises:
        ValueError: If the port is not a number in 1-65535.
    """
    host, sep, port_str = target.rpartition(":")
    if not sep:
        host, port_str = target, ""
    if port_str:
        if not port_str.isdigit() or not 0 < int(port_str) <= 0xFFFF:  # noqa: PLR2004
            msg = f"Invalid port {port_str!r} in {target!r}"
            raise ValueError(msg)
        port = int(port_str)
    else:
        port = DEFAULT_PORT

    try:
        parse_address(host)
    except ValueError:
        resolve: bool | None = True
    else:
        resolve = None
    return ServerConfig(name=target, host=host, port=port, resolve=resolve)


def resolve_server(
    server_arg: str | None, config: AppConfig
) -> tuple[str, ServerConfig]:
    """Pick the target from a config key, an ad-hoc host, or the config default.

    Falls back to asking the user when nothing else names a server.

    Returns (display_name, ServerConfig).

    Raises:
        ValueError: If an ad-hoc target has an invalid port.
    """
    if server_arg is None:
        key = config.default_server
        if key and key in config.servers:
            return key, config.servers[key]
        return select_server(config)

    if server_arg in config.servers:
        return server_arg, config.servers[server_arg]
    return server_arg, parse_target(server_arg)


def build_query(
    args: argparse.Namespace, server: ServerConfig, config: AppConfig
) -> SampQuery:
    """Create a client for ``server``, with CLI flags overriding the config."""
    timeout = args.timeout or server.effective_timeout(config.defaults)
    encoding = args.encoding or server.effective_encoding(config.defaults)
    resolve = args.resolve
    if resolve is None:
        resolve = server.effective_resolve(config.defaults)
    return SampQuery(
        server.host,
        server.port,
        timeout,
        resolve=resolve,
        encoding=encoding,
    )


def run_query(query: SampQuery, name: str, *, color: bool = True) -> str:
    """Run one named query and return its rendered output."""
    return run_command(query, name, QueryCompleter(), color=color)


def main() -> None:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )

    ensure_config_dir()
    config = load_config()

    try:
        display_name, server = resolve_server(args.server, config)
    except ValueError as e:
        parser.error(str(e))

    try:
        query = build_query(args, server, config)
    except QueryError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    color = not args.no_color

    if args.query:
        try:
            print(run_query(query, args.query, color=color))
        except QueryError as e:
            print(f"Query failed: {e}", file=sys.stderr)
            sys.exit(1)
        return

    print(f"Querying {display_name} ({server.host}:{server.port})")
    print("Type a command (info, rules, players, ...), Ctrl+D or 'exit' to quit.\n")
    run_repl(query, color=color)
