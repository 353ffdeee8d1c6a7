"""Interactive REPL using prompt_toolkit."""

from __future__ import annotations

import asyncio
import logging
import sys
import threading
from typing import TYPE_CHECKING

from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.history import FileHistory
from prompt_toolkit.key_binding import KeyBindings

if TYPE_CHECKING:
    from prompt_toolkit.key_binding.key_processor import KeyPressEvent

    from sampquery.client import SampQuery

from sampquery.client import QueryError
from sampquery.completer import COMMANDS, QueryCompleter
from sampquery.config import HISTORY_FILE, ensure_config_dir
from sampquery.formatting import (
    format_info,
    format_players,
    format_players_detailed,
    format_rules,
    format_status,
)

log = logging.getLogger(__name__)

_REFRESH_INTERVAL = 60


def _create_key_bindings() -> KeyBindings:
    """Create custom key bindings for the REPL.

    Ctrl+C and Ctrl+D behavior:
    - If the current line has text, abandon it and start fresh
    - If the current line is empty, exit the application
    """
    kb = KeyBindings()

    def _abandon_or_exit(event: KeyPressEvent, exception: type[Exception]) -> None:
        buffer = event.app.current_buffer
        if buffer.text:
            print()
            buffer.reset()
            event.app.renderer.reset()
        else:
            event.app.exit(exception=exception)

    @kb.add("c-c")
    def _(event: KeyPressEvent) -> None:
        _abandon_or_exit(event, KeyboardInterrupt)

    @kb.add("c-d")
    def _(event: KeyPressEvent) -> None:
        _abandon_or_exit(event, EOFError)

    return kb


def run_repl(query: SampQuery, *, color: bool = True) -> None:
    """Run the interactive REPL loop.

    Args:
        query: Client bound to the target server.
        color: If True, convert colour embeds to ANSI. If False, strip them.
    """
    ensure_config_dir()

    completer = QueryCompleter()
    _start_background_refresh(query, completer)

    session: PromptSession[str] = PromptSession(
        history=FileHistory(str(HISTORY_FILE)),
        completer=completer,
        complete_while_typing=False,
        key_bindings=_create_key_bindings(),
    )

    while True:
        try:
            text = session.prompt(HTML("<ansigreen>samp</ansigreen>> ")).strip()
        except (EOFError, KeyboardInterrupt):
            print("\nGoodbye.")
            break

        if not text:
            continue

        if text in ("exit", "quit"):
            print("Goodbye.")
            break

        try:
            print(run_command(query, text, completer, color=color))
        except QueryError as e:
            print(f"Error: {e}", file=sys.stderr)


def run_command(
    query: SampQuery,
    text: str,
    completer: QueryCompleter,
    *,
    color: bool = True,
) -> str:
    """Execute one REPL command and return its rendered output.

    Rule and player replies also refresh the completer's name lists.
    """
    cmd, _, arg = text.partition(" ")
    cmd = cmd.lower()
    arg = arg.strip()

    if cmd == "info":
        return format_info(asyncio.run(query.get_server_info()), color=color)

    if cmd in ("rules", "rule"):
        rules = asyncio.run(query.get_server_rules())
        completer.update_rules([rule.name for rule in rules])
        if cmd == "rules":
            return format_rules(rules, color=color)
        if not arg:
            return "Usage: rule <name>"
        matching = [rule for rule in rules if rule.name.lower() == arg.lower()]
        if not matching:
            return f"Unknown rule: {arg}"
        return format_rules(matching, color=color)

    if cmd == "players":
        players = asyncio.run(query.get_server_players())
        completer.update_players([p.name for p in players])
        return format_players(players, color=color)

    if cmd in ("detailed", "find"):
        detailed = asyncio.run(query.get_server_players_detailed())
        completer.update_players([p.name for p in detailed])
        if cmd == "detailed":
            return format_players_detailed(detailed, color=color)
        if not arg:
            return "Usage: find <player>"
        found = [p for p in detailed if arg.lower() in p.name.lower()]
        if not found:
            return f"No player matching {arg!r}"
        return format_players_detailed(found, color=color)

    if cmd == "ping":
        return f"{asyncio.run(query.get_server_ping()):.0f} ms"

    if cmd == "all":
        return format_status(asyncio.run(query.get_server()), color=color)

    return f"Unknown command: {cmd}. Available: {', '.join(COMMANDS)}"


def _start_background_refresh(query: SampQuery, completer: QueryCompleter) -> None:
    """Start a daemon thread to keep rule and player names current."""
    thread = threading.Thread(
        target=_background_refresh,
        args=(query, completer),
        daemon=True,
    )
    thread.start()


def _background_refresh(
    query: SampQuery,
    completer: QueryCompleter,
    *,
    interval: float = _REFRESH_INTERVAL,
    stop: threading.Event | None = None,
) -> None:
    """Periodically fetch rule and player names for completion."""
    stop = stop or threading.Event()
    while not stop.is_set():
        try:
            rules = asyncio.run(query.get_server_rules())
            completer.update_rules([rule.name for rule in rules])
        except QueryError:
            log.debug("Failed to fetch rules", exc_info=True)

        try:
            players = asyncio.run(query.get_server_players())
            completer.update_players([p.name for p in players])
        except QueryError:
            log.debug("Failed to fetch player list", exc_info=True)

        stop.wait(interval)
