"""Query REPL completer for prompt_toolkit.

Completes REPL command names, rule names for ``rule`` and player names for
``find``. Rule and player names come from the most recent server replies.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from prompt_toolkit.completion import Completer, Completion

if TYPE_CHECKING:
    from collections.abc import Iterable

    from prompt_toolkit.completion import CompleteEvent
    from prompt_toolkit.document import Document

# REPL command name -> short description shown in the completion menu
COMMANDS: dict[str, str] = {
    "info": "server info",
    "rules": "all server rules",
    "rule": "a single rule value",
    "players": "player names and scores",
    "detailed": "player ids, scores and pings",
    "find": "look up one player",
    "ping": "round-trip time",
    "all": "info, rules and players",
    "exit": "quit the REPL",
    "quit": "quit the REPL",
}


class QueryCompleter(Completer):
    """Completer for REPL commands and their rule or player arguments.

    Supports dynamic updates to rule and player names from background
    threads. Reference assignments are atomic under the GIL, so updates
    are thread-safe without explicit locking.
    """

    def __init__(self) -> None:
        self.rules: list[str] = []
        self.players: list[str] = []

    def update_rules(self, rules: list[str]) -> None:
        """Replace the rule name list atomically."""
        self.rules = rules

    def update_players(self, players: list[str]) -> None:
        """Replace the player list atomically."""
        self.players = players

    def get_completions(
        self,
        document: Document,
        complete_event: CompleteEvent,  # noqa: ARG002
    ) -> Iterable[Completion]:
        """Yield completions based on the current input."""
        text = document.text_before_cursor
        words = text.split()

        # If text ends with a space, the user is starting a new word
        typing_new_word = text.endswith(" ") if text else True

        if not words or (len(words) == 1 and not typing_new_word):
            prefix = words[0] if words else ""
            yield from self._complete_command(prefix)
            return

        # Both argument-taking commands take exactly one argument
        if len(words) > 2 or (len(words) == 2 and typing_new_word):  # noqa: PLR2004
            return
        prefix = "" if typing_new_word else words[-1]

        cmd = words[0].lower()
        if cmd == "rule":
            yield from _complete_from(self.rules, prefix)
        elif cmd == "find":
            yield from _complete_from(self.players, prefix)

    def _complete_command(self, prefix: str) -> Iterable[Completion]:
        """Yield command name completions matching the prefix."""
        prefix_lower = prefix.lower()
        for cmd, meta in COMMANDS.items():
            if cmd.startswith(prefix_lower):
                yield Completion(cmd, start_position=-len(prefix), display_meta=meta)


def _complete_from(options: list[str], prefix: str) -> Iterable[Completion]:
    """Yield completions from ``options`` matching the prefix, case-insensitively."""
    prefix_lower = prefix.lower()
    for option in sorted(options):
        if option.lower().startswith(prefix_lower):
            yield Completion(option, start_position=-len(prefix))
