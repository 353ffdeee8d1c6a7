"""Strip or convert SA-MP colour embeds and render query results as text."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sampquery.client import ServerStatus
    from sampquery.protocol import Player, PlayerScore, ServerInfo, ServerRule

# Matches SA-MP inline colour embeds: {RRGGBB}
_SAMP_COLOR_PATTERN = re.compile(r"\{([0-9A-Fa-f]{6})\}")

_ANSI_RESET = "\033[0m"


def strip_formatting(text: str) -> str:
    """Remove all ``{RRGGBB}`` colour embeds from text.

    Args:
        text: Raw text from the server, e.g. a hostname or rule value.

    Returns:
        Clean text with all colour embeds removed.
    """
    return _SAMP_COLOR_PATTERN.sub("", text)


def convert_formatting(text: str) -> str:
    """Convert ``{RRGGBB}`` colour embeds to 24-bit ANSI escape sequences.

    A reset sequence is appended at the end if any colour was applied,
    ensuring the terminal state is left clean.
    """
    has_formatting = False

    def _replace(match: re.Match[str]) -> str:
        nonlocal has_formatting
        hex_digits = match.group(1)
        r = int(hex_digits[0:2], 16)
        g = int(hex_digits[2:4], 16)
        b = int(hex_digits[4:6], 16)
        has_formatting = True
        return f"\033[38;2;{r};{g};{b}m"

    result = _SAMP_COLOR_PATTERN.sub(_replace, text)
    if has_formatting:
        result += _ANSI_RESET
    return result


def format_text(text: str | bytes, *, color: bool = True) -> str:
    """Format one server-supplied string for terminal display.

    Raw byte fields (no text decoding configured) are shown as their repr.
    """
    if isinstance(text, bytes):
        return repr(text)
    if color:
        return convert_formatting(text)
    return strip_formatting(text)


def format_info(info: ServerInfo, *, color: bool = True) -> str:
    """Render an info reply as labelled lines."""
    lines = [
        f"Hostname:  {format_text(info.server_name, color=color)}",
        f"Gamemode:  {format_text(info.game_mode_name, color=color)}",
        f"Language:  {format_text(info.language, color=color)}",
        f"Players:   {info.players}/{info.max_players}",
        f"Password:  {'yes' if info.closed else 'no'}",
    ]
    return "\n".join(lines)


def format_rules(rules: list[ServerRule], *, color: bool = True) -> str:
    """Render rules as an aligned ``name = value`` list."""
    if not rules:
        return "No rules."
    width = max(len(format_text(rule.name, color=False)) for rule in rules)
    return "\n".join(
        f"{format_text(rule.name, color=False):<{width}} = "
        f"{format_text(rule.value, color=color)}"
        for rule in rules
    )


def format_players(players: list[PlayerScore], *, color: bool = True) -> str:
    """Render a compact player list as a name/score table."""
    if not players:
        return "No players online."
    names = [format_text(p.name, color=False) for p in players]
    width = max(len("Name"), *(len(n) for n in names))
    lines = [f"{'Name':<{width}}  Score"]
    lines.extend(
        f"{format_text(p.name, color=color):<{width}}  {p.score}" for p in players
    )
    return "\n".join(lines)


def format_players_detailed(players: list[Player], *, color: bool = True) -> str:
    """Render a detailed player list as an id/name/score/ping table."""
    if not players:
        return "No players online."
    names = [format_text(p.name, color=False) for p in players]
    width = max(len("Name"), *(len(n) for n in names))
    lines = [f"{'ID':>3}  {'Name':<{width}}  {'Score':>8}  {'Ping':>5}"]
    lines.extend(
        f"{p.id:>3}  {format_text(p.name, color=color):<{width}}  "
        f"{p.score:>8}  {p.ping:>5}"
        for p in players
    )
    return "\n".join(lines)


def format_status(status: ServerStatus, *, color: bool = True) -> str:
    """Render the combined info, rules and player view of a server."""
    return "\n\n".join(
        [
            format_info(status.info, color=color),
            format_rules(status.rules, color=color),
            format_players_detailed(status.players, color=color),
        ]
    )
