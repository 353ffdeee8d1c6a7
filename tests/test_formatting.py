"""Tests for colour embed handling and result rendering."""

from sampquery.client import ServerStatus
from sampquery.formatting import (
    convert_formatting,
    format_info,
    format_players,
    format_players_detailed,
    format_rules,
    format_status,
    format_text,
    strip_formatting,
)
from sampquery.protocol import Player, PlayerScore, ServerInfo, ServerRule

# --- Tests for strip_formatting ---


def test_strip_single_color():
    """Strip a single {RRGGBB} embed."""
    assert strip_formatting("{FF0000}Red Server") == "Red Server"


def test_strip_multiple_colors():
    """Strip several embeds appearing mid-text."""
    text = "{FFFFFF}Los Santos {00FF00}RolePlay{FFFFFF} | 0.3.7"
    assert strip_formatting(text) == "Los Santos RolePlay | 0.3.7"


def test_strip_lowercase_hex():
    assert strip_formatting("{ff8800}orange") == "orange"


def test_strip_leaves_non_color_braces():
    """Braces that are not six hex digits are not colour embeds."""
    text = "{team} {GGGGGG} {12345}"
    assert strip_formatting(text) == text


def test_strip_empty_string():
    assert strip_formatting("") == ""


# --- Tests for convert_formatting ---


def test_convert_color_to_ansi():
    """Convert {RRGGBB} to a 24-bit ANSI foreground colour with reset."""
    result = convert_formatting("{FF8000}Hi")
    assert result == "\033[38;2;255;128;0mHi\033[0m"


def test_convert_multiple_colors():
    result = convert_formatting("{000000}a{FFFFFF}b")
    assert result == "\033[38;2;0;0;0ma\033[38;2;255;255;255mb\033[0m"


def test_convert_no_codes_no_reset():
    """Text without embeds gets no trailing reset."""
    assert convert_formatting("Plain") == "Plain"


# --- Tests for format_text ---


def test_format_text_color():
    assert format_text("{FF0000}x") == "\033[38;2;255;0;0mx\033[0m"


def test_format_text_no_color():
    assert format_text("{FF0000}x", color=False) == "x"


def test_format_text_raw_bytes():
    assert format_text(b"\xcf\xf0") == repr(b"\xcf\xf0")


# --- Tests for result rendering ---


def _info(**overrides):
    fields = {
        "server_name": "{FF0000}Test",
        "game_mode_name": "DM",
        "players": 12,
        "max_players": 32,
        "language": "EN",
        "closed": False,
    }
    fields.update(overrides)
    return ServerInfo(**fields)


def test_format_info():
    result = format_info(_info(), color=False)
    assert "Hostname:  Test" in result
    assert "Gamemode:  DM" in result
    assert "Players:   12/32" in result
    assert "Password:  no" in result


def test_format_info_closed():
    assert "Password:  yes" in format_info(_info(closed=True), color=False)


def test_format_rules_aligned():
    rules = [
        ServerRule(name="mapname", value="Los Santos"),
        ServerRule(name="weburl", value="www.sa-mp.com"),
    ]
    assert format_rules(rules, color=False).splitlines() == [
        "mapname = Los Santos",
        "weburl  = www.sa-mp.com",
    ]


def test_format_rules_empty():
    assert format_rules([]) == "No rules."


def test_format_players():
    players = [PlayerScore(name="Carl", score=150), PlayerScore(name="Ryder", score=3)]
    lines = format_players(players, color=False).splitlines()
    assert lines[0] == "Name   Score"
    assert lines[1] == "Carl   150"
    assert lines[2] == "Ryder  3"


def test_format_players_empty():
    assert format_players([]) == "No players online."


def test_format_players_detailed():
    players = [Player(id=7, name="Carl", score=150, ping=42)]
    lines = format_players_detailed(players, color=False).splitlines()
    assert lines[0].split() == ["ID", "Name", "Score", "Ping"]
    assert lines[1].split() == ["7", "Carl", "150", "42"]


def test_format_players_detailed_empty():
    assert format_players_detailed([]) == "No players online."


def test_format_status():
    status = ServerStatus(
        info=_info(),
        rules=[ServerRule(name="weather", value="10")],
        players=[],
    )
    result = format_status(status, color=False)
    assert "Hostname:  Test" in result
    assert "weather = 10" in result
    assert result.endswith("No players online.")
