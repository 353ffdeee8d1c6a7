"""Tests for REPL command dispatch and the background refresh."""

import threading
from unittest.mock import AsyncMock, MagicMock

from sampquery.client import ServerStatus, TransportError
from sampquery.completer import QueryCompleter
from sampquery.protocol import Player, PlayerScore, ServerInfo, ServerRule
from sampquery.repl import _background_refresh, run_command

INFO = ServerInfo(
    server_name="Test",
    game_mode_name="DM",
    players=1,
    max_players=32,
    language="EN",
    closed=False,
)
RULES = [ServerRule(name="mapname", value="Los Santos"), ServerRule(name="weather", value="10")]
DETAILED = [
    Player(id=0, name="Carl", score=150, ping=42),
    Player(id=1, name="Ryder", score=3, ping=80),
]
PLAYERS = [PlayerScore(name="Carl", score=150)]


def _mock_query():
    query = MagicMock()
    query.get_server_info = AsyncMock(return_value=INFO)
    query.get_server_rules = AsyncMock(return_value=RULES)
    query.get_server_players = AsyncMock(return_value=PLAYERS)
    query.get_server_players_detailed = AsyncMock(return_value=DETAILED)
    query.get_server = AsyncMock(
        return_value=ServerStatus(info=INFO, rules=RULES, players=DETAILED)
    )
    query.get_server_ping = AsyncMock(return_value=23.4)
    return query


class TestRunCommand:
    def test_info(self):
        output = run_command(_mock_query(), "info", QueryCompleter(), color=False)
        assert "Hostname:  Test" in output

    def test_rules_update_completer(self):
        completer = QueryCompleter()
        output = run_command(_mock_query(), "rules", completer, color=False)

        assert "mapname = Los Santos" in output
        assert completer.rules == ["mapname", "weather"]

    def test_single_rule(self):
        output = run_command(_mock_query(), "rule WEATHER", QueryCompleter(), color=False)
        assert output == "weather = 10"

    def test_unknown_rule(self):
        output = run_command(_mock_query(), "rule gravity", QueryCompleter())
        assert output == "Unknown rule: gravity"

    def test_rule_needs_argument(self):
        assert run_command(_mock_query(), "rule", QueryCompleter()) == "Usage: rule <name>"

    def test_players_update_completer(self):
        completer = QueryCompleter()
        output = run_command(_mock_query(), "players", completer, color=False)

        assert "Carl" in output
        assert completer.players == ["Carl"]

    def test_detailed(self):
        output = run_command(_mock_query(), "detailed", QueryCompleter(), color=False)
        assert "Ryder" in output

    def test_find(self):
        output = run_command(_mock_query(), "find ryd", QueryCompleter(), color=False)
        assert "Ryder" in output
        assert "Carl" not in output

    def test_find_no_match(self):
        output = run_command(_mock_query(), "find Sweet", QueryCompleter())
        assert output == "No player matching 'Sweet'"

    def test_ping(self):
        assert run_command(_mock_query(), "ping", QueryCompleter()) == "23 ms"

    def test_all(self):
        output = run_command(_mock_query(), "all", QueryCompleter(), color=False)
        assert "Hostname:  Test" in output
        assert "weather = 10" in output
        assert "Carl" in output

    def test_unknown_command(self):
        output = run_command(_mock_query(), "kick Carl", QueryCompleter())
        assert output.startswith("Unknown command: kick")


class TestBackgroundRefresh:
    def test_updates_completer_once(self):
        completer = QueryCompleter()
        stop = threading.Event()
        query = _mock_query()

        def stop_after_players():
            stop.set()
            return PLAYERS

        query.get_server_players = AsyncMock(side_effect=stop_after_players)

        _background_refresh(query, completer, interval=0, stop=stop)

        assert completer.rules == ["mapname", "weather"]
        assert completer.players == ["Carl"]

    def test_query_errors_are_not_fatal(self):
        completer = QueryCompleter()
        stop = threading.Event()
        query = _mock_query()
        query.get_server_rules = AsyncMock(side_effect=TransportError("down"))

        def stop_after_players():
            stop.set()
            return PLAYERS

        query.get_server_players = AsyncMock(side_effect=stop_after_players)

        _background_refresh(query, completer, interval=0, stop=stop)

        assert completer.rules == []
        assert completer.players == ["Carl"]
