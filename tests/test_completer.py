"""Tests for the query REPL completer."""

from prompt_toolkit.completion import CompleteEvent
from prompt_toolkit.document import Document

from sampquery.completer import COMMANDS, QueryCompleter


def _completions(completer, text):
    """Helper to get completion text values for a given input."""
    doc = Document(text, len(text))
    event = CompleteEvent()
    return [c.text for c in completer.get_completions(doc, event)]


class TestCommandCompletion:
    def test_completes_command_names(self):
        results = _completions(QueryCompleter(), "r")
        assert results == ["rules", "rule"]

    def test_empty_prefix_shows_all(self):
        results = _completions(QueryCompleter(), "")
        assert results == list(COMMANDS)

    def test_case_insensitive(self):
        assert "info" in _completions(QueryCompleter(), "IN")

    def test_unknown_prefix(self):
        assert _completions(QueryCompleter(), "zz") == []


class TestArgumentCompletion:
    def test_rule_names(self):
        completer = QueryCompleter()
        completer.update_rules(["weather", "mapname", "worldtime"])

        assert _completions(completer, "rule ") == ["mapname", "weather", "worldtime"]
        assert _completions(completer, "rule w") == ["weather", "worldtime"]

    def test_player_names(self):
        completer = QueryCompleter()
        completer.update_players(["Carl", "Cesar", "Ryder"])

        assert _completions(completer, "find c") == ["Carl", "Cesar"]

    def test_start_position_replaces_prefix(self):
        completer = QueryCompleter()
        completer.update_rules(["mapname"])
        doc = Document("rule ma", 7)
        (completion,) = completer.get_completions(doc, CompleteEvent())
        assert completion.start_position == -2

    def test_commands_without_arguments(self):
        completer = QueryCompleter()
        completer.update_rules(["mapname"])
        assert _completions(completer, "info ") == []

    def test_no_completion_after_argument(self):
        completer = QueryCompleter()
        completer.update_rules(["mapname"])
        assert _completions(completer, "rule mapname ") == []
