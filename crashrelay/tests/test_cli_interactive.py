"""Tests for interactive CLI loop functionality.

Covers:
- _run_cli_interactive: REPL-like command loop
- EOF/KeyboardInterrupt handling
- JSON command parsing
"""

import json
from unittest.mock import patch

import pytest

from crashrelay.adapters.cli.commands import CLICommandHandler
from crashrelay.core.dispatcher import EventDispatcher
from crashrelay.main import _execute_cli_command, _run_cli_interactive, parse_command_line
from crashrelay.tests.fakes import FakeNotificationAdapter


def _printed(mock_print) -> list[str]:
    return [str(arg) for call in mock_print.call_args_list for arg in call[0]]


@pytest.mark.asyncio
class TestInteractiveCLILoop:
    """Test suite for interactive CLI loop."""

    async def test_cli_reads_and_executes_commands(self) -> None:
        """Test that CLI reads commands in 'command args_json' format and executes them."""
        handler = CLICommandHandler(EventDispatcher([FakeNotificationAdapter()]))

        with patch("builtins.input", side_effect=["adapters {}", "exit"]):
            with patch("builtins.print") as mock_print:
                await _run_cli_interactive(handler)

        output = json.loads(_printed(mock_print)[0])
        assert output["data"][0]["name"] == "fake"

    async def test_cli_handles_json_parse_errors(self) -> None:
        """Test that CLI handles malformed JSON gracefully."""
        handler = CLICommandHandler(EventDispatcher([FakeNotificationAdapter()]))

        with patch("builtins.input", side_effect=["verify not-valid-json", "exit"]):
            with patch("builtins.print") as mock_print:
                await _run_cli_interactive(handler)

        assert mock_print.call_count == 0

    async def test_cli_handles_eof(self) -> None:
        """Test that CLI handles EOF (Ctrl+D) gracefully."""
        handler = CLICommandHandler(EventDispatcher([FakeNotificationAdapter()]))

        def input_with_eof(_: str) -> str:
            raise EOFError()

        with patch("builtins.input", side_effect=input_with_eof):
            await _run_cli_interactive(handler)

    async def test_cli_handles_keyboard_interrupt(self) -> None:
        """Test that CLI handles KeyboardInterrupt (Ctrl+C) gracefully."""
        handler = CLICommandHandler(EventDispatcher([FakeNotificationAdapter()]))

        call_count = [0]

        def input_with_interrupt(_: str) -> str:
            call_count[0] += 1
            if call_count[0] == 1:
                raise KeyboardInterrupt()
            return "exit"

        with patch("builtins.input", side_effect=input_with_interrupt):
            await _run_cli_interactive(handler)

        assert call_count[0] == 2

    async def test_cli_executes_dispatch_command(self) -> None:
        """Test that CLI routes a dispatch command to the adapter."""
        adapter = FakeNotificationAdapter()
        handler = CLICommandHandler(EventDispatcher([adapter]))
        args = {
            "adapter": "fake",
            "event": "issue_impact_change",
            "config": {"url": "https://acme.com/hook"},
            "payload": {"title": "foo title"},
        }

        with patch("builtins.input", side_effect=[f"dispatch {json.dumps(args)}", "exit"]):
            with patch("builtins.print"):
                await _run_cli_interactive(handler)

        assert adapter.calls == [
            ("issue_impact_change", {"url": "https://acme.com/hook"}, {"title": "foo title"})
        ]

    async def test_cli_executes_verify_command(self) -> None:
        adapter = FakeNotificationAdapter()
        handler = CLICommandHandler(EventDispatcher([adapter]))

        with patch("builtins.input", side_effect=['verify {"adapter": "fake"}', "exit"]):
            with patch("builtins.print") as mock_print:
                await _run_cli_interactive(handler)

        output = json.loads(_printed(mock_print)[0])
        assert output["status"] == "success"
        assert adapter.get_events() == ["verification"]

    async def test_cli_ignores_empty_input(self) -> None:
        """Test that CLI ignores empty input lines."""
        handler = CLICommandHandler(EventDispatcher([FakeNotificationAdapter()]))

        with patch("builtins.input", side_effect=["", "   ", "exit"]):
            await _run_cli_interactive(handler)

    async def test_cli_shows_help_command(self) -> None:
        """Test that CLI shows help on 'help' command."""
        handler = CLICommandHandler(EventDispatcher([FakeNotificationAdapter()]))

        with patch("builtins.input", side_effect=["help", "exit"]):
            with patch("builtins.print") as mock_print:
                await _run_cli_interactive(handler)

        assert any("single JSON object" in line for line in _printed(mock_print))

    async def test_cli_handles_invalid_command(self) -> None:
        """Test that CLI handles unknown commands gracefully."""
        handler = CLICommandHandler(EventDispatcher([FakeNotificationAdapter()]))

        with patch("builtins.input", side_effect=["invalid_command {}", "exit"]):
            with patch("builtins.print") as mock_print:
                await _run_cli_interactive(handler)

        assert any("error" in line.lower() for line in _printed(mock_print))


@pytest.mark.asyncio
class TestExecuteCLICommand:
    async def test_verify_requires_adapter(self) -> None:
        handler = CLICommandHandler(EventDispatcher([FakeNotificationAdapter()]))

        with pytest.raises(ValueError, match="adapter"):
            await _execute_cli_command(handler, "verify", {})

    async def test_dispatch_requires_event(self) -> None:
        handler = CLICommandHandler(EventDispatcher([FakeNotificationAdapter()]))

        with pytest.raises(ValueError, match="event"):
            await _execute_cli_command(handler, "dispatch", {"adapter": "fake"})

    async def test_adapters_text_format(self) -> None:
        handler = CLICommandHandler(EventDispatcher([FakeNotificationAdapter()]))

        result = await _execute_cli_command(handler, "adapters", {"format": "text"})

        assert "fake (Fake)" in result["data"]


class TestParseCommandLine:
    def test_command_without_arguments(self) -> None:
        assert parse_command_line("  ADAPTERS ") == ("adapters", {})

    def test_command_with_arguments(self) -> None:
        assert parse_command_line('verify {"adapter": "jira"}') == ("verify", {"adapter": "jira"})

    def test_invalid_json(self) -> None:
        with pytest.raises(ValueError, match="Invalid JSON"):
            parse_command_line("verify {adapter}")

    def test_arguments_must_be_object(self) -> None:
        with pytest.raises(ValueError, match="JSON object"):
            parse_command_line('verify ["jira"]')
