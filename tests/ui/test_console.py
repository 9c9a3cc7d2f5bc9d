"""Tests for console.py module."""
import asyncio

import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

from chatwarden.control.control_surface import ControlSurface
from chatwarden.datatypes.control_datatypes import ControlResult
from chatwarden.ui import console


@pytest.fixture
def control(state):
    return console.ConsoleContext(ControlSurface(state))


@pytest.fixture
def printed(monkeypatch):
    lines = []
    monkeypatch.setattr(console, "console_print", lambda message, style="": lines.append((message, style)))
    return lines


def test_console_print_without_style():
    with patch("chatwarden.ui.console.print_formatted_text") as mock_print:
        console.console_print("Test message")
        mock_print.assert_called_once_with("Test message")


def test_heading_is_fixed_width():
    lines = console.heading("Status")
    assert len(lines) == 3
    assert all(len(line) == console.RULE_WIDTH for line in lines)


def test_print_result(printed):
    assert console.print_result(ControlResult.ok("feito")) is True
    assert console.print_result(ControlResult.fail("ruim")) is False
    assert printed == [("feito", "ansigreen"), ("Error: ruim", "ansired")]


def test_console_context_flags(control):
    assert not control.is_shutdown_requested()
    control.request_shutdown(restart=True)
    assert control.is_shutdown_requested()
    assert control.is_restart_requested()


@pytest.mark.asyncio
async def test_close_bot_instance_when_none():
    await console.close_bot_instance(None)
    await console.close_bot_instance(None, log_close=True)


@pytest.mark.asyncio
async def test_close_bot_instance_skips_closed_bot():
    bot = SimpleNamespace(is_closed=lambda: True, close=AsyncMock())
    await console.close_bot_instance(bot)
    bot.close.assert_not_awaited()


@pytest.mark.asyncio
async def test_close_bot_instance_with_exception():
    bot = SimpleNamespace(is_closed=lambda: False, close=AsyncMock(side_effect=RuntimeError("boom")))
    await console.close_bot_instance(bot)
    bot.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_toggle_command_activates_group(control, state, printed):
    await console.handle_console_command("toggle 1001 on", control)
    assert state.is_active("1001")

    await console.handle_console_command("t 1001 off", control)
    assert not state.is_active("1001")


@pytest.mark.asyncio
async def test_toggle_command_usage(control, state, printed):
    await console.handle_console_command("toggle 1001 maybe", control)

    assert state.active_groups == []
    assert printed == [("Usage: toggle <group_id> on|off", "ansiyellow")]


@pytest.mark.asyncio
async def test_words_set_and_list(control, state, printed):
    await console.handle_console_command("words set feio, chato ,", control)
    assert state.offensive_words == ["feio", "chato"]

    printed.clear()
    await console.handle_console_command("words", control)
    assert printed == [("feio, chato", "")]


@pytest.mark.asyncio
async def test_cleardata_command(control, state, printed):
    state.record_interaction("alice")
    state.set_warning_tier("alice", 1)

    await console.handle_console_command("cleardata warnings", control)
    assert state.warnings == {}
    assert state.interactions == {"alice": 1}

    await console.handle_console_command("cleardata everything", control)
    assert printed[-1][1] == "ansired"
    assert state.interactions == {"alice": 1}


@pytest.mark.asyncio
async def test_save_without_store_reports_failure(control, printed):
    await console.handle_console_command("save", control)
    assert printed == [("State could not be saved; see the log for details.", "ansired")]


@pytest.mark.asyncio
async def test_restart_requests_shutdown_and_closes_bot(control, printed):
    bot = SimpleNamespace(is_closed=lambda: False, close=AsyncMock())
    control.set_bot(bot)

    await console.handle_console_command("reboot", control)

    assert control.is_restart_requested()
    assert control.is_shutdown_requested()
    bot.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_unknown_command(control, printed):
    await console.handle_console_command("frobnicate", control)
    assert "Unknown command 'frobnicate'" in printed[0][0]


@pytest.mark.asyncio
async def test_failing_handler_is_reported(control, printed, monkeypatch):
    def explode():
        raise RuntimeError("kaput")

    monkeypatch.setattr(control.surface, "get_stats", explode)

    await console.handle_console_command("stats", control)

    assert printed == [("Error executing command: kaput", "ansired")]


def test_registry_resolves_aliases():
    assert console.REGISTRY.find("quit").name == "shutdown"
    assert console.REGISTRY.find("wipe").name == "cleardata"
    assert console.REGISTRY.find("nope") is None


@pytest.mark.asyncio
async def test_console_session_stops_console_task(control, monkeypatch):
    started = []

    async def fake_run_console(ctx):
        started.append(ctx)
        await asyncio.Event().wait()

    monkeypatch.setattr(console, "run_console", fake_run_console)

    async with console.console_session(control) as ctx:
        await asyncio.sleep(0)
        assert started == [ctx]

    assert control.is_shutdown_requested()
    assert not control.is_restart_requested()


@pytest.mark.asyncio
async def test_clearwarnings_command_clears_one_user(control, state, printed):
    state.set_warning_tier("alice", 2)
    state.set_warning_tier("bob", 1)

    await console.handle_console_command("clearwarnings alice", control)

    assert state.warnings == {"bob": 1}
    assert printed == [("Avisos limpos!", "ansigreen")]


@pytest.mark.asyncio
async def test_clearwarnings_command_usage(control, state, printed):
    state.set_warning_tier("alice", 1)

    await console.handle_console_command("unwarn", control)

    assert state.warnings == {"alice": 1}
    assert printed == [("Usage: clearwarnings <user_id>", "ansiyellow")]
