"""
Admin console.

A prompt_toolkit prompt that runs next to the bot in the same event loop.
Every command is a thin wrapper over :class:`ControlSurface`; lifecycle
commands (save, restart, shutdown) act on the :class:`ConsoleContext`.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import discord
from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.patch_stdout import patch_stdout
from prompt_toolkit.shortcuts import PromptSession

from chatwarden.control.control_surface import ControlSurface
from chatwarden.datatypes.control_datatypes import ControlResult
from chatwarden.util.logger import get_logger

logger = get_logger("console")

PROMPT = "chatwarden> "
RULE_WIDTH = 45


class ConsoleContext:
    """What console commands operate on: the control surface and the bot's lifecycle."""

    def __init__(self, surface: ControlSurface) -> None:
        self.surface = surface
        self.bot: discord.Bot | None = None
        self._stopping = asyncio.Event()
        self._restart = False

    def set_bot(self, bot: discord.Bot | None) -> None:
        self.bot = bot

    def request_shutdown(self, *, restart: bool = False) -> None:
        self._restart = self._restart or restart
        self._stopping.set()

    def is_shutdown_requested(self) -> bool:
        return self._stopping.is_set()

    def is_restart_requested(self) -> bool:
        return self._restart


ConsoleHandler = Callable[[ConsoleContext, list[str]], Awaitable[None]]


@dataclass
class Command:
    name: str
    handler: ConsoleHandler
    summary: str
    aliases: tuple[str, ...] = ()
    usage: str = ""

    def names(self) -> tuple[str, ...]:
        return (self.name, *self.aliases)


@dataclass
class CommandRegistry:
    """Console commands in registration order, looked up by name or alias."""

    commands: list[Command] = field(default_factory=list)

    def register(self, name: str, *aliases: str, summary: str, usage: str = "") -> Callable[[ConsoleHandler], ConsoleHandler]:
        def decorator(handler: ConsoleHandler) -> ConsoleHandler:
            self.commands.append(Command(name, handler, summary, aliases, usage))
            return handler
        return decorator

    def find(self, word: str) -> Command | None:
        return next((cmd for cmd in self.commands if word in cmd.names()), None)


REGISTRY = CommandRegistry()


def console_print(message: str, style: str = "") -> None:
    """Print through prompt_toolkit so the open prompt is redrawn, not overwritten."""
    print_formatted_text(FormattedText([(style, message)]) if style else message)


def heading(title: str) -> list[str]:
    """A title framed by horizontal rules."""
    rule = "─" * RULE_WIDTH
    return [rule, title.center(RULE_WIDTH), rule]


def print_heading(title: str, style: str = "ansiblue") -> None:
    for line in heading(title):
        console_print(line, style)


def print_result(result: ControlResult) -> bool:
    """Show a control result; returns whether it succeeded."""
    if not result.success:
        console_print(f"Error: {result.error}", "ansired")
    elif result.message:
        console_print(result.message, "ansigreen")
    return result.success


async def close_bot_instance(bot: discord.Bot | None, *, log_close: bool = False) -> None:
    """Close ``bot`` unless it is missing or already closed. Errors are logged."""
    if bot is None or bot.is_closed():
        return
    try:
        await bot.close()
    except Exception as exc:
        logger.exception("Closing the Discord connection failed: %s", exc)
        return
    if log_close:
        logger.info("Discord connection closed.")


# --- commands ---

@REGISTRY.register("help", "h", "?", summary="List console commands")
async def cmd_help(ctx: ConsoleContext, args: list[str]) -> None:
    print_heading("Console commands", "ansigreen")
    for cmd in REGISTRY.commands:
        label = ", ".join(cmd.names())
        console_print(f"  {label:<24} {cmd.summary}", "ansicyan")
        if cmd.usage:
            console_print(f"  {'':<24} usage: {cmd.usage}", "ansibrightblack")


@REGISTRY.register("status", "info", summary="Gateway connection and group counts")
async def cmd_status(ctx: ConsoleContext, args: list[str]) -> None:
    result = ctx.surface.get_status()
    if not print_result(result):
        return

    data = result.data
    print_heading("Status")
    console_print(f"  gateway        {data['status']}", "ansigreen" if data["status"] == "connected" else "ansired")
    console_print(f"  active groups  {data['activeGroupsCount']}")
    console_print(f"  known groups   {data['totalGroups']}")
    if ctx.bot is not None and not ctx.bot.is_closed():
        console_print(f"  latency        {ctx.bot.latency * 1000:.0f} ms")


@REGISTRY.register("groups", "g", summary="Known groups and their moderation state")
async def cmd_groups(ctx: ConsoleContext, args: list[str]) -> None:
    result = ctx.surface.list_groups()
    if not print_result(result):
        return

    groups = result.data["groups"]
    if not groups:
        console_print("No groups known yet; is the bot connected?", "ansiyellow")
        return

    print_heading(f"{len(groups)} group(s)")
    for group in groups:
        state = "on " if group["active"] else "off"
        console_print(f"  [{state}] {group['id']}  {group['name']}  ({group['participants']} members)")


@REGISTRY.register("toggle", "t", summary="Switch moderation on or off for a group", usage="toggle <group_id> on|off")
async def cmd_toggle(ctx: ConsoleContext, args: list[str]) -> None:
    if len(args) != 2 or args[1].lower() not in ("on", "off"):
        console_print("Usage: toggle <group_id> on|off", "ansiyellow")
        return
    print_result(ctx.surface.toggle_group(args[0], args[1].lower() == "on"))


@REGISTRY.register("words", "w", summary="Show or replace the blocklist", usage="words [list | set word1,word2,...]")
async def cmd_words(ctx: ConsoleContext, args: list[str]) -> None:
    action = args[0].lower() if args else "list"
    if action == "list":
        result = ctx.surface.get_blocked_words()
        if print_result(result):
            console_print(", ".join(result.data["words"]) or "(blocklist is empty)")
    elif action == "set":
        print_result(ctx.surface.set_blocked_words(" ".join(args[1:]).split(",")))
    else:
        console_print("Usage: words [list | set word1,word2,...]", "ansiyellow")


@REGISTRY.register("stats", summary="Interaction and warning totals")
async def cmd_stats(ctx: ConsoleContext, args: list[str]) -> None:
    result = ctx.surface.get_stats()
    if not print_result(result):
        return

    rows = [
        ("active groups", "activeGroups"),
        ("known groups", "totalGroups"),
        ("interactions", "totalInteractions"),
        ("warnings", "totalWarnings"),
        ("blocked words", "offensiveWordsCount"),
    ]
    print_heading("Statistics")
    for label, key in rows:
        console_print(f"  {label:<15}{result.data[key]}")


@REGISTRY.register("cleardata", "wipe", summary="Clear recorded data", usage="cleardata interactions|warnings|all")
async def cmd_clear_data(ctx: ConsoleContext, args: list[str]) -> None:
    if len(args) != 1:
        console_print("Usage: cleardata interactions|warnings|all", "ansiyellow")
        return
    print_result(ctx.surface.clear_data(args[0].lower()))


@REGISTRY.register(
    "clearwarnings", "unwarn", summary="Clear the warnings of one user", usage="clearwarnings <user_id>"
)
async def cmd_clear_warnings(ctx: ConsoleContext, args: list[str]) -> None:
    if len(args) != 1:
        console_print("Usage: clearwarnings <user_id>", "ansiyellow")
        return
    print_result(ctx.surface.clear_user_warnings(args[0]))


@REGISTRY.register("save", summary="Write the state to disk now")
async def cmd_save(ctx: ConsoleContext, args: list[str]) -> None:
    if await ctx.surface.state.save():
        console_print("State saved.", "ansigreen")
    else:
        console_print("State could not be saved; see the log for details.", "ansired")


@REGISTRY.register("restart", "reboot", summary="Stop the bot and start a fresh process")
async def cmd_restart(ctx: ConsoleContext, args: list[str]) -> None:
    console_print("Restarting...", "ansiyellow")
    ctx.request_shutdown(restart=True)
    await close_bot_instance(ctx.bot)


@REGISTRY.register("shutdown", "stop", "quit", "exit", summary="Stop the bot")
async def cmd_shutdown(ctx: ConsoleContext, args: list[str]) -> None:
    console_print("Shutting down...", "ansiyellow")
    ctx.request_shutdown()
    await close_bot_instance(ctx.bot)


# --- loop ---

async def handle_console_command(line: str, ctx: ConsoleContext) -> None:
    """Run one console line. Handler errors are reported, never raised."""
    words = line.split()
    if not words:
        return

    cmd = REGISTRY.find(words[0].lower())
    if cmd is None:
        console_print(f"Unknown command '{words[0].lower()}'. Type 'help' for the list.", "ansired")
        return

    try:
        await cmd.handler(ctx, words[1:])
    except Exception as exc:
        logger.exception("Console command %r failed: %s", cmd.name, exc)
        console_print(f"Error executing command: {exc}", "ansired")


async def run_console(ctx: ConsoleContext) -> None:
    """Read commands until a shutdown is requested or input ends."""
    session: PromptSession[str] = PromptSession(PROMPT)
    print_heading("chatwarden console", "ansigreen")
    console_print("Type 'help' for commands.", "ansibrightblack")

    with patch_stdout():
        while not ctx.is_shutdown_requested():
            try:
                line = await session.prompt_async()
            except (EOFError, KeyboardInterrupt):
                console_print("Input closed; shutting down.", "ansiyellow")
                ctx.request_shutdown()
                await close_bot_instance(ctx.bot)
                return
            await handle_console_command(line, ctx)


@asynccontextmanager
async def console_session(ctx: ConsoleContext) -> AsyncIterator[ConsoleContext]:
    """Keep the console running for the duration of the ``async with`` body."""
    task = asyncio.create_task(run_console(ctx))
    try:
        yield ctx
    finally:
        ctx.request_shutdown()
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
