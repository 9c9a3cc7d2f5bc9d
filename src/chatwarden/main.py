"""
chatwarden entry point
======================

Restores the saved state, connects the Discord bot, and runs the admin
console next to it until someone asks for a shutdown or restart. A restart
ends the process with ``RESTART_EXIT_CODE`` and re-executes it.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Directory that holds ``config/``, ``data/``, ``logs/`` and ``.env``.

    ``CHATWARDEN_HOME`` wins when set. A frozen build uses the directory of
    its executable, and a source checkout uses the repository root.
    """
    home = os.getenv("CHATWARDEN_HOME")
    if home:
        return Path(home).resolve()
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[2]


BASE_DIR = resolve_base_dir()
# Relative paths in config/app_config.yml are resolved against BASE_DIR
os.chdir(BASE_DIR)

import asyncio  # noqa: E402

import discord  # noqa: E402
from dotenv import load_dotenv  # noqa: E402

from chatwarden.bot.dispatcher import MessageDispatcher  # noqa: E402
from chatwarden.configuration.app_configuration import ModerationSettings, app_config  # noqa: E402
from chatwarden.control.control_surface import ControlSurface  # noqa: E402
from chatwarden.database.database import SnapshotStore  # noqa: E402
from chatwarden.gateway.discord_gateway import DiscordGateway  # noqa: E402
from chatwarden.moderation.moderation_engine import ModerationEngine  # noqa: E402
from chatwarden.state.state_manager import StateManager  # noqa: E402
from chatwarden.ui.console import ConsoleContext, close_bot_instance, console_session  # noqa: E402
from chatwarden.util.logger import get_logger, handle_exception  # noqa: E402

logger = get_logger("main")

RESTART_EXIT_CODE = 42
TOKEN_VARIABLE = "DISCORD_BOT_TOKEN"


def load_environment() -> str:
    """Read ``.env`` and return the bot token; exits with status 1 when it is missing."""
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv(TOKEN_VARIABLE, "").strip()
    if not token:
        logger.critical("%s is not set; the bot cannot log in.", TOKEN_VARIABLE)
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Message text for moderation, member lists for the ranking and lurker commands."""
    intents = discord.Intents.default()
    intents.guilds = True
    intents.messages = True
    intents.message_content = True
    intents.members = True
    return intents


def load_cogs(bot: discord.Bot, dispatcher: MessageDispatcher) -> None:
    from chatwarden.bot.cogs import events_listener, message_listener

    for cog_module in (events_listener, message_listener):
        cog_module.setup(bot, dispatcher)
    logger.info("Cogs registered.")


async def initialize_state(settings: ModerationSettings) -> StateManager:
    """Open the snapshot store and restore the last saved state.

    An unusable store does not stop startup: the bot runs on in-memory state
    and every failed save is logged.
    """
    store = SnapshotStore(app_config.database_path)
    if not await store.initialize():
        logger.error("State store at %s is unavailable; state will not survive a restart.", store.db_path)

    state = StateManager(store, default_words=settings.offensive_words)
    await state.load()
    return state


def create_runtime(
    state: StateManager, settings: ModerationSettings
) -> tuple[discord.Bot, MessageDispatcher, ControlSurface]:
    """Build the bot and everything that hangs off it."""
    bot = discord.Bot(intents=build_intents())
    dispatcher = MessageDispatcher(state, ModerationEngine(state, settings), DiscordGateway(bot), settings)
    load_cogs(bot, dispatcher)
    return bot, dispatcher, ControlSurface(state)


async def start_bot(bot: discord.Bot, token: str) -> None:
    logger.info("Connecting to Discord...")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord connection cancelled.")


async def shutdown_runtime(bot: discord.Bot | None, dispatcher: MessageDispatcher, state: StateManager) -> None:
    """Let queued sends finish, disconnect, then write the final state."""
    try:
        await dispatcher.shutdown()
    except Exception as exc:
        logger.exception("Outbound messages could not be drained: %s", exc)

    await close_bot_instance(bot, log_close=True)
    await state.save()
    await state.shutdown()
    logger.info("Shutdown complete.")


async def run_bot_session(
    bot: discord.Bot,
    token: str,
    ctx: ConsoleContext,
    dispatcher: MessageDispatcher,
    state: StateManager,
) -> int:
    """Run the bot with the console attached; returns 1 when the bot crashed."""
    ctx.set_bot(bot)
    exit_code = 0
    try:
        async with console_session(ctx):
            try:
                await start_bot(bot, token)
            except asyncio.CancelledError:
                logger.info("Bot session cancelled.")
            except Exception as exc:
                logger.critical("Discord runtime failed: %s", exc)
                exit_code = 1
    finally:
        ctx.set_bot(None)
        await shutdown_runtime(bot, dispatcher, state)
    return exit_code


async def async_main() -> int:
    token = load_environment()
    settings = app_config.moderation_settings()
    state = await initialize_state(settings)

    try:
        bot, dispatcher, surface = create_runtime(state, settings)
    except Exception as exc:
        logger.critical("Could not build the Discord bot: %s", exc)
        return 1

    ctx = ConsoleContext(surface)
    exit_code = await run_bot_session(bot, token, ctx, dispatcher, state)
    if ctx.is_restart_requested():
        logger.info("Restart requested (exit code %d).", RESTART_EXIT_CODE)
        return RESTART_EXIT_CODE
    return exit_code


def main() -> int:
    """Console-script entry point; returns the process exit status."""
    logger.info("Starting chatwarden...")
    try:
        exit_code = asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Interrupted; exiting.")
        return 0
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 1
    except Exception as exc:
        logger.critical("chatwarden stopped on an unexpected error: %s", exc)
        return 1

    if exit_code == RESTART_EXIT_CODE:
        logger.info("Re-executing for restart.")
        os.execv(sys.executable, [sys.executable, *sys.argv])
    return exit_code


if __name__ == "__main__":
    sys.excepthook = handle_exception
    sys.exit(main())
