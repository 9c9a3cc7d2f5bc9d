"""
``!`` commands available inside moderated groups.

Commands are matched on the first word, case-insensitively. Unknown commands
are ignored without a reply. Replies go out as dispatcher background tasks.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, List, Optional

from chatwarden.datatypes.moderation_datatypes import InboundMessage
from chatwarden.engagement import queries
from chatwarden.moderation import notices
from chatwarden.util.logger import get_logger

if TYPE_CHECKING:
    from chatwarden.bot.dispatcher import MessageDispatcher

logger = get_logger("group_commands")

CommandHandler = Callable[["MessageDispatcher", InboundMessage, List[str]], None]


def parse_command(text: str, prefix: str) -> tuple[str, List[str]]:
    """Split ``!name arg ...`` into the lower-cased name (without prefix) and its arguments."""
    parts = text[len(prefix):].split()
    if not parts:
        return "", []
    return parts[0].lower(), parts[1:]


async def _fetch_members(dispatcher: "MessageDispatcher", group_id: str) -> Optional[List[str]]:
    try:
        return await dispatcher.gateway.fetch_group_members(group_id)
    except Exception as exc:
        logger.warning("[GROUP COMMANDS] Member lookup failed for %s: %s", group_id, exc)
        return None


async def _send_ranking(dispatcher: "MessageDispatcher", group_id: str) -> None:
    members = await _fetch_members(dispatcher, group_id)
    entries = queries.ranking(
        dispatcher.state.interactions,
        group_id,
        members=members,
        limit=dispatcher.settings.ranking_limit,
    )
    await dispatcher.gateway.send_text(
        group_id,
        notices.render_ranking(entries),
        [user_id for user_id, _ in entries],
    )


async def _send_lurkers(dispatcher: "MessageDispatcher", group_id: str) -> None:
    members = await _fetch_members(dispatcher, group_id)
    if members is None:
        return

    entries = queries.lurkers(
        dispatcher.state.interactions,
        members,
        threshold=dispatcher.settings.lurker_threshold,
        limit=dispatcher.settings.lurker_limit,
    )
    await dispatcher.gateway.send_text(
        group_id,
        notices.render_lurkers(entries),
        [user_id for user_id, _ in entries],
    )


def cmd_ranking(dispatcher: "MessageDispatcher", message: InboundMessage, args: List[str]) -> None:
    dispatcher.spawn(_send_ranking(dispatcher, message.group_id), f"Sending ranking to {message.group_id}")


def cmd_lurkers(dispatcher: "MessageDispatcher", message: InboundMessage, args: List[str]) -> None:
    dispatcher.spawn(_send_lurkers(dispatcher, message.group_id), f"Sending lurkers to {message.group_id}")


def resolve_target(dispatcher: "MessageDispatcher", message: InboundMessage, args: List[str]) -> Optional[str]:
    """Pick the user a command refers to.

    The explicit argument wins; a mention only fills in when the argument is
    not a user reference, since a reply adds the replied-to author to the
    mentions.
    """
    if not args:
        return None
    target = dispatcher.gateway.normalize_user_reference(args[0])
    if target is None and message.mentions:
        return message.mentions[0]
    return target


def cmd_clear_warnings(dispatcher: "MessageDispatcher", message: InboundMessage, args: List[str]) -> None:
    target = resolve_target(dispatcher, message, args)
    if target is None:
        return

    dispatcher.state.clear_warnings(target)
    dispatcher.spawn(
        dispatcher.gateway.send_text(message.group_id, notices.WARNINGS_CLEARED_TEXT, []),
        f"Confirming warning clear in {message.group_id}",
    )


def cmd_help(dispatcher: "MessageDispatcher", message: InboundMessage, args: List[str]) -> None:
    text = notices.render_help(dispatcher.settings.command_prefix, dispatcher.settings.sticker_keyword)
    dispatcher.spawn(
        dispatcher.gateway.send_text(message.group_id, text, []),
        f"Sending help to {message.group_id}",
    )


COMMANDS: dict[str, CommandHandler] = {
    "ranking": cmd_ranking,
    "tocaia": cmd_lurkers,
    "limpar": cmd_clear_warnings,
    "ajuda": cmd_help,
}


def handle_command(dispatcher: "MessageDispatcher", message: InboundMessage) -> bool:
    """Run the command in ``message``. Returns False for unknown commands."""
    name, args = parse_command(message.text, dispatcher.settings.command_prefix)
    handler = COMMANDS.get(name)
    if handler is None:
        logger.debug("[GROUP COMMANDS] Ignoring unknown command %r from %s", name, message.sender_id)
        return False

    logger.debug("[GROUP COMMANDS] %s ran %r in %s", message.sender_id, name, message.group_id)
    handler(dispatcher, message, args)
    return True
