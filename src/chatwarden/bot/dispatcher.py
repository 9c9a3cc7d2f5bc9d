"""
Single entry point for inbound chat traffic.

The dispatcher gates messages on the activation registry, routes ``!``
commands, runs the moderation engine and hands outbound work (notices,
command replies, stickers) to background tasks.

Every state mutation for a message happens synchronously inside
``on_message`` before its first ``await``, so mutations for one sender apply
in arrival order while slow sends never hold up other groups.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from typing import Any, Set

from chatwarden.bot import group_commands
from chatwarden.configuration.app_configuration import ModerationSettings
from chatwarden.datatypes.moderation_datatypes import InboundMessage, OutboundNotice
from chatwarden.datatypes.state_datatypes import ConnectionState
from chatwarden.gateway.base import MessagingGateway
from chatwarden.moderation.moderation_engine import ModerationEngine
from chatwarden.moderation.notices import STICKER_CREATED_TEXT
from chatwarden.state.state_manager import StateManager
from chatwarden.util.image_utils import make_sticker
from chatwarden.util.logger import get_logger

logger = get_logger("dispatcher")

Transcoder = Callable[[bytes], bytes]


class MessageDispatcher:
    """Routes gateway events into the moderation core."""

    def __init__(
        self,
        state: StateManager,
        engine: ModerationEngine,
        gateway: MessagingGateway,
        settings: ModerationSettings | None = None,
        transcoder: Transcoder = make_sticker,
    ):
        self.state = state
        self.engine = engine
        self.gateway = gateway
        self.settings = settings or engine.settings
        self.transcoder = transcoder
        self._background: Set[asyncio.Task] = set()

    # --- Background work ---
    def spawn(self, coro: Coroutine[Any, Any, Any], description: str) -> asyncio.Task:
        """Run outbound work without blocking message handling; failures are logged."""
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)

        def _cleanup(completed: asyncio.Task) -> None:
            self._background.discard(completed)
            if completed.cancelled():
                return
            exc = completed.exception()
            if exc is not None:
                logger.error("[DISPATCHER] %s failed: %s", description, exc, exc_info=exc)

        task.add_done_callback(_cleanup)
        return task

    def send_notice(self, notice: OutboundNotice) -> asyncio.Task:
        return self.spawn(
            self.gateway.send_text(notice.group_id, notice.text, notice.mentions),
            f"Sending notice to {notice.group_id}",
        )

    # --- Inbound events ---
    def should_process(self, message: InboundMessage) -> bool:
        """Only group traffic from activated groups is counted or moderated."""
        return message.is_group and self.state.is_active(message.group_id)

    async def on_message(self, message: InboundMessage) -> None:
        """Handle one inbound message. Never raises; a failing message is dropped."""
        try:
            self._handle(message)
        except Exception:
            logger.exception(
                "[DISPATCHER] Dropping message from %s in %s after an unexpected error",
                message.sender_id, message.group_id,
            )

    def _handle(self, message: InboundMessage) -> None:
        if not self.should_process(message):
            return

        text = message.text or ""
        if text.startswith(self.settings.command_prefix):
            self.state.record_interaction(message.sender_id)
            group_commands.handle_command(self, message)
            return

        outcome = self.engine.evaluate(message.group_id, message.sender_id, text)
        if outcome.notice is not None:
            self.send_notice(outcome.notice)

        if self.wants_sticker(message):
            self.spawn(self._create_sticker(message), f"Creating sticker in {message.group_id}")

    def wants_sticker(self, message: InboundMessage) -> bool:
        keyword = self.settings.sticker_keyword
        return (
            message.has_image
            and message.fetch_image is not None
            and bool(keyword)
            and keyword in (message.text or "").lower()
        )

    async def _create_sticker(self, message: InboundMessage) -> None:
        assert message.fetch_image is not None
        image_bytes = await message.fetch_image()
        sticker = await asyncio.to_thread(self.transcoder, image_bytes)
        await self.gateway.send_sticker(message.group_id, sticker)
        await self.gateway.send_text(message.group_id, STICKER_CREATED_TEXT, [])
        logger.info("[DISPATCHER] Sticker created for %s in %s", message.sender_id, message.group_id)

    async def on_connection_state_change(self, state: ConnectionState) -> None:
        """Record the gateway state; on connect, refresh the list of known groups."""
        self.state.set_connection_state(state)
        if state is not ConnectionState.CONNECTED:
            return

        try:
            groups = await self.gateway.list_groups()
        except Exception as exc:
            logger.error("[DISPATCHER] Failed to load groups: %s", exc)
            return
        self.state.set_known_groups(groups)

    async def shutdown(self) -> None:
        """Wait for in-flight sends before the gateway goes away."""
        pending = list(self._background)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._background.clear()
