"""
Discord implementation of the messaging gateway.

A *group* is a guild text channel, identified by its snowflake as a string.
User identities are member snowflakes as strings, so the mention handle of a
user is the whole identity.
"""

from __future__ import annotations

import io
import re
from typing import List, Optional, Sequence

import discord

from chatwarden.datatypes.moderation_datatypes import user_handle
from chatwarden.datatypes.state_datatypes import GroupInfo
from chatwarden.util.logger import get_logger

logger = get_logger("discord_gateway")

MENTION_PATTERN = re.compile(r"^<@!?(\d+)>$")
STICKER_FILENAME = "sticker.webp"


class GroupNotFoundError(LookupError):
    """Raised when a group id does not resolve to a text channel the bot can use."""


class DiscordGateway:
    """Messaging gateway backed by a py-cord bot instance."""

    def __init__(self, bot: discord.Bot):
        self.bot = bot

    async def _resolve_channel(self, group_id: str) -> discord.abc.Messageable:
        try:
            channel_id = int(group_id)
        except ValueError as exc:
            raise GroupNotFoundError(f"invalid group id {group_id!r}") from exc

        channel = self.bot.get_channel(channel_id)
        if channel is None:
            channel = await self.bot.fetch_channel(channel_id)
        if not isinstance(channel, discord.abc.Messageable):
            raise GroupNotFoundError(f"group {group_id} is not a text channel")
        return channel

    @staticmethod
    def render_mentions(text: str, mentions: Sequence[str]) -> str:
        """Replace ``@<handle>`` placeholders with Discord mention markup."""
        for identity in mentions:
            text = text.replace(f"@{user_handle(identity)}", f"<@{identity}>")
        return text

    async def send_text(self, group_id: str, text: str, mentions: Sequence[str] = ()) -> None:
        channel = await self._resolve_channel(group_id)
        allowed = discord.AllowedMentions(
            everyone=False,
            roles=False,
            users=[discord.Object(id=int(identity)) for identity in mentions if identity.isdigit()],
        )
        await channel.send(self.render_mentions(text, mentions), allowed_mentions=allowed)

    async def send_sticker(self, group_id: str, image_bytes: bytes) -> None:
        channel = await self._resolve_channel(group_id)
        await channel.send(file=discord.File(io.BytesIO(image_bytes), filename=STICKER_FILENAME))

    async def fetch_group_members(self, group_id: str) -> List[str]:
        channel = await self._resolve_channel(group_id)
        members = getattr(channel, "members", None)
        if members is None:
            raise GroupNotFoundError(f"group {group_id} has no member list")
        return [str(member.id) for member in members if not member.bot]

    async def list_groups(self) -> List[GroupInfo]:
        groups: List[GroupInfo] = []
        for guild in self.bot.guilds:
            for channel in guild.text_channels:
                groups.append(
                    GroupInfo(
                        group_id=str(channel.id),
                        name=f"{guild.name} #{channel.name}",
                        participants=len(channel.members),
                    )
                )
        return groups

    def normalize_user_reference(self, token: str) -> Optional[str]:
        token = token.strip()
        match = MENTION_PATTERN.match(token)
        if match:
            return match.group(1)
        if token.isdigit():
            return token
        return None
