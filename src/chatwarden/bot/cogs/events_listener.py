"""Event listener Cog for chatwarden.

Translates Discord connection lifecycle events into connection-state changes
for the dispatcher and keeps the bot presence in sync.
"""

import discord
from discord.ext import commands

from chatwarden.bot.dispatcher import MessageDispatcher
from chatwarden.datatypes.state_datatypes import ConnectionState
from chatwarden.util.logger import get_logger

logger = get_logger("events_listener_cog")


class EventsListenerCog(commands.Cog):
    """Cog containing connection lifecycle handlers."""

    def __init__(self, discord_bot_instance, dispatcher: MessageDispatcher):
        self.bot = discord_bot_instance
        self.dispatcher = dispatcher
        logger.info("Events listener cog loaded")

    @commands.Cog.listener(name="on_connect")
    async def on_connect(self):
        await self.dispatcher.on_connection_state_change(ConnectionState.CONNECTING)

    @commands.Cog.listener(name="on_ready")
    async def on_ready(self):
        """Mark the gateway connected, load the group list and set the presence."""
        if self.bot.user:
            logger.info(f"Bot connected as {self.bot.user} (ID: {self.bot.user.id})")
        else:
            logger.warning("Bot partially connected, but user information not yet available.")

        await self.dispatcher.on_connection_state_change(ConnectionState.CONNECTED)
        await self._update_presence()

    @commands.Cog.listener(name="on_resumed")
    async def on_resumed(self):
        await self.dispatcher.on_connection_state_change(ConnectionState.CONNECTED)

    @commands.Cog.listener(name="on_disconnect")
    async def on_disconnect(self):
        logger.warning("Lost connection to Discord")
        await self.dispatcher.on_connection_state_change(ConnectionState.DISCONNECTED)

    async def _update_presence(self) -> None:
        if not self.bot.user:
            return

        active = len(self.dispatcher.state.active_groups)
        try:
            await self.bot.change_presence(
                status=discord.Status.online,
                activity=discord.Activity(
                    type=discord.ActivityType.watching,
                    name=f"{active} grupo(s) moderado(s)",
                ),
            )
        except Exception as exc:
            logger.error("Failed to update presence: %s", exc)


def setup(discord_bot_instance, dispatcher: MessageDispatcher):
    """Register the EventsListenerCog with the bot."""
    cog = EventsListenerCog(discord_bot_instance, dispatcher)
    discord_bot_instance.add_cog(cog)
    return cog
