"""Message listener Cog for chatwarden.

Converts Discord messages into gateway-neutral ``InboundMessage`` values and
hands them to the message dispatcher.
"""

import discord
from discord.ext import commands

from chatwarden.bot.dispatcher import MessageDispatcher
from chatwarden.datatypes.moderation_datatypes import InboundMessage
from chatwarden.util.logger import get_logger

logger = get_logger("message_listener_cog")

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".webp", ".bmp", ".heic", ".heif")


def is_image_attachment(attachment: discord.Attachment) -> bool:
    """Return True if the Discord attachment should be treated as an image."""
    content_type = (attachment.content_type or "").lower()
    if content_type.startswith("image/"):
        return True

    if attachment.width is not None and attachment.height is not None:
        return True

    filename = (attachment.filename or "").lower()
    return filename.endswith(IMAGE_EXTENSIONS)


def has_payload(message: discord.Message) -> bool:
    """False only for messages with no text, no attachments and no stickers."""
    return bool(message.content or message.attachments or getattr(message, "stickers", None))


def to_inbound_message(message: discord.Message) -> InboundMessage:
    """Build the dispatcher's view of a Discord message.

    Guild channels are groups; DMs are not. The first image attachment, if
    any, is exposed through a lazy ``fetch_image``.
    """
    image = next((att for att in message.attachments if is_image_attachment(att)), None)

    return InboundMessage(
        group_id=str(message.channel.id),
        sender_id=str(message.author.id),
        text=message.content or "",
        is_group=message.guild is not None,
        has_image=image is not None,
        mentions=[str(user.id) for user in message.mentions],
        fetch_image=image.read if image is not None else None,
    )


class MessageListenerCog(commands.Cog):
    """Cog responsible for handling message creation events."""

    def __init__(self, discord_bot_instance, dispatcher: MessageDispatcher):
        self.bot = discord_bot_instance
        self.dispatcher = dispatcher
        logger.info("Message listener cog loaded")

    def is_own_or_bot_message(self, message: discord.Message) -> bool:
        author = message.author
        if getattr(author, "bot", False):
            return True
        me = getattr(self.bot, "user", None)
        return me is not None and author.id == me.id

    @commands.Cog.listener(name="on_message")
    async def on_message(self, message: discord.Message):
        """Forward a human-authored message to the dispatcher."""
        if self.is_own_or_bot_message(message):
            return

        try:
            inbound = to_inbound_message(message)
        except Exception:
            logger.exception("Failed to read message %s", getattr(message, "id", "?"))
            return

        if not has_payload(message):
            return

        await self.dispatcher.on_message(inbound)


def setup(discord_bot_instance, dispatcher: MessageDispatcher):
    """Register the MessageListenerCog with the bot."""
    cog = MessageListenerCog(discord_bot_instance, dispatcher)
    discord_bot_instance.add_cog(cog)
    return cog
