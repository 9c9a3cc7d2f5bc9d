from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from chatwarden.bot.cogs import events_listener, message_listener
from chatwarden.bot.dispatcher import MessageDispatcher
from chatwarden.datatypes.state_datatypes import ConnectionState
from chatwarden.moderation.moderation_engine import ModerationEngine


def make_attachment(content_type="image/png", filename="photo.png", width=10, height=10):
    return SimpleNamespace(
        content_type=content_type,
        filename=filename,
        width=width,
        height=height,
        read=AsyncMock(return_value=b"bytes"),
    )


def make_message(content="oi", *, guild=True, author_id=42, bot=False, attachments=(), mentions=()):
    return SimpleNamespace(
        id=1,
        content=content,
        guild=SimpleNamespace(id=7) if guild else None,
        channel=SimpleNamespace(id=1001),
        author=SimpleNamespace(id=author_id, bot=bot),
        attachments=list(attachments),
        mentions=[SimpleNamespace(id=user_id) for user_id in mentions],
    )


@pytest.fixture
def fake_bot():
    return SimpleNamespace(
        user=SimpleNamespace(id=999),
        change_presence=AsyncMock(),
        add_cog=MagicMock(),
    )


@pytest.fixture
def fake_dispatcher():
    return SimpleNamespace(
        on_message=AsyncMock(),
        on_connection_state_change=AsyncMock(),
        state=SimpleNamespace(active_groups=["1001"]),
    )


def test_to_inbound_message_for_guild_channel():
    attachment = make_attachment()
    inbound = message_listener.to_inbound_message(
        make_message("figurinha", attachments=[attachment], mentions=[5, 6])
    )

    assert inbound.group_id == "1001"
    assert inbound.sender_id == "42"
    assert inbound.text == "figurinha"
    assert inbound.is_group is True
    assert inbound.has_image is True
    assert inbound.mentions == ["5", "6"]
    assert inbound.fetch_image is attachment.read


def test_direct_messages_are_not_groups():
    inbound = message_listener.to_inbound_message(make_message(guild=False))
    assert inbound.is_group is False
    assert inbound.fetch_image is None


@pytest.mark.parametrize(
    "attachment, expected",
    [
        (make_attachment(), True),
        (make_attachment(content_type=None, width=None, height=None, filename="IMG_1.HEIC"), True),
        (make_attachment(content_type="application/pdf", width=None, height=None, filename="doc.pdf"), False),
    ],
)
def test_is_image_attachment(attachment, expected):
    assert message_listener.is_image_attachment(attachment) is expected


@pytest.mark.asyncio
async def test_on_message_forwards_human_messages(fake_bot, fake_dispatcher):
    cog = message_listener.setup(fake_bot, fake_dispatcher)
    fake_bot.add_cog.assert_called_once_with(cog)

    await cog.on_message(make_message("porra"))

    fake_dispatcher.on_message.assert_awaited_once()
    assert fake_dispatcher.on_message.await_args.args[0].text == "porra"


@pytest.mark.asyncio
@pytest.mark.parametrize("msg", [make_message(bot=True), make_message(author_id=999), make_message("")])
async def test_on_message_skips_bots_self_and_empty_payloads(fake_bot, fake_dispatcher, msg):
    cog = message_listener.MessageListenerCog(fake_bot, fake_dispatcher)

    await cog.on_message(msg)

    fake_dispatcher.on_message.assert_not_awaited()


@pytest.mark.asyncio
async def test_events_listener_reports_connection_states(fake_bot, fake_dispatcher):
    cog = events_listener.setup(fake_bot, fake_dispatcher)

    await cog.on_connect()
    await cog.on_ready()
    await cog.on_disconnect()

    states = [call.args[0] for call in fake_dispatcher.on_connection_state_change.await_args_list]
    assert states == [ConnectionState.CONNECTING, ConnectionState.CONNECTED, ConnectionState.DISCONNECTED]
    activity = fake_bot.change_presence.await_args.kwargs["activity"]
    assert activity.name == "1 grupo(s) moderado(s)"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "msg",
    [
        make_message("", attachments=[make_attachment("application/pdf", "notes.pdf", None, None)]),
        make_message("", attachments=[make_attachment("audio/ogg", "voice-message.ogg", None, None)]),
        SimpleNamespace(**{**vars(make_message("")), "stickers": [SimpleNamespace(id=77)]}),
    ],
)
async def test_textless_messages_are_counted(fake_bot, state, settings, gateway, msg):
    state.activate("1001")
    dispatcher = MessageDispatcher(state, ModerationEngine(state, settings), gateway, settings)
    cog = message_listener.MessageListenerCog(fake_bot, dispatcher)

    await cog.on_message(msg)
    await dispatcher.shutdown()

    assert state.interaction_count("42") == 1
    assert gateway.sent == []
