from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from chatwarden.gateway import discord_gateway
from chatwarden.gateway.base import MessagingGateway
from chatwarden.gateway.discord_gateway import DiscordGateway, GroupNotFoundError


class FakeChannel:
    def __init__(self, channel_id=1001, members=()):
        self.id = channel_id
        self.name = "geral"
        self.members = list(members)
        self.send = AsyncMock()


@pytest.fixture
def channel():
    return FakeChannel(members=[SimpleNamespace(id=1, bot=False), SimpleNamespace(id=2, bot=True), SimpleNamespace(id=3, bot=False)])


@pytest.fixture
def gateway(channel, monkeypatch):
    monkeypatch.setattr(discord_gateway.discord.abc, "Messageable", FakeChannel)
    bot = SimpleNamespace(
        get_channel=MagicMock(return_value=channel),
        fetch_channel=AsyncMock(return_value=channel),
        guilds=[SimpleNamespace(name="Servidor", text_channels=[channel])],
    )
    return DiscordGateway(bot)


def test_satisfies_gateway_protocol(gateway):
    assert isinstance(gateway, MessagingGateway)


def test_render_mentions():
    text = DiscordGateway.render_mentions("⚠️ @123 cuidado, @456!", ["123", "456"])
    assert text == "⚠️ <@123> cuidado, <@456>!"


@pytest.mark.asyncio
async def test_send_text_renders_mentions(gateway, channel):
    await gateway.send_text("1001", "@1 oi", ["1"])

    args, kwargs = channel.send.await_args
    assert args == ("<@1> oi",)
    assert [user.id for user in kwargs["allowed_mentions"].users] == [1]


@pytest.mark.asyncio
async def test_fetch_group_members_skips_bots(gateway):
    assert await gateway.fetch_group_members("1001") == ["1", "3"]


@pytest.mark.asyncio
async def test_falls_back_to_fetch_channel(gateway, channel):
    gateway.bot.get_channel.return_value = None

    await gateway.send_sticker("1001", b"webp")

    gateway.bot.fetch_channel.assert_awaited_once_with(1001)
    assert channel.send.await_args.kwargs["file"].filename == "sticker.webp"


@pytest.mark.asyncio
async def test_invalid_group_id(gateway):
    with pytest.raises(GroupNotFoundError):
        await gateway.send_text("not-a-channel", "oi")


@pytest.mark.asyncio
async def test_list_groups(gateway):
    groups = await gateway.list_groups()

    assert [(g.group_id, g.name, g.participants) for g in groups] == [("1001", "Servidor #geral", 3)]


@pytest.mark.parametrize(
    "token, expected",
    [("<@123>", "123"), ("<@!123>", "123"), ("123", "123"), ("@fulano", None), ("", None)],
)
def test_normalize_user_reference(gateway, token, expected):
    assert gateway.normalize_user_reference(token) == expected
