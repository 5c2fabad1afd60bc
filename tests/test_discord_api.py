from __future__ import annotations

import asyncio
import types

import discord

from bot.discord_api import DiscordAdminRegistry, DiscordMessenger, event_from_message
from bot.platform import Mention, OutboundMessage
from config.settings import settings


class FakeChannel:
    def __init__(self, channel_id: int, guild=None, members=()) -> None:
        self.id = channel_id
        self.guild = guild
        self.members = list(members)
        self.sent = []

    async def send(self, content, **kwargs) -> None:
        self.sent.append((content, kwargs))


class FakeBot:
    def __init__(self, channels, owner_id=None) -> None:
        self._channels = {channel.id: channel for channel in channels}
        self.owner_id = owner_id

    def get_channel(self, channel_id: int):
        return self._channels.get(channel_id)

    async def fetch_channel(self, channel_id: int):
        raise LookupError(channel_id)


def member(member_id: int, name: str, admin: bool = False):
    return types.SimpleNamespace(
        id=member_id,
        display_name=name,
        guild_permissions=types.SimpleNamespace(administrator=admin),
    )


def test_event_from_message_strips_prefix_and_collects_mentions():
    message = types.SimpleNamespace(
        clean_content="!permission grant meme @Alice",
        channel=types.SimpleNamespace(id=10),
        id=20,
        author=types.SimpleNamespace(id=30),
        mentions=[types.SimpleNamespace(id=40, display_name="Alice")],
    )

    event = event_from_message(message, "!")

    assert event.thread_id == "10"
    assert event.message_id == "20"
    assert event.sender_id == "30"
    assert event.body == "permission grant meme @Alice"
    assert event.mentions == {"40": "@Alice"}


def test_send_message_renders_mentions_and_replies():
    channel = FakeChannel(10)
    messenger = DiscordMessenger(FakeBot([channel]))
    body = "🤖Gave permission to: \n\n@Alice\n\nFor command(s): \n\n'meme'."
    outbound = OutboundMessage(body=body, mentions=[Mention(id="40", tag="@Alice", from_index=body.index("@Alice"))])

    asyncio.run(messenger.send_message(outbound, "10", reply_to="20"))

    content, kwargs = channel.sent[0]
    assert content == "🤖Gave permission to: \n\n<@40>\n\nFor command(s): \n\n'meme'."
    assert kwargs["reference"].message_id == 20
    assert [user.id for user in kwargs["allowed_mentions"].users] == [40]


def test_send_plain_text_splits_long_bodies():
    channel = FakeChannel(10)
    messenger = DiscordMessenger(FakeBot([channel]))

    asyncio.run(messenger.send_message("line\n" * 900, "10"))

    assert len(channel.sent) == 3
    assert all(len(content) <= 2000 for content, _ in channel.sent)
    assert channel.sent[0][1]["reference"] is None


def test_thread_info_lists_channel_members():
    channel = FakeChannel(10, members=[member(1, "Alice"), member(2, "Bob")])
    messenger = DiscordMessenger(FakeBot([channel]))

    info = asyncio.run(messenger.get_thread_info("10"))

    assert info.participant_ids == ["1", "2"]
    assert [(u.id, u.name) for u in info.user_info] == [("1", "Alice"), ("2", "Bob")]


def test_admin_registry_collects_guild_admins_and_owner(monkeypatch):
    monkeypatch.setattr(settings, "BOT_OWNER_ID", None)
    guild = types.SimpleNamespace(owner_id=99, members=[member(1, "Alice", admin=True), member(2, "Bob")])
    registry = DiscordAdminRegistry(FakeBot([FakeChannel(10, guild=guild)], owner_id=7))

    admins = registry.get_thread_admins("10")

    assert admins.has_error is False
    assert admins.admins == {"1", "99"}
    assert admins.bot_owner == "7"


def test_admin_registry_reports_unknown_channel(monkeypatch):
    monkeypatch.setattr(settings, "BOT_OWNER_ID", "5")
    registry = DiscordAdminRegistry(FakeBot([FakeChannel(11)]))

    assert registry.get_thread_admins("10").has_error is True

    dm_admins = registry.get_thread_admins("11")
    assert dm_admins.admins == set()
    assert dm_admins.bot_owner == "5"


def test_thread_info_resolves_thread_members_through_guild():
    alice = member(42, "Alice")
    guild = types.SimpleNamespace(get_member=lambda member_id: alice if member_id == 42 else None)
    thread = FakeChannel(10, guild=guild)
    thread._state = None
    payload = {"id": "10", "join_timestamp": "2024-01-01T00:00:00+00:00", "flags": 0}
    thread.members = [
        discord.ThreadMember(parent=thread, data={"user_id": "42", **payload}),
        discord.ThreadMember(parent=thread, data={"user_id": "43", **payload}),
    ]
    messenger = DiscordMessenger(FakeBot([thread]))

    info = asyncio.run(messenger.get_thread_info("10"))

    assert info.participant_ids == ["42"]
    assert [(u.id, u.name) for u in info.user_info] == [("42", "Alice")]
