"""
bot/discord_api.py
==================
discord.py implementations of the platform collaborators.

A Discord channel is a "thread" for the permission store; IDs are kept as
strings so they match the keys of the JSON document.
"""
from __future__ import annotations

from typing import Optional, Union

import discord
from discord.ext import commands

from bot.platform import CommandEvent, OutboundMessage, ThreadAdmins, ThreadInfo, UserInfo
from config.settings import settings
from utils.formatting import render_mentions, split_message
from utils.logger import get_logger

log = get_logger(__name__)


def event_from_message(message: discord.Message, prefix: str) -> CommandEvent:
    """Build a CommandEvent from a prefixed Discord message.

    ``clean_content`` turns ``<@id>`` into ``@name`` so the command patterns
    only ever see plain ``@`` tags.
    """
    body = message.clean_content
    if body.startswith(prefix):
        body = body[len(prefix):]
    return CommandEvent(
        thread_id=str(message.channel.id),
        message_id=str(message.id),
        sender_id=str(message.author.id),
        body=body.strip(),
        mentions={str(user.id): f"@{user.display_name}" for user in message.mentions},
    )


class DiscordMessenger:
    """Sends replies and reads channel membership through a discord.py bot."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot

    async def _channel(self, thread_id: str) -> discord.abc.Messageable:
        channel_id = int(thread_id)
        channel = self.bot.get_channel(channel_id)
        if channel is None:
            channel = await self.bot.fetch_channel(channel_id)
        return channel  # type: ignore[return-value]

    async def send_message(
        self,
        message: Union[str, OutboundMessage],
        thread_id: str,
        reply_to: Optional[str] = None,
    ) -> None:
        channel = await self._channel(thread_id)

        if isinstance(message, OutboundMessage):
            text = render_mentions(message.body, message.mentions, lambda m: f"<@{m.id}>")
            allowed = discord.AllowedMentions(
                everyone=False,
                roles=False,
                users=[discord.Object(id=int(m.id)) for m in message.mentions],
            )
        else:
            text = message
            allowed = discord.AllowedMentions.none()

        reference = None
        if reply_to is not None:
            reference = discord.MessageReference(
                message_id=int(reply_to),
                channel_id=int(thread_id),
                fail_if_not_exists=False,
            )

        chunks = split_message(text)
        await channel.send(chunks[0], reference=reference, allowed_mentions=allowed)
        for chunk in chunks[1:]:
            await channel.send(chunk, allowed_mentions=allowed)

    async def get_thread_info(self, thread_id: str) -> ThreadInfo:
        channel = await self._channel(thread_id)
        if isinstance(channel, discord.DMChannel):
            members = [channel.recipient] if channel.recipient else []
        else:
            members = []
            for entry in getattr(channel, "members", []):
                # Threads list ThreadMember entries; only guild members carry a display name
                if isinstance(entry, discord.ThreadMember):
                    entry = channel.guild.get_member(entry.id)  # type: ignore[union-attr]
                if entry is not None:
                    members.append(entry)
        return ThreadInfo(
            participant_ids=[str(member.id) for member in members],
            user_info=[UserInfo(id=str(member.id), name=member.display_name) for member in members],
        )


class DiscordAdminRegistry:
    """Guild administrators, the guild owner and the bot owner count as admins."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot

    def _bot_owner(self) -> Optional[str]:
        if settings.BOT_OWNER_ID:
            return settings.BOT_OWNER_ID
        return str(self.bot.owner_id) if self.bot.owner_id else None

    def get_thread_admins(self, thread_id: str) -> ThreadAdmins:
        channel = self.bot.get_channel(int(thread_id))
        if channel is None:
            log.debug("Channel %s is not cached; admin lookup unavailable.", thread_id)
            return ThreadAdmins(has_error=True)

        guild = getattr(channel, "guild", None)
        if guild is None:
            # DMs have no admins; only the owner bypasses
            return ThreadAdmins(bot_owner=self._bot_owner())

        admins = {str(member.id) for member in guild.members if member.guild_permissions.administrator}
        admins.add(str(guild.owner_id))
        return ThreadAdmins(admins=admins, bot_owner=self._bot_owner())
