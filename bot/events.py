"""
bot/events.py
=============
Event handlers.

- :class:`BotEvent` is the one capability every handler provides: an async
  ``on_event(event, api)``.
- :class:`CommandDispatcher` is the handler for inbound messages.  It looks
  the text up in the command registry, checks that the sender may run the
  command in this thread, and executes it.
- :class:`EventCog` is the discord.py side: it turns each ``on_message`` into
  a :class:`~bot.platform.CommandEvent` and hands it to every registered
  handler.

Permission rules for a matched command:
- ``admin_only`` commands need a thread admin or the bot owner.
- Anything else needs the admin/owner bypass or a stored grant for the
  command's name (see bot/permissions.py).
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

import discord
from discord.ext import commands

from bot.commands import CommandExtras, CommandRegistry
from bot.discord_api import DiscordMessenger, event_from_message
from bot.permissions import PermissionStore
from bot.platform import CommandEvent, Messenger
from config.settings import settings
from utils.logger import get_logger

log = get_logger(__name__)


class BotEvent(ABC):
    """A handler bound to one kind of platform event."""

    @abstractmethod
    async def on_event(self, event: CommandEvent, api: Messenger) -> None:
        """Handle *event*, replying through *api* if needed."""


class CommandDispatcher(BotEvent):
    """Routes inbound messages to the matching command."""

    def __init__(self, registry: CommandRegistry, store: PermissionStore) -> None:
        self.registry = registry
        self.store = store

    def _is_allowed(self, command, event: CommandEvent) -> bool:
        if command.admin_only:
            return self.store.is_thread_admin(event.thread_id, event.sender_id)
        return self.store.user_has_permission(event.thread_id, event.sender_id, command.name)

    async def on_event(self, event: CommandEvent, api: Messenger) -> None:
        found = self.registry.match(event.body)
        if found is None:
            return
        command, match = found

        if match is None:
            hint = f"{command.description}\n" if command.description else ""
            await api.send_message(
                f"⚠️Invalid usage. {hint}Try: {settings.COMMAND_PREFIX}{command.usage}",
                event.thread_id,
                event.message_id,
            )
            return

        if not self._is_allowed(command, event):
            log.info(
                "User %s denied '%s' in thread %s.", event.sender_id, command.name, event.thread_id
            )
            await api.send_message(
                f"⚠️You don't have permission to use '{command.name}'.",
                event.thread_id,
                event.message_id,
            )
            return

        log.info("User %s ran '%s' in thread %s.", event.sender_id, command.name, event.thread_id)
        try:
            await command.execute(match, event, api, CommandExtras(commands=self.registry.all()))
        except Exception:
            log.exception("Command '%s' failed in thread %s.", command.name, event.thread_id)


class EventCog(commands.Cog):
    """Feeds prefixed Discord messages to the registered :class:`BotEvent` handlers."""

    def __init__(self, bot: commands.Bot, messenger: DiscordMessenger) -> None:
        self.bot = bot
        self.messenger = messenger
        self.handlers: List[BotEvent] = []

    def add_handler(self, handler: BotEvent) -> None:
        self.handlers.append(handler)

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        # Ignore other bots and ourselves
        if message.author.bot:
            return

        if not message.content.startswith(settings.COMMAND_PREFIX):
            return

        event = event_from_message(message, settings.COMMAND_PREFIX)
        if not event.body:
            return

        log.debug("Message from %s in channel %s: %s", message.author, message.channel, event.body[:80])
        for handler in self.handlers:
            await handler.on_event(event, self.messenger)
