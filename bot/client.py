"""
bot/client.py
=============
Assembles the Discord bot client.

Responsibilities:
- Create the discord.py Bot instance with the intents text commands need
  (message content to read them, members to expand ``@all``).
- Build the permission store on top of the Discord admin registry.
- Register the text commands and the command dispatcher.
- Log connection events and set the bot's status.
"""
from __future__ import annotations

from typing import Optional

import discord
from discord.ext import commands

from bot.commands import CommandRegistry, PermissionCommand
from bot.discord_api import DiscordAdminRegistry, DiscordMessenger
from bot.events import CommandDispatcher, EventCog
from bot.permissions import PermissionStore
from config.settings import settings
from utils.logger import get_logger, log_success

log = get_logger(__name__)


def create_bot(registry: Optional[CommandRegistry] = None) -> commands.Bot:
    """Create and configure the Discord bot.

    Returns a fully-wired :class:`commands.Bot` ready to be started with
    ``bot.start(token)``.  Extra commands can be passed in a pre-filled
    *registry*; the ``permission`` command is always added.
    """
    intents = discord.Intents.default()
    intents.message_content = True
    intents.members = True

    bot = commands.Bot(
        command_prefix=settings.COMMAND_PREFIX,
        intents=intents,
        help_command=None,
    )

    registry = registry or CommandRegistry()
    store = PermissionStore(admin_registry=DiscordAdminRegistry(bot))
    registry.register(PermissionCommand(store))

    event_cog = EventCog(bot, DiscordMessenger(bot))
    event_cog.add_handler(CommandDispatcher(registry, store))

    @bot.event
    async def on_ready() -> None:
        log_success(log, "Logged in as %s (ID: %d)", bot.user, bot.user.id)  # type: ignore[union-attr]

        # Owner of the application always passes permission checks
        if not settings.BOT_OWNER_ID and bot.owner_id is None:
            app_info = await bot.application_info()
            bot.owner_id = app_info.owner.id

        await bot.change_presence(
            activity=discord.Activity(
                type=discord.ActivityType.listening,
                name=f"{settings.COMMAND_PREFIX}permission",
            )
        )

        if bot.get_cog(EventCog.__cog_name__) is None:
            await bot.add_cog(event_cog)
        log.info("%d command(s) registered; permissions file: %s", len(registry.all()), settings.PERMISSIONS_FILE)

    @bot.event
    async def on_command_error(ctx: commands.Context, error: Exception) -> None:
        """Global error handler for discord.py prefix commands."""
        if isinstance(error, commands.CommandNotFound):
            return  # text commands are handled by EventCog, not discord.ext
        log.error("Command error in %s: %s", ctx.command, error)

    return bot
