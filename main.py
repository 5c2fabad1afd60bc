"""
main.py
=======
Entry point for SnoopBot: per-thread command permissions for a chat bot.

Usage:
    python main.py          # run the bot
    python -m auth          # log in through a browser and write state.session

The bot reads all configuration from the .env file (or environment variables).
Copy .env.example to .env, fill in your Discord token, then run this file.
"""
import asyncio
import signal
import sys

from discord.ext import commands

from bot.client import create_bot
from config.settings import settings
from utils.logger import get_logger

log = get_logger(__name__)


async def main() -> None:
    """Start the Discord bot and keep it running until a signal arrives."""
    token = settings.require("DISCORD_TOKEN")
    log.info("Starting SnoopBot")
    log.info("Command prefix  : %s", settings.COMMAND_PREFIX)
    log.info("Permissions file: %s", settings.PERMISSIONS_FILE)

    bot = create_bot()

    loop = asyncio.get_running_loop()

    def _shutdown(sig: signal.Signals) -> None:
        log.info("Received signal %s, shutting down…", sig.name)
        loop.create_task(_cleanup(bot))

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _shutdown, sig)
        except NotImplementedError:
            # Windows does not support add_signal_handler
            pass

    try:
        await bot.start(token)
    finally:
        await _cleanup(bot)


async def _cleanup(bot: commands.Bot) -> None:
    """Close the Discord connection if it is still open."""
    if not bot.is_closed():
        log.info("Closing Discord connection…")
        await bot.close()
    log.info("Shutdown complete.")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except EnvironmentError as exc:
        # Missing required env vars (e.g. DISCORD_TOKEN)
        log.error("Configuration error: %s", exc)
        sys.exit(1)
    except KeyboardInterrupt:
        pass
