"""
config/settings.py
==================
Loads all configuration from environment variables (via a .env file or
the shell environment).  Secrets such as the Discord token and the login
credentials live in .env and never in the repo.
"""
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Project root (two levels up from this file); .env lives here
_root = Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=_root / ".env")


def _get(key: str, default: Optional[str] = None, required: bool = False) -> Optional[str]:
    """Read an env var, optionally requiring it to be set."""
    value = os.getenv(key, default)
    if required and not value:
        raise EnvironmentError(
            f"Required environment variable '{key}' is not set. "
            "Copy .env.example to .env and fill in the values."
        )
    return value


def _get_bool(key: str, default: str = "true") -> bool:
    """Read a yes/no style env var."""
    return (os.getenv(key, default) or "").strip().lower() in {"1", "true", "yes", "on"}


def _get_path(key: str, default: Path) -> Path:
    """Read a path env var; relative paths resolve against the project root."""
    raw = os.getenv(key)
    if not raw:
        return default
    path = Path(raw).expanduser()
    return path if path.is_absolute() else _root / path


class Settings:
    """Central settings object; import `settings` from this module."""

    # ── Discord ──────────────────────────────────────────────────────────────
    # Only needed to run the bot, so it is checked in main.py via require()
    DISCORD_TOKEN: Optional[str] = _get("DISCORD_TOKEN")
    # Prefix for text commands, e.g. "!permission grant meme @alice"
    COMMAND_PREFIX: str = _get("COMMAND_PREFIX", "!")  # type: ignore[assignment]
    # Always passes permission checks; falls back to the application owner
    BOT_OWNER_ID: Optional[str] = _get("BOT_OWNER_ID")

    # ── Permissions ──────────────────────────────────────────────────────────
    # JSON document: thread ID → users → user ID → granted command names
    PERMISSIONS_FILE: Path = _get_path("PERMISSIONS_FILE", _root / "data" / "permissions.json")

    # ── Login helper ─────────────────────────────────────────────────────────
    LOGIN_URL: str = _get("LOGIN_URL", "https://www.facebook.com/")  # type: ignore[assignment]
    LOGIN_EMAIL: Optional[str] = _get("LOGIN_EMAIL") or _get("FB_EMAIL")
    LOGIN_PASSWORD: Optional[str] = _get("LOGIN_PASSWORD") or _get("FB_PASS")
    LOGIN_HEADLESS: bool = _get_bool("LOGIN_HEADLESS")
    SESSION_FILE: Path = _get_path("SESSION_FILE", _root / "state.session")

    # ── Logging ──────────────────────────────────────────────────────────────
    LOG_LEVEL: str = _get("LOG_LEVEL", "INFO")  # type: ignore[assignment]

    def require(self, key: str) -> str:
        """Return a setting that must be present, raising EnvironmentError if not."""
        value = getattr(self, key, None) or _get(key, required=True)
        return str(value)


# Singleton, import this everywhere
settings = Settings()
