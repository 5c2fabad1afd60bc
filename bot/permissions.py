"""
bot/permissions.py
==================
Per-thread, per-user command grants backed by a single JSON file.

Document layout (see data/permissions.json)::

    {
        "<thread id>": {
            "users": {
                "<user id>": {"permissions": ["meme", "ban"]}
            }
        }
    }

The whole file is read on every query and rewritten on every mutation;
nothing is cached between calls.  Thread admins and the bot owner are not
stored here; they come from an AdminRegistry and always pass.

Empty records are pruned on revoke: a user with no permissions is removed,
then an empty ``users`` map, then an empty thread record.
"""
from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Optional

from bot.platform import AdminRegistry, ThreadAdmins
from config.settings import settings
from utils.logger import get_logger

log = get_logger(__name__)


class SettingsDocument:
    """Thin wrapper around the loaded JSON mapping.

    Every accessor returns the live nested ``dict``, so changes made through
    it land in :attr:`data`, which is what gets saved.
    """

    def __init__(self, data: Optional[dict] = None) -> None:
        self.data: dict = data if data is not None else {}

    def get_thread(self, thread_id: str) -> Optional[dict]:
        return self.data.get(thread_id)

    def get_user(self, thread_id: str, user_id: str) -> Optional[dict]:
        thread = self.get_thread(thread_id)
        if thread is None or thread.get("users") is None:
            return None
        return thread["users"].get(user_id)

    def get_or_create_thread(self, thread_id: str) -> dict:
        thread = self.data.setdefault(thread_id, {})
        thread.setdefault("users", {})
        return thread

    def get_or_create_user(self, thread_id: str, user_id: str) -> dict:
        user = self.get_or_create_thread(thread_id)["users"].setdefault(user_id, {})
        user.setdefault("permissions", [])
        return user

    def prune(self, thread_id: str, user_id: str) -> None:
        """Drop the user, then ``users``, then the thread, each only if empty."""
        thread = self.data[thread_id]
        users = thread["users"]
        if not users[user_id]["permissions"]:
            del users[user_id]
        if not users:
            del thread["users"]
        if not thread:
            del self.data[thread_id]


class PermissionStore:
    """Reads and mutates the permissions file.

    Parameters
    ----------
    path:
        Location of the JSON document.  Defaults to ``PERMISSIONS_FILE``.
    admin_registry:
        Used to let thread admins and the bot owner bypass stored grants.
        Without one, nobody is treated as an admin.
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        admin_registry: Optional[AdminRegistry] = None,
    ) -> None:
        self.path = Path(path) if path is not None else settings.PERMISSIONS_FILE
        self.admin_registry = admin_registry
        # Guards each load → mutate → save; re-entrant because add() checks first
        self._lock = threading.RLock()

    # ── Persistence ──────────────────────────────────────────────────────────

    def load(self) -> dict:
        """Return the whole settings document; a missing or empty file is ``{}``.

        Malformed JSON is not recovered from: ``json.JSONDecodeError``
        reaches the caller.
        """
        if not self.path.exists():
            return {}
        raw = self.path.read_text(encoding="utf-8")
        if not raw.strip():
            return {}
        return json.loads(raw)

    def save(self, document: dict) -> None:
        """Overwrite the file with *document* (4-space indented JSON)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(document, indent=4), encoding="utf-8")

    # ── Queries ──────────────────────────────────────────────────────────────

    def _thread_admins(self, thread_id: str) -> ThreadAdmins:
        if self.admin_registry is None:
            return ThreadAdmins()
        try:
            result = self.admin_registry.get_thread_admins(thread_id)
        except Exception as exc:
            log.warning("Admin lookup for thread %s failed: %s", thread_id, exc)
            return ThreadAdmins(has_error=True)
        if result.has_error:
            log.warning("Admin lookup for thread %s returned an error.", thread_id)
        return result

    def is_thread_admin(self, thread_id: str, user_id: str) -> bool:
        """Return True if *user_id* administers *thread_id* or owns the bot."""
        admins = self._thread_admins(thread_id)
        if admins.has_error:
            return False
        return user_id in admins.admins or (
            admins.bot_owner is not None and user_id == admins.bot_owner
        )

    def user_has_permission(self, thread_id: str, user_id: str, *commands: str) -> bool:
        """Return True if the user may run every one of *commands* in the thread.

        Admins and the owner always may.  Everyone else needs each command
        name in their stored grants; holding only some of them is not enough.
        """
        if self.is_thread_admin(thread_id, user_id):
            return True

        user = SettingsDocument(self.load()).get_user(thread_id, user_id)
        if user is None:
            return False
        granted = user.get("permissions") or []
        return all(command in granted for command in commands)

    # ── Mutations ────────────────────────────────────────────────────────────

    def add_permission_to_user_in_thread(self, thread_id: str, user_id: str, *commands: str) -> bool:
        """Grant *commands* to the user.

        Returns False without writing when nothing was asked for or the user
        already holds all of them (a partially held set is appended whole).
        Names are appended as given; repeated grants can leave duplicates.
        """
        if not commands:
            return False

        with self._lock:
            if self.user_has_permission(thread_id, user_id, *commands):
                return False

            document = SettingsDocument(self.load())
            document.get_or_create_user(thread_id, user_id)["permissions"].extend(commands)
            self.save(document.data)

        log.info("Granted %s to user %s in thread %s.", ", ".join(commands), user_id, thread_id)
        return True

    def remove_permission_from_user_in_thread(self, thread_id: str, user_id: str, *commands: str) -> bool:
        """Revoke *commands* from the user, pruning whatever ends up empty.

        Returns False if the user has no record in the thread.  Revoking a
        command the user never had is not an error.
        """
        with self._lock:
            document = SettingsDocument(self.load())
            user = document.get_user(thread_id, user_id)
            if user is None or user.get("permissions") is None:
                return False
            if not user["permissions"]:
                return True

            revoked = set(commands)
            user["permissions"] = [c for c in user["permissions"] if c not in revoked]
            document.prune(thread_id, user_id)
            self.save(document.data)

        log.info("Revoked %s from user %s in thread %s.", ", ".join(commands), user_id, thread_id)
        return True
