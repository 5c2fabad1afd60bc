"""
bot/commands.py
===============
Text commands for the bot.

!permission grant <all | cmd1,cmd2> <@all | @person ...>   : allow commands
!permission revoke <all | cmd1,cmd2> <@all | @person ...>  : take them back
!permission list                                           : not built yet

A command is a :class:`BotCommand` subclass with a regex ``params`` pattern.
The :class:`CommandRegistry` matches inbound text (prefix already stripped)
against every registered pattern; the dispatcher in bot/events.py decides
whether the sender may run it and then calls :meth:`BotCommand.execute`.
"""
from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from bot.permissions import PermissionStore
from bot.platform import CommandEvent, Messenger, OutboundMessage
from utils.formatting import mention_span_body
from utils.logger import get_logger

log = get_logger(__name__)


@dataclass
class CommandExtras:
    """Context handed to every command besides the event itself."""

    commands: List["BotCommand"] = field(default_factory=list)


class BotCommand(ABC):
    """Base class for text commands."""

    def __init__(
        self,
        name: str,
        params: str,
        description: str = "",
        usage: str = "",
        has_args: bool = False,
        admin_only: bool = False,
    ) -> None:
        self.name = name
        self.params = params
        self.pattern = re.compile(params, re.IGNORECASE)
        self.description = description
        self.usage = usage or name
        self.has_args = has_args
        self.admin_only = admin_only

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} admin_only={self.admin_only}>"

    @abstractmethod
    async def execute(
        self,
        match: re.Match,
        event: CommandEvent,
        api: Messenger,
        extras: CommandExtras,
    ) -> None:
        """Run the command for an inbound message that matched ``params``."""


class CommandRegistry:
    """Holds every command the bot knows, keyed by name."""

    def __init__(self) -> None:
        self._commands: Dict[str, BotCommand] = {}

    def register(self, command: BotCommand) -> BotCommand:
        if command.name in self._commands:
            raise ValueError(f"Command '{command.name}' is already registered.")
        self._commands[command.name] = command
        log.debug("Registered command %r.", command)
        return command

    def all(self) -> List[BotCommand]:
        return list(self._commands.values())

    def get(self, name: str) -> Optional[BotCommand]:
        return self._commands.get(name)

    def match(self, text: str) -> Optional[Tuple[BotCommand, Optional[re.Match]]]:
        """Find the command for *text*.

        Returns ``(command, match)`` when a pattern matches, ``(command, None)``
        when the first word names a command that takes arguments but they do
        not fit, and ``None`` when no command is addressed at all.
        """
        text = text.strip()
        for command in self._commands.values():
            match = command.pattern.match(text)
            if match:
                return command, match

        first_word = text.split(maxsplit=1)[0].lower() if text else ""
        command = self.get(first_word)
        if command is not None and command.has_args:
            return command, None
        return None


class PermissionCommand(BotCommand):
    """Grant or revoke per-thread command access for users."""

    def __init__(self, store: PermissionStore, **options) -> None:
        super().__init__(
            **{
                "name": "permission",
                "params": r"^permission\s(grant|revoke|list)\s([^@]+)\s?(.*)?",
                "description": "Grant, revoke or list permission",
                "usage": "permission <grant|revoke|list> <all | command1, ...> <@all | @person1, ....>",
                "has_args": True,
                "admin_only": True,
                **options,
            }
        )
        self.store = store

    async def execute(
        self,
        match: re.Match,
        event: CommandEvent,
        api: Messenger,
        extras: CommandExtras,
    ) -> None:
        action = match.group(1).lower()

        if action == "list":
            await api.send_message(
                "🤖This command is currently under development.", event.thread_id, event.message_id
            )
            return

        requested = [name.strip() for name in match.group(2).split(",") if name.strip()]
        await self._apply(action, match.group(0), event, api, requested, extras.commands)

    async def _resolve_persons(
        self,
        raw_text: str,
        event: CommandEvent,
        api: Messenger,
    ) -> Optional[Dict[str, str]]:
        """Return user ID → tag for the targets, or None if nobody was named."""
        persons = dict(event.mentions)
        if persons:
            return persons

        if "@all" not in raw_text.lower():
            return None

        thread_info = await api.get_thread_info(event.thread_id)
        names = {info.id: info.name for info in thread_info.user_info}
        for participant_id in thread_info.participant_ids:
            if participant_id in names:
                persons[participant_id] = f"@{names[participant_id]}"
        return persons

    async def _apply(
        self,
        action: str,
        raw_text: str,
        event: CommandEvent,
        api: Messenger,
        requested: List[str],
        commands: List[BotCommand],
    ) -> None:
        granting = action == "grant"

        if requested and requested[0].lower() == "all":
            requested = [command.name for command in commands]

        persons = await self._resolve_persons(raw_text, event, api)
        if not persons:
            verb = "granted" if granting else "revoked of"
            await api.send_message(
                f"⚠️No person is being {verb} permission(s), please type @all or @person.",
                event.thread_id,
                event.message_id,
            )
            return

        known = {command.name for command in commands}
        if not any(name in known for name in requested):
            await api.send_message(
                "⚠️ Unknown command(s): '" + ",".join(requested) + "'.",
                event.thread_id,
                event.message_id,
            )
            return

        admin_commands = {command.name for command in commands if command.admin_only}
        applied = [name for name in requested if name not in admin_commands]

        for user_id in persons:
            if granting:
                self.store.add_permission_to_user_in_thread(event.thread_id, user_id, *applied)
            else:
                self.store.remove_permission_from_user_in_thread(event.thread_id, user_id, *applied)

        log.info(
            "%s %s for %d user(s) in thread %s (requested by %s).",
            "Granted" if granting else "Revoked",
            ", ".join(applied) or "nothing",
            len(persons),
            event.thread_id,
            event.sender_id,
        )

        header = "🤖Gave permission to: \n\n" if granting else "🤖Revoked permission to: \n\n"
        body, mentions = mention_span_body(header, persons)
        message = OutboundMessage(
            body=f"{body}\n\nFor command(s): \n\n'{', '.join(applied)}'.",
            mentions=mentions,
        )
        await api.send_message(message, event.thread_id, event.message_id)
