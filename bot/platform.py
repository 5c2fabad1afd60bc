"""
bot/platform.py
===============
Platform-neutral shapes that flow between the command layer and the chat
platform it runs on.

The permission store, the commands and the dispatcher only ever see these
types.  ``bot/discord_api.py`` converts Discord objects into them and
implements the two collaborator protocols on top of discord.py.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Set, Union


@dataclass
class Mention:
    """A tagged user inside an outbound body; ``tag`` starts at ``from_index``."""

    id: str
    tag: str
    from_index: int


@dataclass
class OutboundMessage:
    body: str
    mentions: List[Mention] = field(default_factory=list)


@dataclass
class CommandEvent:
    """An inbound message as seen by the command layer.

    ``mentions`` maps user ID → the tag shown for that user (``@name``).
    ``body`` is the message text with the command prefix already removed.
    """

    thread_id: str
    message_id: str
    sender_id: str
    body: str
    mentions: Dict[str, str] = field(default_factory=dict)


@dataclass
class UserInfo:
    id: str
    name: str


@dataclass
class ThreadInfo:
    participant_ids: List[str]
    user_info: List[UserInfo]


@dataclass
class ThreadAdmins:
    """Result of an admin lookup.  ``has_error`` means the lookup failed."""

    admins: Set[str] = field(default_factory=set)
    bot_owner: Optional[str] = None
    has_error: bool = False


class Messenger(Protocol):
    """Outbound side of the chat platform."""

    async def send_message(
        self,
        message: Union[str, OutboundMessage],
        thread_id: str,
        reply_to: Optional[str] = None,
    ) -> None: ...

    async def get_thread_info(self, thread_id: str) -> ThreadInfo: ...


class AdminRegistry(Protocol):
    """Resolves who administers a thread."""

    def get_thread_admins(self, thread_id: str) -> ThreadAdmins: ...
