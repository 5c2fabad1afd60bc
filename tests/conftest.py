from __future__ import annotations

from typing import List, Optional, Tuple, Union

import pytest

from bot.permissions import PermissionStore
from bot.platform import OutboundMessage, ThreadAdmins, ThreadInfo, UserInfo


class FakeAdminRegistry:
    def __init__(
        self,
        admins: Tuple[str, ...] = (),
        bot_owner: Optional[str] = None,
        has_error: bool = False,
        raises: bool = False,
    ) -> None:
        self.admins = set(admins)
        self.bot_owner = bot_owner
        self.has_error = has_error
        self.raises = raises

    def get_thread_admins(self, thread_id: str) -> ThreadAdmins:
        if self.raises:
            raise RuntimeError("admin lookup failed")
        if self.has_error:
            return ThreadAdmins(has_error=True)
        return ThreadAdmins(admins=set(self.admins), bot_owner=self.bot_owner)


class FakeMessenger:
    def __init__(self, thread_info: Optional[ThreadInfo] = None) -> None:
        self.sent: List[Tuple[Union[str, OutboundMessage], str, Optional[str]]] = []
        self.thread_info = thread_info or ThreadInfo(participant_ids=[], user_info=[])
        self.thread_info_calls = 0

    async def send_message(self, message, thread_id, reply_to=None) -> None:
        self.sent.append((message, thread_id, reply_to))

    async def get_thread_info(self, thread_id: str) -> ThreadInfo:
        self.thread_info_calls += 1
        return self.thread_info

    @property
    def last(self) -> Union[str, OutboundMessage]:
        return self.sent[-1][0]


@pytest.fixture
def admins() -> FakeAdminRegistry:
    return FakeAdminRegistry(admins=("ADMIN",), bot_owner="OWNER")


@pytest.fixture
def store(tmp_path, admins) -> PermissionStore:
    return PermissionStore(tmp_path / "permissions.json", admin_registry=admins)


@pytest.fixture
def messenger() -> FakeMessenger:
    return FakeMessenger(
        ThreadInfo(
            participant_ids=["U1", "U2"],
            user_info=[UserInfo(id="U2", name="Bob"), UserInfo(id="U1", name="Alice")],
        )
    )


@pytest.fixture
def make_admin_registry():
    return FakeAdminRegistry
