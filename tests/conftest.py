"""
Shared pytest fixtures for the Tabs Bot test suite.

External collaborators (chat transport, state storage) are replaced by
in-memory fakes so no test touches the network.
"""

from typing import Iterable, Optional

import pytest

from tabsbot.activity import ActivityLogger
from tabsbot.ledger import Ledger
from tabsbot.models.tab import InboundMessage, RoomTab
from tabsbot.services.storage import StatePublishError, TabStateSync
from tabsbot.services.transport import ChatTransportInterface, SendError, TransportError


ROOM = "!room:example.org"
ALICE = "@alice:example.org"
BOB = "@bob:example.org"
CAROL = "@carol:example.org"


class FakeTransport(ChatTransportInterface):
    """Records sent messages and keeps room state in a dict."""

    def __init__(self, rooms: Optional[list[str]] = None):
        self.rooms = rooms or []
        self.sent: list[tuple[str, str]] = []
        self.state: dict[tuple[str, str], dict] = {}
        self.fail_send = False
        self.fail_state = False

    def joined_room_ids(self) -> list[str]:
        return list(self.rooms)

    async def send_text(self, room_id: str, text: str) -> None:
        if self.fail_send:
            raise SendError(room_id, "M_FORBIDDEN")
        self.sent.append((room_id, text))

    async def put_room_state(self, room_id: str, event_type: str, content: dict) -> None:
        if self.fail_state:
            raise TransportError("M_FORBIDDEN: insufficient power level")
        self.state[(room_id, event_type)] = content

    async def get_room_state(self, room_id: str, event_type: str) -> Optional[dict]:
        if self.fail_state:
            raise TransportError("M_LIMIT_EXCEEDED")
        return self.state.get((room_id, event_type))

    def texts(self, room_id: str = ROOM) -> list[str]:
        return [text for room, text in self.sent if room == room_id]


class InMemoryTabStateSync(TabStateSync):
    """Keeps published tabs in a dict."""

    backend_name = "memory"

    def __init__(self, tabs: Optional[dict[str, RoomTab]] = None):
        self.tabs: dict[str, RoomTab] = dict(tabs or {})
        self.published: list[tuple[str, RoomTab]] = []
        self.fail_publish = False

    async def load_tabs(self, room_ids: Iterable[str]) -> dict[str, RoomTab]:
        return {room: tab for room, tab in self.tabs.items() if room in set(room_ids)}

    async def publish(self, room_id: str, tab: RoomTab) -> None:
        if self.fail_publish:
            raise StatePublishError(room_id, "disk full")
        self.tabs[room_id] = tab
        self.published.append((room_id, tab))


def message(body: str, sender: str = ALICE, room_id: str = ROOM) -> InboundMessage:
    """Build an inbound message for tests."""
    return InboundMessage(room_id=room_id, sender=sender, body=body)


@pytest.fixture
def ledger() -> Ledger:
    return Ledger()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport(rooms=[ROOM])


@pytest.fixture
def state_sync() -> InMemoryTabStateSync:
    return InMemoryTabStateSync()


@pytest.fixture
def activity_logger() -> ActivityLogger:
    return ActivityLogger("tabsbot.tests")
