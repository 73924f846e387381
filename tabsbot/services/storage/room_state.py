"""
Room State Storage Implementation

Mirrors each room's tab into that room as a state event:

    type:      <namespace>   (default "net.safaradeg.tab")
    state_key: ""
    content:   {"users": {"@alice:example.org": 1250}}

Anyone in the room can inspect the state, and a fresh bot process
rebuilds its ledger from the rooms it is in.

TRADEOFFS:
- The bot needs the power level to send state events; without it every
  publish fails (logged, the in-memory tab stays correct)
- Loading costs one request per joined room
"""

from typing import Iterable

from pydantic import ValidationError

from tabsbot.models.tab import RoomTab
from tabsbot.services.storage.interface import (
    StateLoadError,
    StatePublishError,
    TabStateSync,
)
from tabsbot.services.transport.interface import (
    ChatTransportInterface,
    TransportError,
)


class RoomStateTabSync(TabStateSync):
    """Room state implementation of tab state storage."""

    backend_name = "room_state"

    def __init__(self, transport: ChatTransportInterface, namespace: str):
        self._transport = transport
        self._namespace = namespace

    @property
    def namespace(self) -> str:
        return self._namespace

    async def load_tabs(self, room_ids: Iterable[str]) -> dict[str, RoomTab]:
        """Read the tab state event of each room. Rooms without one are skipped."""
        tabs = {}
        for room_id in room_ids:
            try:
                content = await self._transport.get_room_state(room_id, self._namespace)
            except TransportError as e:
                raise StateLoadError(f"Cannot read tab state of room {room_id}: {e}")

            if not content:
                continue

            try:
                tabs[room_id] = RoomTab.model_validate(content)
            except ValidationError as e:
                raise StateLoadError(f"Tab state of room {room_id} is malformed: {e}")
        return tabs

    async def publish(self, room_id: str, tab: RoomTab) -> None:
        try:
            await self._transport.put_room_state(
                room_id,
                self._namespace,
                tab.model_dump(mode="json"),
            )
        except TransportError as e:
            raise StatePublishError(
                room_id, f"Failed to update tab state on room {room_id}: {e}"
            )
