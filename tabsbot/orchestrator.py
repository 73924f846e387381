"""
Main Orchestrator for Tabs Bot

This module ties together all the components and defines the
end-to-end flows for:
1. Startup (login -> first sync -> restore ledger -> listen)
2. Message (text -> command -> ledger -> publish state -> reply)
3. Joined room (invite -> join -> restore that room's tab)

DESIGN DECISION: One asyncio.Lock guards the ledger for every room.
A message holds it from interpretation until its last reply is sent,
so commands apply and answer in the order they arrive. Message volume
is low and each command touches one room, so nothing finer is needed.

Collaborator failures (publish, reply) are logged here and never undo
a ledger change.
"""

import asyncio
from typing import Iterable, Optional

from tabsbot.activity import ActivityLogger
from tabsbot.commands import CommandInterpreter, CommandResult
from tabsbot.config.settings import MatrixSettings, StorageBackend, StorageSettings
from tabsbot.ledger import Ledger
from tabsbot.models.activity import ActivityEventBuilder
from tabsbot.models.tab import InboundMessage
from tabsbot.services.storage import (
    JsonFileTabStore,
    RoomStateTabSync,
    StateLoadError,
    StatePublishError,
    TabStateSync,
)
from tabsbot.services.transport import (
    ChatTransportInterface,
    MatrixTransport,
    TransportError,
)


class MessageFlow:
    """
    Orchestrates handling of one inbound message.

    Flow:
    1. Interpret -> ledger mutation (or none) + replies
    2. Publish -> hand the changed room's tab to the state backend
    3. Reply -> send each reply to the originating room
    """

    def __init__(
        self,
        ledger: Ledger,
        state_sync: TabStateSync,
        transport: ChatTransportInterface,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._ledger = ledger
        self._interpreter = CommandInterpreter(ledger)
        self._state_sync = state_sync
        self._transport = transport
        self._activity = activity_logger or ActivityLogger()
        self._lock = asyncio.Lock()

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def backend_name(self) -> str:
        return self._state_sync.backend_name

    async def handle_message(self, message: InboundMessage) -> CommandResult:
        """Run one message through the interpreter and deliver the outcome."""
        async with self._lock:
            result = self._interpreter.handle(message)
            if result.is_ignored:
                return result

            self._activity.log_all(result.events)

            if result.publish_room is not None:
                await self._publish(result.publish_room)

            for reply in result.replies:
                await self._reply(message.room_id, reply)

        return result

    async def restore_rooms(self, room_ids: Iterable[str]) -> int:
        """
        Load persisted tabs into the ledger.

        Returns:
            Number of room tabs restored

        Raises:
            StateLoadError: If the backend cannot read its state
        """
        tabs = await self._state_sync.load_tabs(list(room_ids))
        async with self._lock:
            for room_id, tab in tabs.items():
                self._ledger.restore(room_id, tab)

        self._activity.log(
            ActivityEventBuilder.ledger_restored(self._state_sync.backend_name, len(tabs))
        )
        return len(tabs)

    async def restore_room(self, room_id: str) -> bool:
        """
        Load the persisted tab of one room, unless the ledger already has one.

        Returns:
            True if a tab was restored

        Raises:
            StateLoadError: If the backend cannot read its state
        """
        tabs = await self._state_sync.load_tabs([room_id])
        tab = tabs.get(room_id)
        async with self._lock:
            if tab is None or room_id in self._ledger:
                return False
            self._ledger.restore(room_id, tab)

        self._activity.log(
            ActivityEventBuilder.ledger_restored(self._state_sync.backend_name, 1)
        )
        return True

    async def _publish(self, room_id: str) -> None:
        tab = self._ledger.get(room_id)
        if tab is None:
            return
        try:
            await self._state_sync.publish(room_id, tab)
        except StatePublishError as e:
            self._activity.log(
                ActivityEventBuilder.state_publish_failed(
                    room_id, self._state_sync.backend_name, str(e)
                )
            )
            return
        self._activity.log(
            ActivityEventBuilder.state_published(room_id, self._state_sync.backend_name)
        )

    async def _reply(self, room_id: str, text: str) -> None:
        try:
            await self._transport.send_text(room_id, text)
        except TransportError as e:
            self._activity.log(ActivityEventBuilder.reply_failed(room_id, str(e)))


class TabsBot:
    """
    The running bot: a Matrix connection feeding a MessageFlow.

    Startup order matters: the ledger is restored after the first sync
    (so the joined room list is known) and before any message is handled.
    """

    def __init__(
        self,
        transport: MatrixTransport,
        flow: MessageFlow,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._transport = transport
        self._flow = flow
        self._activity = activity_logger or ActivityLogger()

        self._transport.set_message_handler(self._flow.handle_message)
        self._transport.set_join_handler(self.on_room_joined)

    @property
    def flow(self) -> MessageFlow:
        return self._flow

    async def on_room_joined(self, room_id: str) -> None:
        """Pick up the tab a room may already carry from an earlier session."""
        try:
            await self._flow.restore_room(room_id)
        except StateLoadError as e:
            self._activity.log(
                ActivityEventBuilder.state_load_failed(
                    room_id, self._flow.backend_name, str(e)
                )
            )

    async def run(self, password: str) -> None:
        """
        Log in, restore state and handle messages until cancelled.

        Raises:
            LoginError: If the homeserver refused the credentials
            StateLoadError: If persisted state cannot be read at startup
        """
        try:
            await self._transport.login(password)
            await self._transport.initial_sync()
            await self._flow.restore_rooms(self._transport.joined_room_ids())
            await self._transport.run_forever()
        finally:
            await self._transport.close()


def create_state_sync(
    storage_settings: StorageSettings,
    transport: ChatTransportInterface,
) -> TabStateSync:
    """Build the state backend selected in the settings."""
    if storage_settings.backend == StorageBackend.FILE:
        return JsonFileTabStore(storage_settings.store_path)
    return RoomStateTabSync(transport, storage_settings.namespace)


def create_app_components(
    matrix_settings: MatrixSettings,
    storage_settings: StorageSettings,
    activity_logger: Optional[ActivityLogger] = None,
) -> TabsBot:
    """
    Factory function to create all application components.

    Returns:
        A TabsBot ready to `run()`
    """
    activity_logger = activity_logger or ActivityLogger()

    transport = MatrixTransport(matrix_settings, activity_logger=activity_logger)
    state_sync = create_state_sync(storage_settings, transport)
    flow = MessageFlow(
        ledger=Ledger(),
        state_sync=state_sync,
        transport=transport,
        activity_logger=activity_logger,
    )
    return TabsBot(transport, flow, activity_logger)
