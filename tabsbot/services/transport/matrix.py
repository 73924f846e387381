"""
Matrix Transport using matrix-nio

This service handles:
1. Logging in to the homeserver
2. Joining rooms the bot is invited to (with backoff, see below)
3. Normalizing room events into InboundMessages
4. Sending plain text replies
5. Reading and writing the tab state event of a room

Synapse can deliver an invite before the invited user is allowed to join
(https://github.com/matrix-org/synapse/issues/4345), so joins are retried
with a doubling delay until the delay passes `join_max_delay_seconds`.
"""

import asyncio
from typing import Optional

from aiohttp import ClientError
from nio import (
    AsyncClient,
    InviteMemberEvent,
    JoinResponse,
    LoginResponse,
    MatrixRoom,
    RoomGetStateEventError,
    RoomGetStateEventResponse,
    RoomMessageText,
    RoomPutStateResponse,
    RoomSendResponse,
    SyncResponse,
)
from tenacity import (
    AsyncRetrying,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from tabsbot.activity import ActivityLogger
from tabsbot.config.settings import MatrixSettings
from tabsbot.models.activity import ActivityEventBuilder
from tabsbot.models.tab import InboundMessage
from tabsbot.services.transport.interface import (
    ChatTransportInterface,
    JoinError,
    JoinHandler,
    LoginError,
    MessageHandler,
    SendError,
    TransportError,
)


def normalize_event(
    room: MatrixRoom,
    event: object,
    own_user_id: Optional[str] = None,
) -> Optional[InboundMessage]:
    """
    Turn a Matrix room event into an InboundMessage.

    Only plain text messages (m.text) qualify. Notices, media, state
    events and the bot's own messages are dropped.
    """
    if not isinstance(event, RoomMessageText):
        return None
    if own_user_id is not None and event.sender == own_user_id:
        return None
    return InboundMessage(room_id=room.room_id, sender=event.sender, body=event.body)


def join_attempts(max_delay_seconds: int) -> int:
    """Number of join attempts before the doubling delay exceeds the cap."""
    attempts = 0
    delay = 2
    while delay <= max_delay_seconds:
        attempts += 1
        delay *= 2
    return max(attempts, 1)


class MatrixTransport(ChatTransportInterface):
    """
    Matrix connection for the bot.

    IMPORTANT BOUNDARIES:
    1. Only InboundMessages leave this class, never nio events
    2. Send and state failures are raised as TransportError subclasses,
       the orchestrator decides what to log
    """

    def __init__(
        self,
        settings: MatrixSettings,
        client: Optional[AsyncClient] = None,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._settings = settings
        self._client = client or AsyncClient(settings.homeserver, settings.user)
        self._activity = activity_logger or ActivityLogger()
        self._message_handler: Optional[MessageHandler] = None
        self._join_handler: Optional[JoinHandler] = None
        self._join_tasks: set[asyncio.Task] = set()

    @property
    def user_id(self) -> str:
        return self._client.user_id

    def set_message_handler(self, handler: MessageHandler) -> None:
        self._message_handler = handler

    def set_join_handler(self, handler: JoinHandler) -> None:
        self._join_handler = handler

    # =========================================================================
    # Connection
    # =========================================================================

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(ClientError),
        reraise=True,
    )
    async def login(self, password: str) -> None:
        """
        Log in with a password.

        Network errors are retried; a refused login is not.

        Raises:
            LoginError: If the homeserver refused the credentials
        """
        response = await self._client.login(
            password,
            device_name=self._settings.device_name,
        )
        if not isinstance(response, LoginResponse):
            raise LoginError(
                f"Failed to log in to {self._settings.homeserver} "
                f"as {self._settings.user}: {response.message}"
            )

    async def initial_sync(self) -> None:
        """
        Run the first sync.

        Its timeline is history from before the bot started, so it is
        never dispatched; only the room list is kept.
        """
        response = await self._client.sync(
            timeout=self._settings.sync_timeout_ms,
            full_state=True,
        )
        if not isinstance(response, SyncResponse):
            raise TransportError(f"Initial sync failed: {response.message}")

    async def run_forever(self) -> None:
        """Register callbacks and sync until cancelled."""
        self._client.add_event_callback(self._on_message, RoomMessageText)
        self._client.add_event_callback(self._on_invite, InviteMemberEvent)
        await self._client.sync_forever(timeout=self._settings.sync_timeout_ms)

    async def close(self) -> None:
        for task in list(self._join_tasks):
            task.cancel()
        await self._client.close()

    def joined_room_ids(self) -> list[str]:
        return list(self._client.rooms)

    # =========================================================================
    # Callbacks
    # =========================================================================

    async def _on_message(self, room: MatrixRoom, event: RoomMessageText) -> None:
        message = normalize_event(room, event, own_user_id=self.user_id)
        if message is None or self._message_handler is None:
            return
        await self._message_handler(message)

    async def _on_invite(self, room: MatrixRoom, event: InviteMemberEvent) -> None:
        if event.state_key != self.user_id or event.membership != "invite":
            return

        # Joining may take an hour of retries, keep syncing meanwhile
        task = asyncio.create_task(self.join_room(room.room_id))
        self._join_tasks.add(task)
        task.add_done_callback(self._join_tasks.discard)

    # =========================================================================
    # Rooms
    # =========================================================================

    async def join_room(self, room_id: str) -> bool:
        """
        Join a room, retrying with a doubling delay.

        Returns:
            True if the room was joined
        """
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(
                    join_attempts(self._settings.join_max_delay_seconds)
                ),
                wait=wait_exponential(
                    multiplier=2,
                    max=self._settings.join_max_delay_seconds,
                ),
                retry=retry_if_exception_type(JoinError),
                reraise=True,
            ):
                with attempt:
                    await self._join_once(room_id)
        except JoinError as e:
            self._activity.log(ActivityEventBuilder.room_join_failed(room_id, str(e)))
            return False

        self._activity.log(ActivityEventBuilder.room_joined(room_id))
        if self._join_handler is not None:
            await self._join_handler(room_id)
        return True

    async def _join_once(self, room_id: str) -> None:
        try:
            response = await self._client.join(room_id)
        except ClientError as e:
            raise JoinError(room_id, f"Failed to join room {room_id}: {e}")
        if not isinstance(response, JoinResponse):
            raise JoinError(room_id, f"Failed to join room {room_id}: {response.message}")

    async def send_text(self, room_id: str, text: str) -> None:
        try:
            response = await self._client.room_send(
                room_id,
                message_type="m.room.message",
                content={"msgtype": "m.text", "body": text},
            )
        except ClientError as e:
            raise SendError(room_id, f"Failed to send message to room {room_id}: {e}")
        if not isinstance(response, RoomSendResponse):
            raise SendError(
                room_id,
                f"Failed to send message to room {room_id}: {response.message}",
            )

    async def put_room_state(
        self,
        room_id: str,
        event_type: str,
        content: dict,
    ) -> None:
        try:
            response = await self._client.room_put_state(
                room_id,
                event_type,
                content,
                state_key="",
            )
        except ClientError as e:
            raise TransportError(f"Failed to set {event_type} on room {room_id}: {e}")
        if not isinstance(response, RoomPutStateResponse):
            raise TransportError(
                f"Failed to set {event_type} on room {room_id}: {response.message}"
            )

    async def get_room_state(
        self,
        room_id: str,
        event_type: str,
    ) -> Optional[dict]:
        try:
            response = await self._client.room_get_state_event(
                room_id,
                event_type,
                state_key="",
            )
        except ClientError as e:
            raise TransportError(f"Failed to read {event_type} of room {room_id}: {e}")
        if isinstance(response, RoomGetStateEventResponse):
            return response.content
        if isinstance(response, RoomGetStateEventError) and response.status_code == "M_NOT_FOUND":
            return None
        raise TransportError(
            f"Failed to read {event_type} of room {room_id}: {response.message}"
        )
