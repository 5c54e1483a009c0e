"""Routes chat events between the participants of a chat session.

Each session has a room named after its id; agents additionally sit in the
shared `agents` room, which receives new-session notifications.
"""
import asyncio
import logging
from typing import Any, Dict, Optional
from pymongo.errors import PyMongoError
from src.backend.chat.chat_history import ChatHistory
from src.backend.chat.session_manager import (
    ChatSessionManager,
    SessionUnavailableError,
)
from src.backend.models.chat import (
    MessageRole,
    SessionStatus,
    UserRole,
)
from src.backend.models.websocket import ChatEvent
from src.backend.websocket.manager import AGENTS_ROOM, Connection, RoomRegistry

logger = logging.getLogger(__name__)


class ChatRelay:
    def __init__(
        self,
        rooms: RoomRegistry,
        session_manager: ChatSessionManager,
        chat_history: ChatHistory,
    ):
        self.rooms = rooms
        self.session_manager = session_manager
        self.chat_history = chat_history
        self._room_locks: Dict[str, asyncio.Lock] = {}

    def _lock(self, room: str) -> asyncio.Lock:
        if room not in self._room_locks:
            self._room_locks[room] = asyncio.Lock()
        return self._room_locks[room]

    async def _reject(self, connection: Connection, error: str) -> None:
        logger.warning(f"Rejected request from {connection}: {error}")
        await connection.emit(ChatEvent.ERROR.value, {"error": error})

    async def connect(self, connection: Connection) -> None:
        """Register an authenticated connection."""
        user = connection.user
        if user.role == UserRole.AGENT:
            self.rooms.join(AGENTS_ROOM, connection)
        await connection.emit(
            ChatEvent.CONNECTED.value,
            {"userId": user.id, "role": user.role.value},
        )

    def _prune_lock(self, room: str) -> None:
        """Forget the lock of a room that no longer has members."""
        lock = self._room_locks.get(room)
        if room not in self.rooms.rooms and lock and not lock.locked():
            del self._room_locks[room]

    async def disconnect(self, connection: Connection) -> None:
        left = self.rooms.leave_all(connection)
        for room in left:
            self._prune_lock(room)
        logger.info(f"{connection} disconnected, left rooms {left}")

    async def start_chat(self, connection: Connection) -> None:
        """customer:startChat"""
        user = connection.user
        if user.role != UserRole.CUSTOMER:
            await self._reject(connection, "Only customers can start a chat")
            return

        try:
            session, created = await self.session_manager.start_chat(user.id)
            history = []
            if not created:
                history = await self.chat_history.get_history(session.id)
        except (PyMongoError, SessionUnavailableError) as e:
            logger.error(f"Error starting chat for customer {user.id}: {e}")
            await self._reject(connection, "Could not start chat")
            return

        self.rooms.join(session.id, connection)
        await connection.emit(ChatEvent.SESSION_CREATED.value, session.id)
        if not created:
            await connection.emit(
                ChatEvent.HISTORY.value,
                [msg.model_dump(mode="json") for msg in history],
            )
        # unclaimed sessions are re-announced; agents dedupe by id
        if created or session.status == SessionStatus.WAITING:
            await self.rooms.broadcast(
                AGENTS_ROOM,
                ChatEvent.NEW_SESSION.value,
                session.model_dump(mode="json"),
            )

    async def join_session(self, connection: Connection, session_id: str) -> None:
        """agent:joinSession"""
        user = connection.user
        if user.role != UserRole.AGENT:
            await self._reject(connection, "Only agents can join a session")
            return

        try:
            session = await self.session_manager.join_session(session_id, user.id)
        except PyMongoError as e:
            logger.error(f"Error joining session {session_id}: {e}")
            await self._reject(connection, "Could not join session")
            return
        if session is None:
            await self._reject(connection, f"Session {session_id} not found")
            return

        self.rooms.join(session.id, connection)
        await self.rooms.broadcast(
            session.id, ChatEvent.AGENT_JOINED.value, {"agentId": user.id}
        )
        self._prune_lock(session.id)

    async def send_message(
        self, connection: Connection, session_id: Optional[str], text: Any
    ) -> None:
        """chat:message. Persist first, then broadcast to the whole room.

        Only chat session rooms carry messages; the agents room does not.
        """
        if (not session_id or session_id == AGENTS_ROOM
                or not self.rooms.is_member(session_id, connection)):
            await self._reject(connection, "Not a participant of this session")
            return
        if not isinstance(text, str) or not text.strip():
            await self._reject(connection, "Message must be non-empty text")
            return

        user = connection.user
        role = (MessageRole.AGENT if user.role == UserRole.AGENT
                else MessageRole.CUSTOMER)
        async with self._lock(session_id):
            try:
                session = await self.session_manager.get_session(session_id)
                if session is None:
                    await self._reject(
                        connection, f"Session {session_id} not found"
                    )
                    return
                chat_message = await self.chat_history.add_message(
                    session_id, user.id, role, text
                )
            except PyMongoError as e:
                logger.error(f"Error saving message for session "
                             f"{session_id}: {e}")
                return
            await self.rooms.broadcast(
                session_id,
                ChatEvent.MESSAGE.value,
                chat_message.model_dump(
                    mode="json",
                    include={"sender", "message", "role", "timestamp"},
                ),
            )
        self._prune_lock(session_id)
