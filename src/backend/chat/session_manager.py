"""Chat session lifecycle between a customer and a human agent.

waiting -> active (agent joined) -> closed (outside this service)
"""
import logging
from typing import List, Optional, Tuple
from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError
from src.backend.models.chat import (
    ChatSession,
    CustomerRef,
    SessionStatus,
    OPEN_STATUSES,
    utcnow,
)

logger = logging.getLogger(__name__)

START_CHAT_ATTEMPTS = 2


class SessionUnavailableError(Exception):
    """No open session could be found or created for the customer."""


def _object_id(session_id) -> Optional[ObjectId]:
    try:
        return ObjectId(session_id)
    except (InvalidId, TypeError):
        return None


class ChatSessionManager:
    def __init__(self, sessions_collection, users_collection):
        self.sessions = sessions_collection
        self.users = users_collection

    async def _customer_ref(self, customer_id: str) -> Optional[CustomerRef]:
        oid = _object_id(customer_id)
        if oid is None:
            return None
        user = await self.users.find_one({"_id": oid})
        if not user:
            return None
        return CustomerRef(
            id=str(user["_id"]),
            username=user.get("username", ""),
            email=user.get("email"),
        )

    async def _populate(self, doc: dict) -> ChatSession:
        customer = await self._customer_ref(doc["customer_id"])
        return ChatSession.from_mongo(doc, customer=customer)

    async def _upsert_open(self, open_filter: dict, customer_id: str) -> bool:
        try:
            result = await self.sessions.update_one(
                open_filter,
                {"$setOnInsert": {
                    "customer_id": customer_id,
                    "status": SessionStatus.WAITING.value,
                    "agent_id": None,
                    "created_at": utcnow(),
                }},
                upsert=True,
            )
        except DuplicateKeyError:
            logger.warning(f"Concurrent chat start for customer {customer_id}")
            return False
        return result.upserted_id is not None

    async def start_chat(self, customer_id: str) -> Tuple[ChatSession, bool]:
        """Find the customer's open session or create a waiting one.

        The lookup and the insert are one upsert, so the common case of a
        double click cannot produce two open sessions. The unique partial
        index turns a true concurrent insert into DuplicateKeyError, in which
        case the winner's session is read back. If that session is closed
        before it can be read, the upsert runs once more.

        Returns:
            (session with customer populated, whether it was just created)

        Raises:
            SessionUnavailableError: no open session could be read back
        """
        open_filter = {
            "customer_id": customer_id,
            "status": {"$in": OPEN_STATUSES},
        }
        for attempt in range(START_CHAT_ATTEMPTS):
            created = await self._upsert_open(open_filter, customer_id)
            doc = await self.sessions.find_one(
                open_filter, sort=[("created_at", ASCENDING)]
            )
            if doc is not None:
                break
            logger.warning(f"Open session for customer {customer_id} closed "
                           f"before read back (attempt {attempt + 1})")
        else:
            raise SessionUnavailableError(
                f"No open chat session for customer {customer_id}"
            )

        if created:
            logger.info(f"Created chat session {doc['_id']} for "
                        f"customer {customer_id}")
        else:
            logger.info(f"Reusing chat session {doc['_id']} for "
                        f"customer {customer_id}")
        return await self._populate(doc), created

    async def join_session(
        self, session_id: str, agent_id: str
    ) -> Optional[ChatSession]:
        """Mark the session active and assign `agent_id`. Last joiner wins.

        Returns None when the session does not exist.
        """
        oid = _object_id(session_id)
        if oid is None:
            logger.warning(f"Join requested for malformed session id {session_id!r}")
            return None
        doc = await self.sessions.find_one_and_update(
            {"_id": oid},
            {"$set": {
                "status": SessionStatus.ACTIVE.value,
                "agent_id": agent_id,
            }},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            logger.warning(f"Join requested for unknown session {session_id}")
            return None
        logger.info(f"Agent {agent_id} joined session {session_id}")
        return await self._populate(doc)

    async def get_session(self, session_id: str) -> Optional[ChatSession]:
        oid = _object_id(session_id)
        if oid is None:
            return None
        doc = await self.sessions.find_one({"_id": oid})
        return await self._populate(doc) if doc else None

    async def list_open_sessions(self) -> List[ChatSession]:
        """Waiting and active sessions, oldest first (agent dashboard)"""
        cursor = self.sessions.find(
            {"status": {"$in": OPEN_STATUSES}}
        ).sort("created_at", ASCENDING)
        docs = await cursor.to_list(length=None)
        return [await self._populate(doc) for doc in docs]
