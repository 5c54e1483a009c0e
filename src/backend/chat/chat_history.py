import logging
from typing import List
from pymongo import ASCENDING
from src.backend.models.chat import ChatMessage, MessageRole, utcnow


logger = logging.getLogger(__name__)


class ChatHistory:
    """Append-only store of chat messages, one collection for all sessions"""

    def __init__(self, collection):
        self.collection = collection

    async def add_message(
        self,
        session_id: str,
        sender: str,
        role: MessageRole,
        message: str,
    ) -> ChatMessage:
        """Persist one message. Errors propagate to the caller."""
        chat_message = ChatMessage(
            chat_session_id=session_id,
            sender=sender,
            role=role,
            message=message,
            timestamp=utcnow(),
        )
        doc = chat_message.to_mongo()
        result = await self.collection.insert_one(doc)
        chat_message.id = str(result.inserted_id)
        logger.info(f"Added message {chat_message.id} to session {session_id}")
        return chat_message

    async def get_history(self, session_id: str) -> List[ChatMessage]:
        """All messages of a session in submission order"""
        cursor = self.collection.find(
            {"chat_session_id": session_id}
        ).sort([("timestamp", ASCENDING), ("_id", ASCENDING)])
        docs = await cursor.to_list(length=None)
        return [ChatMessage.from_mongo(doc) for doc in docs]
