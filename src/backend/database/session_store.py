"""Read side of the shared session store.

Sessions are written by the login service; this process only resolves a
session cookie to the user behind it, for HTTP requests and WebSocket
connections alike.
"""
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional
from bson import ObjectId
from bson.errors import InvalidId
from src.backend.models.chat import User

logger = logging.getLogger(__name__)


class SessionStore:
    def __init__(self, sessions_collection, users_collection, cookie_name: str):
        self.sessions = sessions_collection
        self.users = users_collection
        self.cookie_name = cookie_name

    async def get_user(self, user_id: str) -> Optional[User]:
        try:
            doc = await self.users.find_one({"_id": ObjectId(user_id)})
        except (InvalidId, TypeError):
            return None
        return User.from_mongo(doc) if doc else None

    async def resolve_user(self, session_id: Optional[str]) -> Optional[User]:
        """Return the user owning `session_id`, or None if unknown/expired."""
        if not session_id:
            return None
        record = await self.sessions.find_one({"_id": session_id})
        if not record:
            return None
        expires = record.get("expires")
        if expires is not None:
            if expires.tzinfo is None:
                expires = expires.replace(tzinfo=timezone.utc)
            if expires <= datetime.now(timezone.utc):
                logger.info(f"Session {session_id[:8]}... expired")
                return None
        user_id = record.get("user_id")
        if not user_id:
            return None
        return await self.get_user(user_id)

    async def create(self, user_id: str, ttl: timedelta = timedelta(days=1)) -> str:
        """Issue a session for `user_id`. Used by the login service and tests."""
        session_id = secrets.token_urlsafe(24)
        await self.sessions.insert_one({
            "_id": session_id,
            "user_id": user_id,
            "expires": datetime.now(timezone.utc) + ttl,
        })
        return session_id
