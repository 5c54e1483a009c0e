from enum import Enum
from pydantic import BaseModel, Field, field_validator
from typing import Optional, Dict, Any
from datetime import datetime, timezone


class UserRole(str, Enum):
    CUSTOMER = "customer"
    AGENT = "agent"


class SessionStatus(str, Enum):
    WAITING = "waiting"
    ACTIVE = "active"
    CLOSED = "closed"


OPEN_STATUSES = [SessionStatus.WAITING.value, SessionStatus.ACTIVE.value]


class MessageRole(str, Enum):
    """Author role tag, fixed when the message is created"""
    CUSTOMER = "customer"
    AGENT = "agent"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """BSON dates come back naive; they are always UTC."""
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class User(BaseModel):
    """Login account, owned by the external auth collaborator"""
    id: str
    username: str
    email: Optional[str] = None
    role: UserRole = UserRole.CUSTOMER

    @classmethod
    def from_mongo(cls, doc: Dict[str, Any]) -> "User":
        return cls(
            id=str(doc["_id"]),
            username=doc.get("username", ""),
            email=doc.get("email"),
            role=doc.get("role", UserRole.CUSTOMER.value),
        )


class CustomerRef(BaseModel):
    """Customer fields populated onto a chat session"""
    id: str
    username: str
    email: Optional[str] = None


class ChatSession(BaseModel):
    id: str
    customer_id: str
    agent_id: Optional[str] = None
    status: SessionStatus = SessionStatus.WAITING
    created_at: datetime = Field(default_factory=utcnow)
    customer: Optional[CustomerRef] = None

    @field_validator("created_at")
    @classmethod
    def created_at_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @classmethod
    def from_mongo(
        cls, doc: Dict[str, Any], customer: Optional[CustomerRef] = None
    ) -> "ChatSession":
        return cls(
            id=str(doc["_id"]),
            customer_id=doc["customer_id"],
            agent_id=doc.get("agent_id"),
            status=doc.get("status", SessionStatus.WAITING.value),
            created_at=doc.get("created_at") or utcnow(),
            customer=customer,
        )


class ChatMessage(BaseModel):
    """A single persisted chat line. Never updated after insert."""
    id: Optional[str] = None
    chat_session_id: str
    sender: str
    role: MessageRole
    message: str
    timestamp: datetime = Field(default_factory=utcnow)

    @field_validator("timestamp")
    @classmethod
    def timestamp_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @classmethod
    def from_mongo(cls, doc: Dict[str, Any]) -> "ChatMessage":
        return cls(
            id=str(doc["_id"]),
            chat_session_id=doc["chat_session_id"],
            sender=doc["sender"],
            role=doc.get("role", MessageRole.CUSTOMER.value),
            message=doc["message"],
            timestamp=doc["timestamp"],
        )

    def to_mongo(self) -> Dict[str, Any]:
        return {
            "chat_session_id": self.chat_session_id,
            "sender": self.sender,
            "role": self.role.value,
            "message": self.message,
            "timestamp": self.timestamp,
        }
