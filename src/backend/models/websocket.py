from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel


class ChatEvent(str, Enum):
    """Event names carried in the `event` field of every frame"""
    CONNECTED = "connected"
    START_CHAT = "customer:startChat"
    SESSION_CREATED = "chat:sessionCreated"
    HISTORY = "chat:history"
    NEW_SESSION = "agent:newSession"
    JOIN_SESSION = "agent:joinSession"
    AGENT_JOINED = "agent:joined"
    MESSAGE = "chat:message"
    ERROR = "chat:error"


# WebSocket message models
class WSFrame(BaseModel):
    """Envelope for every WebSocket frame, in both directions"""
    event: str
    data: Optional[Any] = None
