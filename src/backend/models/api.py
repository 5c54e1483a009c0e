from pydantic import BaseModel
from typing import Optional
from src.backend.models.booking import CustomerProfile


class ChatbotRequest(BaseModel):
    """Free-text message for the AI assistant"""
    message: str


class ChatbotResponse(BaseModel):
    reply: str


class SessionCustomerResponse(BaseModel):
    """Customer behind a chat session, as shown in the agent panel"""
    id: str
    username: str
    email: Optional[str] = None
    customer_id: Optional[str] = None
    profile: Optional[CustomerProfile] = None
