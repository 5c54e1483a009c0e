import logging
from typing import List
from fastapi import APIRouter, HTTPException, Depends
from pymongo.errors import PyMongoError

from src.backend.api.deps import get_service_container, require_agent
from src.backend.chat.service_container import ServiceContainer
from src.backend.models.api import SessionCustomerResponse
from src.backend.models.booking import Booking
from src.backend.models.chat import ChatMessage, ChatSession


logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_agent)])


@router.get("/agent/sessions", response_model=List[ChatSession])
async def get_open_sessions(
    services: ServiceContainer = Depends(get_service_container)
):
    """Waiting and active chat sessions, oldest first"""
    try:
        return await services.session_manager.list_open_sessions()
    except PyMongoError as e:
        logger.error(f"Error listing open sessions: {e}")
        raise HTTPException(status_code=500, detail="Error loading sessions")


@router.get(
    "/customer-from-session/{session_id}",
    response_model=SessionCustomerResponse
)
async def get_customer_from_session(
    session_id: str,
    services: ServiceContainer = Depends(get_service_container)
):
    """Customer behind a chat session, with their passenger profile if any"""
    try:
        session = await services.session_manager.get_session(session_id)
        if session is None or session.customer is None:
            raise HTTPException(status_code=404, detail="Session not found")
        profile = await services.booking_service.find_customer_by_email(
            session.customer.email
        )
    except PyMongoError as e:
        logger.error(f"Error loading customer for session {session_id}: {e}")
        raise HTTPException(status_code=500, detail="Error loading customer")

    return SessionCustomerResponse(
        id=session.customer.id,
        username=session.customer.username,
        email=session.customer.email,
        customer_id=profile.customer_id if profile else None,
        profile=profile,
    )


@router.get("/chat-history/{session_id}", response_model=List[ChatMessage])
async def get_chat_history(
    session_id: str,
    services: ServiceContainer = Depends(get_service_container)
):
    """All messages of a session, oldest first"""
    try:
        return await services.chat_history.get_history(session_id)
    except PyMongoError as e:
        logger.error(f"Error getting chat history for {session_id}: {e}")
        raise HTTPException(status_code=500, detail="Error loading history")


@router.get(
    "/bookings-for-customer/{customer_id}",
    response_model=List[Booking],
    response_model_by_alias=True,
)
async def get_bookings_for_customer(
    customer_id: str,
    services: ServiceContainer = Depends(get_service_container)
):
    try:
        customer = await services.booking_service.find_customer(customer_id)
        if customer is None:
            raise HTTPException(status_code=404, detail="Customer not found")
        return await services.booking_service.bookings_for_customer(
            customer.customer_id
        )
    except PyMongoError as e:
        logger.error(f"Error getting bookings for {customer_id}: {e}")
        raise HTTPException(status_code=500, detail="Error loading bookings")
