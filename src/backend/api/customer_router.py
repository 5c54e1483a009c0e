import logging
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from src.backend.api.deps import get_current_user, get_service_container
from src.backend.chat.service_container import ServiceContainer
from src.backend.models.api import ChatbotRequest, ChatbotResponse
from src.backend.models.chat import User

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/chatbot", response_model=ChatbotResponse)
async def chatbot(
    request: ChatbotRequest,
    user: User = Depends(get_current_user),
    services: ServiceContainer = Depends(get_service_container)
):
    """Customer sends a message to the AI assistant and gets its reply.

    The assistant can book or cancel a flight on the customer's behalf.
    Any failure answers 500 with a fixed apology.
    """
    try:
        profile = await services.booking_service.find_customer_by_email(
            user.email
        )
        reply = await services.chatbot.reply(
            request.message,
            customer_id=profile.customer_id if profile else None,
        )
        return ChatbotResponse(reply=reply)
    except Exception as e:
        logger.error(f"AI chatbot error: {e}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"reply": services.chatbot.apology},
        )
