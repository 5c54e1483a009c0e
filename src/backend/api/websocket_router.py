# src/backend/api/websocket_router.py
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Depends
import json
from typing import Any, Optional
from pydantic import ValidationError
from starlette.websockets import WebSocketState
from src.backend.api.deps import (
    get_websocket_service_container,
    get_websocket_user,
)
from src.backend.chat.relay import ChatRelay
from src.backend.chat.service_container import ServiceContainer
from src.backend.models.chat import User
from src.backend.models.websocket import ChatEvent, WSFrame
from src.backend.websocket.manager import Connection, WebSocketConnection
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def _session_id_from(data: Any) -> Optional[str]:
    """agent:joinSession carries either the bare id or {sessionId}."""
    if isinstance(data, dict):
        return data.get("sessionId")
    if isinstance(data, str):
        return data
    return None


async def handle_frame(
    relay: ChatRelay,
    connection: Connection,
    frame: WSFrame
) -> None:
    """Dispatch one client frame to the relay.

    Supported events:
        1. "customer:startChat" - find or create the customer's session
        2. "agent:joinSession" - agent claims a session
        3. "chat:message" - persist and relay a message to the room
    """
    if frame.event == ChatEvent.START_CHAT.value:
        await relay.start_chat(connection)
    elif frame.event == ChatEvent.JOIN_SESSION.value:
        await relay.join_session(connection, _session_id_from(frame.data))
    elif frame.event == ChatEvent.MESSAGE.value:
        data = frame.data if isinstance(frame.data, dict) else {}
        await relay.send_message(
            connection, data.get("sessionId"), data.get("message")
        )
    else:
        await connection.emit(
            ChatEvent.ERROR.value,
            {"error": f"Unknown event: {frame.event}"}
        )


async def drain_inert(websocket: WebSocket) -> None:
    """Keep an unauthenticated socket open without routing anything."""
    logger.info("WebSocket without a recognized session, ignoring its frames")
    while True:
        await websocket.receive_text()


@router.websocket("/chat")
async def websocket_endpoint(
    websocket: WebSocket,
    services: Optional[ServiceContainer] = Depends(get_websocket_service_container),
    user: Optional[User] = Depends(get_websocket_user),
):
    """Realtime chat channel for customers and agents.

    Workflow:
        1. Resolves the session cookie to a user (done by the dependency)
        2. Accepts the connection and registers it with the relay
        3. Reads JSON frames {"event": ..., "data": ...} until disconnect
        4. Removes the connection from every room on exit
    """
    if services is None:
        return
    relay = services.relay
    await websocket.accept()
    connection = WebSocketConnection(websocket, user)
    try:
        if user is None:
            await drain_inert(websocket)
            return

        await relay.connect(connection)
        while True:
            data = await websocket.receive_text()
            try:
                frame = WSFrame.model_validate(json.loads(data))
            except (json.JSONDecodeError, ValidationError) as e:
                logger.warning(f"Malformed frame from {connection}: {e}")
                await connection.emit(
                    ChatEvent.ERROR.value, {"error": "Malformed frame"}
                )
                continue
            await handle_frame(relay, connection, frame)

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected: {connection}")
        await relay.disconnect(connection)
    except Exception as e:
        logger.error(f"WebSocket error: {e}", exc_info=True)
        if websocket.client_state != WebSocketState.DISCONNECTED:
            try:
                await websocket.close(code=1011)  # 1011 = Internal Error
            except Exception as close_error:
                logger.error(f"Error closing WebSocket: {close_error}")
        await relay.disconnect(connection)
