from fastapi import Depends, Request, HTTPException
from fastapi import WebSocket
import logging
from typing import Optional
from hydra import initialize, compose
from src.backend.chat.service_container import ServiceContainer
from src.backend.models.chat import User, UserRole

logger = logging.getLogger(__name__)


def get_config():
    """Dependency to provide Hydra configuration."""
    with initialize(version_base=None, config_path="./../../../config"):
        cfg = compose(config_name="config.yaml")
    return cfg


def get_service_container(request: Request) -> ServiceContainer:
    if not getattr(request.app.state, "startup_complete", False):
        raise HTTPException(
            status_code=503,
            detail="Service is starting up. Please try again in a moment."
        )
    if not hasattr(request.app.state, "service_container"):
        raise HTTPException(
            status_code=500,
            detail="Service container not available"
        )

    return request.app.state.service_container


async def get_current_user(
    request: Request,
    services: ServiceContainer = Depends(get_service_container)
) -> User:
    """Resolve the session cookie through the shared session store."""
    session_id = request.cookies.get(services.session_store.cookie_name)
    user = await services.session_store.resolve_user(session_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Login required")
    return user


async def require_agent(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.AGENT:
        logger.warning(f"User {user.id} denied access to agent endpoint")
        raise HTTPException(status_code=403, detail="Access Denied")
    return user


async def get_websocket_service_container(
    websocket: WebSocket
) -> Optional[ServiceContainer]:
    """Dependency to get the service container from app state for WebSocket connections."""
    if not hasattr(websocket.app.state, "service_container"):
        logger.warning("Service container not available for WebSocket - app may still be initializing")
        await websocket.close(code=1013)  # 1013 = Try Again Later
        return None
    return websocket.app.state.service_container


async def get_websocket_user(
    websocket: WebSocket,
    services: Optional[ServiceContainer] = Depends(get_websocket_service_container)
) -> Optional[User]:
    """Same cookie lookup as HTTP; None means the connection stays inert."""
    if services is None:
        return None
    session_id = websocket.cookies.get(services.session_store.cookie_name)
    return await services.session_store.resolve_user(session_id)
