"""Closed registry of the actions the assistant may invoke.

Only names registered here can run; anything else the model asks for is a
hard error.
"""
import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, NamedTuple, Type, Union
from pydantic import BaseModel, ValidationError
from pymongo.errors import PyMongoError
from src.backend.chat.booking_service import BookingService
from src.backend.models.actions import (
    ActionResult,
    BookFlightArgs,
    CancelFlightArgs,
)

logger = logging.getLogger(__name__)


class UnknownActionError(Exception):
    """The model requested an action that is not declared."""


class Action(NamedTuple):
    args_model: Type[BaseModel]
    handler: Callable[[Any], Awaitable[ActionResult]]


def tool_declaration(name: str, args_model: Type[BaseModel]) -> Dict[str, Any]:
    """Chat-completions tool schema built from the argument model."""
    schema = args_model.model_json_schema(by_alias=True)
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": (args_model.__doc__ or "").strip(),
            "parameters": {
                "type": "object",
                "properties": schema["properties"],
                "required": schema.get("required", []),
            },
        },
    }


class FlightActions:
    def __init__(self, booking_service: BookingService):
        self.booking_service = booking_service
        self._actions: Dict[str, Action] = {
            "book_flight": Action(BookFlightArgs, self.book_flight),
            "cancel_flight": Action(CancelFlightArgs, self.cancel_flight),
        }

    @property
    def names(self) -> List[str]:
        return list(self._actions)

    def tool_declarations(self) -> List[Dict[str, Any]]:
        return [
            tool_declaration(name, action.args_model)
            for name, action in self._actions.items()
        ]

    async def book_flight(self, args: BookFlightArgs) -> ActionResult:
        try:
            booking_id = await self.booking_service.create_booking(args)
        except PyMongoError as e:
            logger.error(f"book_flight failed: {e}")
            return ActionResult(success=False, error=str(e))
        return ActionResult(success=True, booking_id=booking_id)

    async def cancel_flight(self, args: CancelFlightArgs) -> ActionResult:
        try:
            deleted = await self.booking_service.delete_booking(args.booking_id)
        except PyMongoError as e:
            logger.error(f"cancel_flight failed: {e}")
            return ActionResult(success=False, error=str(e))
        if deleted:
            return ActionResult(
                success=True, message="Booking canceled successfully."
            )
        return ActionResult(success=False, error="not found")

    async def dispatch(
        self, name: str, arguments: Union[str, Dict[str, Any], None]
    ) -> Dict[str, Any]:
        """Validate the model-supplied arguments and run the named action.

        Raises:
            UnknownActionError: `name` is not a declared action.
        """
        action = self._actions.get(name)
        if action is None:
            raise UnknownActionError(f"Unknown action requested: {name!r}")

        if isinstance(arguments, str):
            arguments = json.loads(arguments) if arguments.strip() else {}
        try:
            args = action.args_model.model_validate(arguments or {})
        except ValidationError as e:
            logger.warning(f"Invalid arguments for {name}: {e}")
            return ActionResult(success=False, error=str(e)).to_payload()

        logger.info(f"Running action {name}")
        result = await action.handler(args)
        return result.to_payload()
