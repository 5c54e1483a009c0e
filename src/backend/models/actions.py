import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class BookFlightArgs(BaseModel):
    """Books a flight for a user."""
    model_config = ConfigDict(populate_by_name=True)

    customer_id: str = Field(
        alias="customerId",
        description="The unique ID of the customer."
    )
    flight_number: str = Field(
        alias="flightNumber",
        description="The flight number, e.g., 'BA2490'."
    )
    flight_date: datetime.date = Field(
        alias="date",
        description="The date of the flight in YYYY-MM-DD format."
    )
    seat_number: str = Field(
        alias="seatNumber",
        description="The seat number, e.g., '14A'."
    )
    travel_class: str = Field(
        alias="class",
        description="The travel class, e.g., 'Economy'."
    )


class CancelFlightArgs(BaseModel):
    """Cancels a flight booking for a user."""
    model_config = ConfigDict(populate_by_name=True)

    booking_id: str = Field(
        alias="bookingId",
        description="The unique ID of the booking to cancel."
    )


class ActionResult(BaseModel):
    """Structured result handed back to the model as the tool output"""
    success: bool
    booking_id: Optional[str] = Field(default=None, serialization_alias="bookingId")
    message: Optional[str] = None
    error: Optional[str] = None

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
