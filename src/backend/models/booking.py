import datetime
from enum import Enum
from typing import Optional, Dict, Any
from pydantic import BaseModel, ConfigDict, Field


class BookingStatus(str, Enum):
    BOOKED = "Booked"
    CHECKED_IN = "Checked-In"
    COMPLETED = "Completed"


class Booking(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    customer_id: str
    flight_number: str
    departure: str
    arrival: str
    departure_date: datetime.datetime
    arrival_date: datetime.datetime
    seat_number: str
    travel_class: str = Field(alias="class")
    status: BookingStatus = BookingStatus.BOOKED

    @classmethod
    def from_mongo(cls, doc: Dict[str, Any]) -> "Booking":
        data = {k: v for k, v in doc.items() if k != "_id"}
        return cls(id=str(doc["_id"]), **data)

    def to_mongo(self) -> Dict[str, Any]:
        doc = self.model_dump(mode="python", by_alias=True, exclude={"id"})
        doc["status"] = self.status.value
        return doc


class CustomerProfile(BaseModel):
    """Passenger profile, linked to a login account by email"""
    customer_id: str
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None

    @classmethod
    def from_mongo(cls, doc: Dict[str, Any]) -> "CustomerProfile":
        return cls(
            customer_id=doc["customer_id"],
            first_name=doc.get("first_name", ""),
            last_name=doc.get("last_name", ""),
            email=doc.get("email", ""),
            phone=doc.get("phone"),
        )
