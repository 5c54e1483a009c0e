import logging
from datetime import datetime, time
from typing import List, Optional
from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING
from src.backend.models.actions import BookFlightArgs
from src.backend.models.booking import Booking, CustomerProfile

logger = logging.getLogger(__name__)


class BookingService:
    """Booking and customer-profile queries used by the chat features"""

    def __init__(self, bookings_collection, customers_collection):
        self.bookings = bookings_collection
        self.customers = customers_collection

    async def create_booking(self, args: BookFlightArgs) -> str:
        """Insert a booking straight from assistant arguments.

        No seat availability check is made here; that belongs to the manual
        booking form.
        """
        flight_day = datetime.combine(args.flight_date, time.min)
        booking = Booking(
            customer_id=args.customer_id,
            flight_number=args.flight_number,
            departure="N/A",
            arrival="N/A",
            departure_date=flight_day,
            arrival_date=flight_day,
            seat_number=args.seat_number,
            travel_class=args.travel_class,
        )
        result = await self.bookings.insert_one(booking.to_mongo())
        booking_id = str(result.inserted_id)
        logger.info(f"Booking {booking_id} created for customer "
                    f"{args.customer_id} on {args.flight_number}")
        return booking_id

    async def delete_booking(self, booking_id: str) -> bool:
        """Delete by id. Malformed ids match nothing."""
        try:
            oid = ObjectId(booking_id)
        except (InvalidId, TypeError):
            return False
        result = await self.bookings.delete_one({"_id": oid})
        if result.deleted_count:
            logger.info(f"Booking {booking_id} deleted")
        return result.deleted_count > 0

    async def bookings_for_customer(self, customer_id: str) -> List[Booking]:
        cursor = self.bookings.find(
            {"customer_id": customer_id}
        ).sort("departure_date", DESCENDING)
        docs = await cursor.to_list(length=None)
        return [Booking.from_mongo(doc) for doc in docs]

    async def find_customer(self, customer_id: str) -> Optional[CustomerProfile]:
        doc = await self.customers.find_one({"customer_id": customer_id})
        return CustomerProfile.from_mongo(doc) if doc else None

    async def find_customer_by_email(
        self, email: Optional[str]
    ) -> Optional[CustomerProfile]:
        if not email:
            return None
        doc = await self.customers.find_one({"email": email})
        return CustomerProfile.from_mongo(doc) if doc else None
