"""Collection indexes, created once at startup."""
import logging
from typing import Dict, List
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import OperationFailure

logger = logging.getLogger(__name__)


def collections_config(cfg) -> Dict[str, List[dict]]:
    """Index specs per collection, keyed by configured collection name."""
    mongo_cfg = cfg.mongodb
    return {
        mongo_cfg.chat_session_collection: [
            {"keys": [("customer_id", ASCENDING), ("status", ASCENDING)]},
            {"keys": [("status", ASCENDING), ("created_at", ASCENDING)]},
            # one open session per customer
            {
                "keys": [("customer_id", ASCENDING)],
                "name": "one_open_session_per_customer",
                "unique": True,
                "partialFilterExpression": {
                    "status": {"$in": ["waiting", "active"]}
                },
            },
        ],
        mongo_cfg.chat_message_collection: [
            {"keys": [("chat_session_id", ASCENDING), ("timestamp", ASCENDING)]},
        ],
        mongo_cfg.bookings_collection: [
            {"keys": [("customer_id", ASCENDING), ("departure_date", DESCENDING)]},
            {"keys": [("flight_number", ASCENDING), ("seat_number", ASCENDING)]},
        ],
        mongo_cfg.customers_collection: [
            {"keys": [("customer_id", ASCENDING)], "unique": True},
            {"keys": [("email", ASCENDING)]},
        ],
        mongo_cfg.session_store_collection: [
            {"keys": [("expires", ASCENDING)], "expireAfterSeconds": 0},
        ],
    }


async def ensure_indexes(db, cfg) -> None:
    """Create configured indexes; existing ones are left alone."""
    for coll_name, indexes in collections_config(cfg).items():
        collection = db[coll_name]
        for spec in indexes:
            options = {k: v for k, v in spec.items() if k != "keys"}
            try:
                await collection.create_index(spec["keys"], **options)
            except OperationFailure as e:
                # an index with the same keys but different options exists
                logger.warning(f"Skipping index on {coll_name}: {e}")
    logger.info("MongoDB indexes ensured")
