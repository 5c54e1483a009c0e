import logging
from src.backend.database.mongodb_client import MongoDBClient
from src.backend.database.init_mongodb import ensure_indexes
from src.backend.database.session_store import SessionStore
from src.backend.chat.actions import FlightActions
from src.backend.chat.booking_service import BookingService
from src.backend.chat.chat_history import ChatHistory
from src.backend.chat.chatbot import ChatbotService
from src.backend.chat.relay import ChatRelay
from src.backend.chat.session_manager import ChatSessionManager
from src.backend.utils.llm import LLM
from src.backend.utils.settings import SETTINGS
from src.backend.websocket.manager import RoomRegistry


logger = logging.getLogger(__name__)


class ServiceContainer:
    """Container for all service instances with centralized initialization."""

    def __init__(self, cfg):
        self.cfg = cfg
        self.mongodb_client = None
        self.db = None
        self.session_store = None
        self.session_manager = None
        self.chat_history = None
        self.booking_service = None
        self.rooms = None
        self.relay = None
        self.chatbot = None

    async def initialize(self, db=None, llm_client=None):
        """Initialize all service components with proper dependency order.

        `db` and `llm_client` replace the MongoDB connection and the model
        client when given (tests, scripts).
        """
        try:
            if db is None:
                self.mongodb_client = MongoDBClient(SETTINGS.MONGODB_URI)
                await self.mongodb_client.connect()
                db = self.mongodb_client.database(self.cfg.mongodb.db_name)
                await ensure_indexes(db, self.cfg)
            self.db = db
            mongo_cfg = self.cfg.mongodb

            self.session_store = SessionStore(
                db[mongo_cfg.session_store_collection],
                db[mongo_cfg.users_collection],
                cookie_name=self.cfg.session_store.cookie_name,
            )
            self.session_manager = ChatSessionManager(
                db[mongo_cfg.chat_session_collection],
                db[mongo_cfg.users_collection],
            )
            self.chat_history = ChatHistory(db[mongo_cfg.chat_message_collection])
            self.booking_service = BookingService(
                db[mongo_cfg.bookings_collection],
                db[mongo_cfg.customers_collection],
            )
            self.rooms = RoomRegistry()
            self.relay = ChatRelay(
                self.rooms, self.session_manager, self.chat_history
            )
            llm = LLM(dict(self.cfg.chatbot.llm), client=llm_client)
            self.chatbot = ChatbotService(
                llm,
                FlightActions(self.booking_service),
                prompt_name=self.cfg.chatbot.prompts,
            )
            logger.info("Services initialized")
        except Exception as e:
            logger.error(f"Error initializing services: {e}")
            raise

    async def cleanup(self):
        """Cleanup all resources."""
        if self.mongodb_client:
            await self.mongodb_client.cleanup()
        if self.rooms:
            self.rooms.rooms.clear()
        logger.info("Cleanup complete")
