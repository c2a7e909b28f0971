"""Storage backend and scheduling engine lifecycle."""

from typing import Optional

from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from clinicdesk.config import settings
from clinicdesk.core.clock import Clock, SystemClock
from clinicdesk.core.logging import logger
from clinicdesk.scheduling.engine import SchedulingEngine
from clinicdesk.store.base import EntityStore
from clinicdesk.store.documents import DOCUMENT_MODELS
from clinicdesk.store.memory import MemoryEntityStore
from clinicdesk.store.mongo import MongoEntityStore


def build_engine(store: EntityStore, clock: Optional[Clock] = None) -> SchedulingEngine:
    """Create a scheduling engine configured from settings."""
    return SchedulingEngine(
        store,
        clock=clock,
        duration=settings.appointment_duration,
        timeout=settings.STORE_TIMEOUT_SECONDS,
        search_window=settings.conflict_search_window,
    )


class Database:
    """Storage connection manager."""
    
    client: Optional[AsyncIOMotorClient] = None
    store: Optional[EntityStore] = None
    engine: Optional[SchedulingEngine] = None
    
    @classmethod
    async def connect_db(cls, clock: Optional[Clock] = None):
        """Open the configured backend and build the engine on top of it."""
        clock = clock or SystemClock()
        
        if settings.STORAGE_BACKEND == "mongo":
            cls.client = AsyncIOMotorClient(
                settings.MONGODB_URL,
                uuidRepresentation="standard",
                tz_aware=True,
            )
            await init_beanie(
                database=cls.client[settings.DATABASE_NAME],
                document_models=DOCUMENT_MODELS,
            )
            cls.store = MongoEntityStore(clock)
            logger.info(f"Connected to MongoDB database: {settings.DATABASE_NAME}")
        else:
            cls.store = MemoryEntityStore(clock)
            logger.info("Using in-memory entity store")
        
        cls.engine = build_engine(cls.store, clock)
    
    @classmethod
    async def close_db(cls):
        """Close connections and drop references."""
        if cls.client:
            cls.client.close()
            cls.client = None
            logger.info("Closed MongoDB connection")
        cls.store = None
        cls.engine = None
