from claims_case_service.app.config import settings
from claims_case_service.app.service.exceptions import UpstreamError
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorClientSession, AsyncIOMotorDatabase

logger = logging.getLogger(__name__)

# Process-wide client, owned by the application startup/shutdown events.
# Code below the API layer never reads these globals; it receives `db` explicitly.
client: Optional[AsyncIOMotorClient] = None
db: Optional[AsyncIOMotorDatabase] = None

async def connect_to_mongo():
    global client, db
    if client is not None and db is not None:
        logger.info("MongoDB connection already established.")
        return

    try:
        logger.info("Attempting to connect to MongoDB...")
        client = AsyncIOMotorClient(
            settings.MONGO_DETAILS,
            tz_aware=True,
            serverSelectionTimeoutMS=settings.MONGO_TIMEOUT_MS,
            connectTimeoutMS=settings.MONGO_TIMEOUT_MS,
            socketTimeoutMS=settings.MONGO_TIMEOUT_MS,
        )
        await client.admin.command('ping')
        db = client[settings.DB_NAME]
        logger.info(f"Successfully connected to MongoDB and database '{settings.DB_NAME}' is set.")
    except Exception as e:
        logger.error(f"Failed to connect to MongoDB: {e}", exc_info=True)
        client = None
        db = None
        raise ConnectionError(f"Failed to connect to MongoDB: {e}")

def close_mongo_connection():
    global client, db
    if client:
        client.close()
        client = None
        db = None
        logger.info("MongoDB connection closed.")

async def get_db():
    if db is None:
        logger.warning("Database not initialized. Attempting to connect via get_db().")
        try:
            await connect_to_mongo()
        except ConnectionError as e:
            raise UpstreamError("Database is not available.") from e

    if db is None:
        logger.error("Failed to get database instance in get_db.")
        raise UpstreamError("Database client is not available. Connection might have failed or was not established.")

    yield db

@asynccontextmanager
async def start_transaction(database: AsyncIOMotorDatabase) -> AsyncIterator[Optional[AsyncIOMotorClientSession]]:
    """
    Yields a session bound to an open multi-document transaction, or None when
    transactions are disabled. Store functions accept the session as-is.
    The transaction commits on clean exit and aborts when the block raises.
    """
    if not settings.MONGO_USE_TRANSACTIONS:
        yield None
        return

    async with await database.client.start_session() as session:
        async with session.start_transaction():
            yield session
