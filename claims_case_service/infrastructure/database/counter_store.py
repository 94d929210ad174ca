# Monthly sequence used for case reference numbers
import datetime
import logging
from typing import Optional
from motor.motor_asyncio import AsyncIOMotorClientSession, AsyncIOMotorDatabase
from pymongo import ReturnDocument

from claims_case_service.app.models import utcnow

logger = logging.getLogger(__name__)
COUNTERS_COLLECTION = "counters"


async def next_case_reference(
    db: AsyncIOMotorDatabase,
    prefix: str,
    now: Optional[datetime.datetime] = None,
    session: Optional[AsyncIOMotorClientSession] = None,
) -> str:
    """
    Returns the next reference for the current month, e.g. CMA25-0701.
    The counter document id is the month key (CMA25-07); the sequence restarts each month.
    """
    now = now or utcnow()
    month_key = f"{prefix}{now:%y}-{now:%m}"
    counter = await db[COUNTERS_COLLECTION].find_one_and_update(
        {"_id": month_key},
        {"$inc": {"seq": 1}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
        session=session,
    )
    reference = f"{month_key}{counter['seq']:02d}"
    logger.debug(f"Allocated case reference {reference}")
    return reference
