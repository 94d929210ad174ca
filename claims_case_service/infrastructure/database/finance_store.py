# Operations for the Finances Collection
import logging
import datetime
from typing import List, Optional
from motor.motor_asyncio import AsyncIOMotorClientSession, AsyncIOMotorDatabase

from claims_case_service.app.models import FinanceDB

logger = logging.getLogger(__name__)
FINANCES_COLLECTION = "finances"


async def insert_finance(db: AsyncIOMotorDatabase, finance: FinanceDB, session: Optional[AsyncIOMotorClientSession] = None) -> FinanceDB:
    await db[FINANCES_COLLECTION].insert_one(finance.to_mongo(), session=session)
    logger.info(f"Finance entry inserted. ID: {finance.id} for case {finance.case_id}")
    return finance


async def get_finance_by_id(db: AsyncIOMotorDatabase, finance_id: str, session: Optional[AsyncIOMotorClientSession] = None) -> Optional[FinanceDB]:
    doc = await db[FINANCES_COLLECTION].find_one({"id": finance_id}, session=session)
    return FinanceDB(**doc) if doc else None


async def delete_finance(db: AsyncIOMotorDatabase, finance_id: str, session: Optional[AsyncIOMotorClientSession] = None) -> bool:
    """True only for the caller that actually removed the entry."""
    result = await db[FINANCES_COLLECTION].delete_one({"id": finance_id}, session=session)
    if result.deleted_count == 0:
        logger.warning(f"Finance ID: {finance_id} was already gone at delete time.")
        return False
    logger.info(f"Finance entry deleted. ID: {finance_id}")
    return True


async def list_finances(db: AsyncIOMotorDatabase, start: datetime.datetime, end: datetime.datetime) -> List[FinanceDB]:
    docs = await db[FINANCES_COLLECTION].find({"issue_date": {"$gte": start, "$lte": end}}).to_list(length=None)
    return [FinanceDB(**doc) for doc in docs]
