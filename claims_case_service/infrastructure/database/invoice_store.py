# Operations for the Invoices Collection
import logging
import datetime
from typing import Any, Dict, List, Optional
from motor.motor_asyncio import AsyncIOMotorClientSession, AsyncIOMotorDatabase
from pymongo import ReturnDocument

from claims_case_service.app.models import InvoiceDB, InvoiceStatus, utcnow

logger = logging.getLogger(__name__)
INVOICES_COLLECTION = "invoices"


async def insert_invoice(db: AsyncIOMotorDatabase, invoice: InvoiceDB, session: Optional[AsyncIOMotorClientSession] = None) -> InvoiceDB:
    await db[INVOICES_COLLECTION].insert_one(invoice.to_mongo(), session=session)
    logger.info(f"Invoice inserted. ID: {invoice.id} from finance {invoice.finance_id} (case {invoice.case_id})")
    return invoice


async def delete_invoice(db: AsyncIOMotorDatabase, invoice_id: str, session: Optional[AsyncIOMotorClientSession] = None) -> bool:
    # Only used to undo an invoice whose approval lost a race.
    result = await db[INVOICES_COLLECTION].delete_one({"id": invoice_id}, session=session)
    return result.deleted_count == 1


async def list_invoices(db: AsyncIOMotorDatabase, start: datetime.datetime, end: datetime.datetime) -> List[InvoiceDB]:
    docs = await db[INVOICES_COLLECTION].find({"issue_date": {"$gte": start, "$lte": end}}).to_list(length=None)
    return [InvoiceDB(**doc) for doc in docs]


async def update_invoice_status(
    db: AsyncIOMotorDatabase,
    invoice_id: str,
    new_status: InvoiceStatus,
    updated_by_user: Optional[str] = None,
) -> Optional[InvoiceDB]:
    """Paid stamps paid_date; any other status removes it."""
    new_status = InvoiceStatus(new_status)
    now = utcnow()
    set_operations: Dict[str, Any] = {
        "status": new_status.value,
        "updated_by_user": updated_by_user,
        "updated_at": now,
    }
    update_query: Dict[str, Any] = {"$set": set_operations}
    if new_status == InvoiceStatus.PAID:
        set_operations["paid_date"] = now
    else:
        update_query["$unset"] = {"paid_date": ""}

    updated = await db[INVOICES_COLLECTION].find_one_and_update(
        {"id": invoice_id},
        update_query,
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        logger.warning(f"Invoice ID: {invoice_id} not found for status update.")
        return None
    logger.info(f"Invoice ID: {invoice_id} status set to {new_status.value}.")
    return InvoiceDB(**updated)
