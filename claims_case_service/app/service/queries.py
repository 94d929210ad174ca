# Read-side operations for cases, finance entries and invoices
import datetime
import logging
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from claims_case_service.app.models import ActingUser, CaseDB, CaseStatus, FinanceDB, InvoiceDB
from claims_case_service.app.service.exceptions import EntityNotFoundError
from claims_case_service.app.service.reporting import resolve_date_range
from claims_case_service.infrastructure.database import case_store, finance_store, invoice_store
from claims_case_service.infrastructure.database.errors import translate_storage_errors

logger = logging.getLogger(__name__)


async def list_cases_for_user(
    db: AsyncIOMotorDatabase,
    user: ActingUser,
    status: Optional[CaseStatus] = None,
    start: Optional[datetime.datetime] = None,
    end: Optional[datetime.datetime] = None,
) -> List[CaseDB]:
    """Admins see every case in the window; employees only the cases they created."""
    range_start, range_end = resolve_date_range(start, end)
    created_by_id = None if user.is_admin else user.id
    with translate_storage_errors("list cases"):
        cases = await case_store.list_cases(db, range_start, range_end, status=status, created_by_id=created_by_id)
    logger.debug(f"Listed {len(cases)} cases for user {user.id} ({user.role}).")
    return cases


async def get_case_for_user(db: AsyncIOMotorDatabase, user: ActingUser, case_id: str) -> CaseDB:
    with translate_storage_errors("get case"):
        case = await case_store.get_case_by_id(db, case_id)
    # Another employee's case is reported as missing rather than forbidden
    if case is None or (not user.is_admin and case.created_by_id != user.id):
        raise EntityNotFoundError("Case", case_id)
    return case


async def list_finances(
    db: AsyncIOMotorDatabase,
    start: Optional[datetime.datetime] = None,
    end: Optional[datetime.datetime] = None,
) -> List[FinanceDB]:
    range_start, range_end = resolve_date_range(start, end)
    with translate_storage_errors("list finances"):
        return await finance_store.list_finances(db, range_start, range_end)


async def list_invoices(
    db: AsyncIOMotorDatabase,
    start: Optional[datetime.datetime] = None,
    end: Optional[datetime.datetime] = None,
) -> List[InvoiceDB]:
    range_start, range_end = resolve_date_range(start, end)
    with translate_storage_errors("list invoices"):
        return await invoice_store.list_invoices(db, range_start, range_end)
