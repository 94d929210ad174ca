# API Router for Invoices
from fastapi import APIRouter, Body, Depends, HTTPException, Query
import datetime
import logging
from typing import List, Optional
from motor.motor_asyncio import AsyncIOMotorDatabase

from claims_case_service.app.api.errors import http_exception_for
from claims_case_service.app.dependencies.auth import get_current_user, require_admin
from claims_case_service.app.models import ActingUser, ApiModel, InvoiceDB, InvoiceStatus
from claims_case_service.app.service import queries
from claims_case_service.app.service.commands.handlers import handle_update_invoice_status_command
from claims_case_service.app.service.commands.models import UpdateInvoiceStatusCommand
from claims_case_service.app.service.exceptions import BaseCaseManagementError
from claims_case_service.infrastructure.database.connection import get_db

logger = logging.getLogger(__name__)
router = APIRouter()


class InvoiceStatusRequest(ApiModel):
    status: InvoiceStatus


@router.get("/invoices", response_model=List[InvoiceDB], tags=["Invoices"])
async def list_invoices(
    start_date: Optional[datetime.datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime.datetime] = Query(None, alias="endDate"),
    user: ActingUser = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        return await queries.list_invoices(db, start=start_date, end=end_date)
    except BaseCaseManagementError as e:
        raise http_exception_for(e)
    except Exception as e:
        logger.error(f"Error listing invoices: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/invoices/{invoice_id}/status", response_model=InvoiceDB, tags=["Invoices"])
async def update_invoice_status(
    invoice_id: str,
    request_data: InvoiceStatusRequest = Body(...),
    admin: ActingUser = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    command = UpdateInvoiceStatusCommand(invoice_id=invoice_id, new_status=request_data.status, acting_user=admin)
    try:
        return await handle_update_invoice_status_command(db=db, command=command)
    except BaseCaseManagementError as e:
        raise http_exception_for(e)
    except Exception as e:
        logger.error(f"Unexpected error updating invoice {invoice_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")
