# API Router for Finance entries (cases awaiting approval)
from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request
import datetime
import logging
from typing import List, Optional
from motor.motor_asyncio import AsyncIOMotorDatabase

from claims_case_service.app.api.errors import http_exception_for
from claims_case_service.app.dependencies.auth import get_current_user, require_admin
from claims_case_service.app.models import ActingUser, ApiModel, CaseDB, FinanceDB, FinanceStatus, InvoiceDB
from claims_case_service.app.service import queries
from claims_case_service.app.service.commands.handlers import handle_update_finance_status_command
from claims_case_service.app.service.commands.models import UpdateFinanceStatusCommand
from claims_case_service.app.service.exceptions import BaseCaseManagementError
from claims_case_service.infrastructure.database.connection import get_db

logger = logging.getLogger(__name__)
router = APIRouter()


class FinanceStatusRequest(ApiModel):
    status: FinanceStatus
    remark: Optional[str] = None


class FinanceStatusResponse(ApiModel):
    finance: FinanceDB
    case: CaseDB
    invoice: Optional[InvoiceDB] = None


@router.get("/finances", response_model=List[FinanceDB], tags=["Finances"])
async def list_finances(
    start_date: Optional[datetime.datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime.datetime] = Query(None, alias="endDate"),
    user: ActingUser = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        return await queries.list_finances(db, start=start_date, end=end_date)
    except BaseCaseManagementError as e:
        raise http_exception_for(e)
    except Exception as e:
        logger.error(f"Error listing finances: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/finances/{finance_id}/status", response_model=FinanceStatusResponse, tags=["Finances"])
async def update_finance_status(
    finance_id: str,
    request: Request,
    request_data: FinanceStatusRequest = Body(...),
    admin: ActingUser = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    command = UpdateFinanceStatusCommand(
        finance_id=finance_id,
        new_status=request_data.status,
        remark=request_data.remark,
        acting_user=admin,
        source_ip=request.client.host if request.client else None,
    )
    try:
        result = await handle_update_finance_status_command(db=db, command=command)
        return FinanceStatusResponse(**result)
    except BaseCaseManagementError as e:
        raise http_exception_for(e)
    except Exception as e:
        logger.error(f"Unexpected error updating finance {finance_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")
