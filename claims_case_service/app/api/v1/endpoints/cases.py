# API Router for Cases
from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request
import datetime
import logging
from typing import Dict, List, Optional
from motor.motor_asyncio import AsyncIOMotorDatabase

from claims_case_service.app.api.errors import http_exception_for
from claims_case_service.app.dependencies.auth import get_current_user, require_admin
from claims_case_service.app.models import ActingUser, ApiModel, CaseDB, CaseStatus, FinanceDB, InsuranceType
from claims_case_service.app.service import queries, reporting
from claims_case_service.app.service.commands.handlers import (
    handle_close_case_command, handle_create_case_command, handle_delete_case, handle_update_case_command,
)
from claims_case_service.app.service.commands.models import (
    CloseCaseCommand, CreateCaseCommand, CreateCaseRequest, UpdateCaseCommand, UpdateCaseRequest,
)
from claims_case_service.app.service.exceptions import BaseCaseManagementError
from claims_case_service.infrastructure.database.connection import get_db

logger = logging.getLogger(__name__)
router = APIRouter()


class InReviewRequest(ApiModel):
    remark: Optional[str] = None


class CaseReviewResponse(ApiModel):
    case: CaseDB
    finance: FinanceDB


class ClosedCaseCount(ApiModel):
    created_by_id: Optional[str] = None
    created_by: Optional[str] = None
    count: int


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


@router.get("/cases", response_model=List[CaseDB], tags=["Cases"])
async def list_cases(
    status: Optional[CaseStatus] = None,
    start_date: Optional[datetime.datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime.datetime] = Query(None, alias="endDate"),
    user: ActingUser = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        return await queries.list_cases_for_user(db, user, status=status, start=start_date, end=end_date)
    except BaseCaseManagementError as e:
        raise http_exception_for(e)
    except Exception as e:
        logger.error(f"Error listing cases: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/cases/monthly-entity-counts", response_model=Dict[str, List[int]], tags=["Cases"])
async def monthly_entity_counts(
    entity_type: InsuranceType = Query(..., alias="entityType"),
    status: Optional[CaseStatus] = None,
    start_date: Optional[datetime.datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime.datetime] = Query(None, alias="endDate"),
    user: ActingUser = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        return await reporting.monthly_counts_grouped(db, status, entity_type, start=start_date, end=end_date)
    except BaseCaseManagementError as e:
        raise http_exception_for(e)
    except Exception as e:
        logger.error(f"Error computing monthly entity counts: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/cases/closed-case-count", response_model=List[ClosedCaseCount], tags=["Cases"])
async def closed_case_count(
    start_date: Optional[datetime.datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime.datetime] = Query(None, alias="endDate"),
    user: ActingUser = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        rows = await reporting.closed_case_counts_by_user(db, start=start_date, end=end_date)
        return [ClosedCaseCount(**row) for row in rows]
    except BaseCaseManagementError as e:
        raise http_exception_for(e)
    except Exception as e:
        logger.error(f"Error computing closed case counts: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/cases/{case_id}", response_model=CaseDB, tags=["Cases"])
async def get_case(
    case_id: str,
    user: ActingUser = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        return await queries.get_case_for_user(db, user, case_id)
    except BaseCaseManagementError as e:
        raise http_exception_for(e)
    except Exception as e:
        logger.error(f"Error retrieving case {case_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/cases", status_code=201, response_model=CaseDB, summary="Create a new case", tags=["Cases"])
async def create_case(
    request: Request,
    request_data: CreateCaseRequest = Body(...),
    user: ActingUser = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    command = CreateCaseCommand(data=request_data, acting_user=user, source_ip=_client_ip(request))
    try:
        return await handle_create_case_command(db=db, command=command)
    except BaseCaseManagementError as e:
        raise http_exception_for(e)
    except Exception as e:
        logger.error(f"Unexpected error creating case: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/cases/{case_id}", response_model=CaseDB, tags=["Cases"])
async def update_case(
    case_id: str,
    request_data: UpdateCaseRequest = Body(...),
    user: ActingUser = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    command = UpdateCaseCommand(case_id=case_id, changes=request_data, acting_user=user)
    try:
        return await handle_update_case_command(db=db, command=command)
    except BaseCaseManagementError as e:
        raise http_exception_for(e)
    except Exception as e:
        logger.error(f"Unexpected error updating case {case_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/cases/{case_id}", tags=["Cases"])
async def delete_case(
    case_id: str,
    admin: ActingUser = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        await handle_delete_case(db, case_id)
    except BaseCaseManagementError as e:
        raise http_exception_for(e)
    except Exception as e:
        logger.error(f"Unexpected error deleting case {case_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")
    return {"message": "Case deleted successfully", "id": case_id}


@router.put("/cases/{case_id}/in-review", response_model=CaseReviewResponse, tags=["Cases"])
async def submit_case_for_review(
    case_id: str,
    request_data: Optional[InReviewRequest] = Body(None),
    user: ActingUser = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    remark = request_data.remark if request_data else None
    command = CloseCaseCommand(case_id=case_id, remark=remark, acting_user=user)
    try:
        case, finance = await handle_close_case_command(db=db, command=command)
        return CaseReviewResponse(case=case, finance=finance)
    except BaseCaseManagementError as e:
        raise http_exception_for(e, invalid_state_status=400)
    except Exception as e:
        logger.error(f"Unexpected error moving case {case_id} to review: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")
