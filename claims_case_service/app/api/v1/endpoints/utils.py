# API Router for form helpers
from fastapi import APIRouter, Depends, HTTPException
import logging
from motor.motor_asyncio import AsyncIOMotorDatabase

from claims_case_service.app.api.errors import http_exception_for
from claims_case_service.app.dependencies.auth import get_current_user
from claims_case_service.app.models import ActingUser
from claims_case_service.app.service.directories import dropdown_data
from claims_case_service.app.service.exceptions import BaseCaseManagementError
from claims_case_service.infrastructure.database.connection import get_db

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/utils/dropdown-data", tags=["Utils"])
async def get_dropdown_data(
    user: ActingUser = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    """Id/name pairs of every provider, hospital and client, for case forms."""
    try:
        return await dropdown_data(db)
    except BaseCaseManagementError as e:
        raise http_exception_for(e)
    except Exception as e:
        logger.error(f"Error building dropdown data: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")
