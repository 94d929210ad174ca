# Mapping of service exceptions to HTTP responses
import logging

from fastapi import HTTPException

from claims_case_service.app.service.exceptions import (
    BaseCaseManagementError, IntegrityError, InvalidCaseStateError, UpstreamError,
)

logger = logging.getLogger(__name__)


def http_exception_for(exc: BaseCaseManagementError, invalid_state_status: int = 409) -> HTTPException:
    """
    Builds the HTTPException for a service error. `invalid_state_status` lets a
    route answer disallowed transitions with a code other than 409.
    """
    if isinstance(exc, IntegrityError):
        # Details stay in the logs and the issue log
        logger.error(f"Integrity error surfaced to caller: {exc}")
        return HTTPException(status_code=exc.status_code, detail=exc.public_message)
    if isinstance(exc, InvalidCaseStateError):
        logger.warning(f"Rejected transition: {exc}")
        return HTTPException(status_code=invalid_state_status, detail=str(exc))
    if isinstance(exc, UpstreamError):
        return HTTPException(status_code=exc.status_code, detail="Service temporarily unavailable")
    if exc.status_code >= 500:
        logger.error(f"Service error: {exc}", exc_info=True)
        return HTTPException(status_code=500, detail="Internal server error")
    logger.warning(f"{type(exc).__name__}: {exc}")
    return HTTPException(status_code=exc.status_code, detail=str(exc))
