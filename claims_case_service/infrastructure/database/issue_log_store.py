# Issue log: durable record of failures that need a human to look at them
import logging
from typing import Any, Dict, Optional
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from claims_case_service.app.models import IssueLogDB
from claims_case_service.app.observability import issues_logged_counter

logger = logging.getLogger(__name__)
ISSUE_LOG_COLLECTION = "issue_log"


async def log_issue(
    db: AsyncIOMotorDatabase,
    message: str,
    ip: Optional[str] = None,
    data: Optional[Dict[str, Any]] = None,
) -> Optional[IssueLogDB]:
    """
    Records an issue. A failing write is logged and reported as None so the
    caller's original error is the one that propagates.
    """
    issue = IssueLogDB(message=message, ip=ip, data=data or {})
    try:
        await db[ISSUE_LOG_COLLECTION].insert_one(issue.to_mongo())
    except PyMongoError as e:
        logger.error(f"Failed to write issue log entry '{message}': {e}", exc_info=True)
        return None
    issues_logged_counter.add(1)
    logger.warning(f"Issue logged: {message}", extra={"issue_id": issue.id, "issue_data": issue.data})
    return issue
