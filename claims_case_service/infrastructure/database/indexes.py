# Collection indexes, created at startup (idempotent)
import logging
from typing import Dict, List, Tuple
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, IndexModel
from pymongo.errors import PyMongoError

from .case_store import CASES_COLLECTION
from .directory_store import DIRECTORY_COLLECTIONS
from .finance_store import FINANCES_COLLECTION
from .invoice_store import INVOICES_COLLECTION
from .issue_log_store import ISSUE_LOG_COLLECTION

logger = logging.getLogger(__name__)


def index_plan() -> Dict[str, List[IndexModel]]:
    plan: Dict[str, List[IndexModel]] = {
        CASES_COLLECTION: [
            IndexModel([("id", ASCENDING)], unique=True),
            IndexModel([("ref_number", ASCENDING)], unique=True, partialFilterExpression={"ref_number": {"$type": "string"}}),
            IndexModel(
                [("insurance_reference", ASCENDING)],
                unique=True,
                partialFilterExpression={"insurance_reference": {"$type": "string"}},
            ),
            IndexModel([("status", ASCENDING), ("created_at", ASCENDING)]),
            IndexModel([("status", ASCENDING), ("closed_at", ASCENDING)]),
            IndexModel([("insurance_type", ASCENDING), ("insurance_id", ASCENDING)]),
            IndexModel([("hospital_id", ASCENDING)]),
        ],
        FINANCES_COLLECTION: [
            IndexModel([("id", ASCENDING)], unique=True),
            IndexModel([("case_id", ASCENDING)], unique=True), # One active finance entry per case
            IndexModel([("issue_date", ASCENDING)]),
        ],
        INVOICES_COLLECTION: [
            IndexModel([("id", ASCENDING)], unique=True),
            IndexModel([("finance_id", ASCENDING)], unique=True),
            IndexModel([("case_id", ASCENDING)], unique=True),
            IndexModel([("issue_date", ASCENDING)]),
        ],
        ISSUE_LOG_COLLECTION: [
            IndexModel([("created_at", ASCENDING)]),
        ],
    }
    for collection, _model in DIRECTORY_COLLECTIONS.values():
        plan[collection] = [
            IndexModel([("id", ASCENDING)], unique=True),
            IndexModel([("name", ASCENDING)], unique=True),
        ]
    return plan


async def ensure_indexes(db: AsyncIOMotorDatabase) -> List[Tuple[str, str]]:
    """Creates every planned index; a failing index is logged and the rest still proceed."""
    created: List[Tuple[str, str]] = []
    for collection, indexes in index_plan().items():
        try:
            names = await db[collection].create_indexes(indexes)
        except PyMongoError as e:
            logger.error(f"Failed to create indexes on {collection}: {e}", exc_info=True)
            continue
        created.extend((collection, name) for name in names)
        logger.info(f"Indexes ensured on {collection}: {names}")
    return created
