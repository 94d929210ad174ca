# Operations for the Cases Collection (queries, guarded status writes, aggregations)
import logging
import datetime
from typing import Any, Dict, Iterable, List, Optional
from motor.motor_asyncio import AsyncIOMotorClientSession, AsyncIOMotorDatabase
from pymongo import ReturnDocument

from claims_case_service.app.models import CaseDB, CaseStatus, InsuranceType, to_bson_values, utcnow

logger = logging.getLogger(__name__)
CASES_COLLECTION = "cases"
# Directories whose ids may sit in a case's hospital_id
SERVICE_LOCATION_TYPES = (InsuranceType.HOSPITALS, InsuranceType.PROVIDERS)


def _value(enum_or_str: Any) -> Any:
    return getattr(enum_or_str, "value", enum_or_str)


async def insert_case(db: AsyncIOMotorDatabase, case: CaseDB, session: Optional[AsyncIOMotorClientSession] = None) -> CaseDB:
    await db[CASES_COLLECTION].insert_one(case.to_mongo(), session=session)
    logger.info(f"Case inserted. ID: {case.id}, ref: {case.ref_number}")
    return case


async def get_case_by_id(db: AsyncIOMotorDatabase, case_id: str, session: Optional[AsyncIOMotorClientSession] = None) -> Optional[CaseDB]:
    case_doc = await db[CASES_COLLECTION].find_one({"id": case_id}, session=session)
    return CaseDB(**case_doc) if case_doc else None


async def list_cases(
    db: AsyncIOMotorDatabase,
    start: datetime.datetime,
    end: datetime.datetime,
    status: Optional[CaseStatus] = None,
    created_by_id: Optional[str] = None,
) -> List[CaseDB]:
    """Cases created within [start, end]. No ordering is guaranteed."""
    query_filter: Dict[str, Any] = {"created_at": {"$gte": start, "$lte": end}}
    if status:
        query_filter["status"] = _value(status)
    if created_by_id:
        query_filter["created_by_id"] = created_by_id

    case_docs = await db[CASES_COLLECTION].find(query_filter).to_list(length=None)
    return [CaseDB(**doc) for doc in case_docs]


async def update_case_fields(
    db: AsyncIOMotorDatabase,
    case_id: str,
    fields: Dict[str, Any],
    session: Optional[AsyncIOMotorClientSession] = None,
) -> Optional[CaseDB]:
    """Plain partial update. Returns the updated case or None if it does not exist."""
    set_operations = to_bson_values(fields)
    set_operations["updated_at"] = utcnow()
    updated = await db[CASES_COLLECTION].find_one_and_update(
        {"id": case_id},
        {"$set": set_operations},
        return_document=ReturnDocument.AFTER,
        session=session,
    )
    if updated is None:
        logger.warning(f"Case ID: {case_id} not found for update.")
        return None
    logger.info(f"Case ID: {case_id} updated fields: {sorted(fields)}")
    return CaseDB(**updated)


async def transition_case_status(
    db: AsyncIOMotorDatabase,
    case_id: str,
    from_statuses: Iterable[CaseStatus],
    to_status: CaseStatus,
    extra_fields: Optional[Dict[str, Any]] = None,
    remark_entry: Optional[Dict[str, Any]] = None,
    session: Optional[AsyncIOMotorClientSession] = None,
) -> Optional[CaseDB]:
    """
    Moves a case to `to_status` only if it is currently in one of `from_statuses`.
    The precondition lives in the update filter, so two racing writers cannot
    both win. Returns None when the case is missing or the guard did not match.
    """
    set_operations = to_bson_values(extra_fields or {})
    set_operations["status"] = _value(to_status)
    set_operations["updated_at"] = utcnow()

    update_query: Dict[str, Any] = {"$set": set_operations}
    if remark_entry:
        update_query["$push"] = {"remark_history": remark_entry}

    updated = await db[CASES_COLLECTION].find_one_and_update(
        {"id": case_id, "status": {"$in": [_value(s) for s in from_statuses]}},
        update_query,
        return_document=ReturnDocument.AFTER,
        session=session,
    )
    if updated is None:
        logger.warning(f"Case ID: {case_id} not moved to '{_value(to_status)}': missing or no longer in {[_value(s) for s in from_statuses]}.")
        return None
    logger.info(f"Case ID: {case_id} moved to status '{_value(to_status)}'.")
    return CaseDB(**updated)


async def delete_case(db: AsyncIOMotorDatabase, case_id: str, protected_statuses: Iterable[CaseStatus] = ()) -> bool:
    query_filter: Dict[str, Any] = {"id": case_id}
    protected = [_value(s) for s in protected_statuses]
    if protected:
        query_filter["status"] = {"$nin": protected}
    result = await db[CASES_COLLECTION].delete_one(query_filter)
    return result.deleted_count == 1


async def active_case_counts_by_entity(
    db: AsyncIOMotorDatabase,
    entity_type: InsuranceType,
    entity_ids: List[str],
) -> Dict[str, int]:
    """
    Open-case count per entity id. Entities without open cases are absent from the map.

    A case references an entity either as its insurer (insurance_type + insurance_id)
    or as its service location (hospital_id, which holds a hospital or a provider id).
    A case that references the same entity both ways counts once.
    """
    entity_type = InsuranceType(entity_type)
    ids = [entity_id for entity_id in entity_ids if entity_id]
    if not ids:
        return {}

    references: List[Dict[str, Any]] = [{"insurance_type": entity_type.value, "insurance_id": {"$in": ids}}]
    if entity_type in SERVICE_LOCATION_TYPES:
        references.append({"hospital_id": {"$in": ids}})
    query = {"status": CaseStatus.OPEN.value, "$or": references}
    projection = {"_id": 0, "insurance_type": 1, "insurance_id": 1, "hospital_id": 1}

    wanted = set(ids)
    counts: Dict[str, int] = {}
    docs = await db[CASES_COLLECTION].find(query, projection).to_list(length=None)
    for doc in docs:
        matched = set()
        if doc.get("insurance_type") == entity_type.value and doc.get("insurance_id") in wanted:
            matched.add(doc["insurance_id"])
        if entity_type in SERVICE_LOCATION_TYPES and doc.get("hospital_id") in wanted:
            matched.add(doc["hospital_id"])
        for entity_id in matched:
            counts[entity_id] = counts.get(entity_id, 0) + 1
    return counts


async def aggregate_monthly_counts(
    db: AsyncIOMotorDatabase,
    status: Optional[CaseStatus],
    group_by: InsuranceType,
    start: datetime.datetime,
    end: datetime.datetime,
) -> List[Dict[str, Any]]:
    """
    Sparse per-(group, year, month) counts. Closed cases are bucketed by
    closed_at, everything else by created_at. Months with no cases are absent.
    """
    group_by = InsuranceType(group_by)
    date_field = "closed_at" if _value(status) == CaseStatus.CLOSED.value else "created_at"

    match: Dict[str, Any] = {date_field: {"$gte": start, "$lte": end}}
    if status:
        match["status"] = _value(status)

    if group_by == InsuranceType.HOSPITALS:
        match["hospital"] = {"$exists": True, "$ne": None}
        group_field = "$hospital"
    else:
        match["insurance_type"] = group_by.value
        match["insurance"] = {"$exists": True, "$ne": None}
        group_field = "$insurance"

    pipeline = [
        {"$match": match},
        {
            "$group": {
                "_id": {
                    "group_name": group_field,
                    "year": {"$year": f"${date_field}"},
                    "month": {"$month": f"${date_field}"},
                },
                "count": {"$sum": 1},
            }
        },
        {"$sort": {"_id.group_name": 1, "_id.year": 1, "_id.month": 1}},
    ]
    rows = await db[CASES_COLLECTION].aggregate(pipeline).to_list(length=None)
    return [
        {"group": row["_id"]["group_name"], "year": row["_id"]["year"], "month": row["_id"]["month"], "count": row["count"]}
        for row in rows
    ]


async def closed_case_counts_by_user(
    db: AsyncIOMotorDatabase,
    start: datetime.datetime,
    end: datetime.datetime,
) -> List[Dict[str, Any]]:
    pipeline = [
        {"$match": {"status": CaseStatus.CLOSED.value, "closed_at": {"$gte": start, "$lte": end}}},
        {
            "$group": {
                "_id": {"created_by_id": "$created_by_id", "created_by": "$created_by"},
                "count": {"$sum": 1},
            }
        },
        {"$project": {"_id": 0, "created_by_id": "$_id.created_by_id", "created_by": "$_id.created_by", "count": 1}},
        {"$sort": {"count": -1}},
    ]
    return await db[CASES_COLLECTION].aggregate(pipeline).to_list(length=None)
