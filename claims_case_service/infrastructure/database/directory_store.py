# Operations for the Directory Collections (clients, providers, hospitals)
import logging
from typing import Any, Dict, List, Optional, Tuple, Type
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from claims_case_service.app.models import (
    ClientDB, DirectoryEntryDB, HospitalDB, InsuranceType, ProviderDB, to_bson_values, utcnow,
)

logger = logging.getLogger(__name__)

# One collection and one document model per directory kind
DIRECTORY_COLLECTIONS: Dict[InsuranceType, Tuple[str, Type[DirectoryEntryDB]]] = {
    InsuranceType.CLIENTS: ("clients", ClientDB),
    InsuranceType.PROVIDERS: ("providers", ProviderDB),
    InsuranceType.HOSPITALS: ("hospitals", HospitalDB),
}


def collection_for(kind: InsuranceType) -> Tuple[str, Type[DirectoryEntryDB]]:
    return DIRECTORY_COLLECTIONS[InsuranceType(kind)]


async def insert_entry(db: AsyncIOMotorDatabase, kind: InsuranceType, entry: DirectoryEntryDB) -> DirectoryEntryDB:
    collection, _ = collection_for(kind)
    await db[collection].insert_one(entry.to_mongo())
    logger.info(f"Directory entry inserted into '{collection}'. ID: {entry.id}, name: {entry.name}")
    return entry


async def get_entry_by_id(db: AsyncIOMotorDatabase, kind: InsuranceType, entry_id: str) -> Optional[DirectoryEntryDB]:
    collection, model = collection_for(kind)
    doc = await db[collection].find_one({"id": entry_id})
    return model(**doc) if doc else None


async def find_entry_by_name(db: AsyncIOMotorDatabase, kind: InsuranceType, name: str) -> Optional[DirectoryEntryDB]:
    # Exact, case-sensitive match
    collection, model = collection_for(kind)
    doc = await db[collection].find_one({"name": name})
    return model(**doc) if doc else None


async def list_entries(db: AsyncIOMotorDatabase, kind: InsuranceType) -> List[DirectoryEntryDB]:
    collection, model = collection_for(kind)
    docs = await db[collection].find().to_list(length=None)
    return [model(**doc) for doc in docs]


async def list_entry_names(db: AsyncIOMotorDatabase, kind: InsuranceType) -> List[Dict[str, Any]]:
    collection, _ = collection_for(kind)
    docs = await db[collection].find({}, {"_id": 0, "id": 1, "name": 1}).to_list(length=None)
    return [{"id": doc["id"], "name": doc["name"]} for doc in docs]


async def update_entry(db: AsyncIOMotorDatabase, kind: InsuranceType, entry_id: str, fields: Dict[str, Any]) -> Optional[DirectoryEntryDB]:
    collection, model = collection_for(kind)
    set_operations = to_bson_values(fields)
    set_operations["updated_at"] = utcnow()
    updated = await db[collection].find_one_and_update(
        {"id": entry_id},
        {"$set": set_operations},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        logger.warning(f"Directory entry {entry_id} not found in '{collection}' for update.")
        return None
    return model(**updated)


async def delete_entry(db: AsyncIOMotorDatabase, kind: InsuranceType, entry_id: str) -> bool:
    collection, _ = collection_for(kind)
    result = await db[collection].delete_one({"id": entry_id})
    if result.deleted_count:
        logger.info(f"Directory entry {entry_id} deleted from '{collection}'.")
    return result.deleted_count == 1
