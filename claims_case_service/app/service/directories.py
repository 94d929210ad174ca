"""
Clients, providers and hospitals.

Plain CRUD plus two rules: names are unique per directory (checked before the
insert, backed by a unique index), and an entry with open cases cannot be deleted.
"""
import logging
from typing import Any, Dict, List, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from claims_case_service.app.models import DirectoryEntryDB, InsuranceType
from claims_case_service.app.service.commands.models import CreateDirectoryEntryRequest, UpdateDirectoryEntryRequest
from claims_case_service.app.service.exceptions import (
    ActiveCasesConflictError, DuplicateKeyConflictError, EntityNotFoundError,
)
from claims_case_service.app.service.insurers import ENTITY_LABELS
from claims_case_service.infrastructure.database import case_store, directory_store
from claims_case_service.infrastructure.database.errors import translate_storage_errors

logger = logging.getLogger(__name__)


async def list_entries_with_active_cases(db: AsyncIOMotorDatabase, kind: InsuranceType) -> List[Tuple[DirectoryEntryDB, int]]:
    with translate_storage_errors(f"list {kind}"):
        entries = await directory_store.list_entries(db, kind)
        counts = await case_store.active_case_counts_by_entity(db, kind, [entry.id for entry in entries])
    return [(entry, counts.get(entry.id, 0)) for entry in entries]


async def get_entry(db: AsyncIOMotorDatabase, kind: InsuranceType, entry_id: str) -> DirectoryEntryDB:
    with translate_storage_errors(f"get {kind}"):
        entry = await directory_store.get_entry_by_id(db, kind, entry_id)
    if entry is None:
        raise EntityNotFoundError(ENTITY_LABELS[InsuranceType(kind)], entry_id)
    return entry


async def create_entry(db: AsyncIOMotorDatabase, kind: InsuranceType, payload: CreateDirectoryEntryRequest) -> DirectoryEntryDB:
    _, model = directory_store.collection_for(kind)
    with translate_storage_errors(f"create {kind}"):
        # Check-then-insert can race; the unique index on name settles it.
        if await directory_store.find_entry_by_name(db, kind, payload.name):
            raise DuplicateKeyConflictError("name", payload.name)
        entry = model(**payload.model_dump(exclude_none=True))
        await directory_store.insert_entry(db, kind, entry)
    return entry


async def update_entry(
    db: AsyncIOMotorDatabase,
    kind: InsuranceType,
    entry_id: str,
    payload: UpdateDirectoryEntryRequest,
) -> DirectoryEntryDB:
    _, model = directory_store.collection_for(kind)
    changes: Dict[str, Any] = payload.model_dump(exclude_unset=True)
    changes = {field: value for field, value in changes.items() if field in model.model_fields}
    with translate_storage_errors(f"update {kind}"):
        if "name" in changes:
            existing = await directory_store.find_entry_by_name(db, kind, changes["name"])
            if existing and existing.id != entry_id:
                raise DuplicateKeyConflictError("name", changes["name"])
        updated = await directory_store.update_entry(db, kind, entry_id, changes)
    if updated is None:
        raise EntityNotFoundError(ENTITY_LABELS[InsuranceType(kind)], entry_id)
    return updated


async def delete_entry(db: AsyncIOMotorDatabase, kind: InsuranceType, entry_id: str) -> DirectoryEntryDB:
    """Refused while any case referencing the entry is still open; in-review and closed cases do not block."""
    entry = await get_entry(db, kind, entry_id)
    with translate_storage_errors(f"delete {kind}"):
        counts = await case_store.active_case_counts_by_entity(db, kind, [entry_id])
        active = counts.get(entry_id, 0)
        if active > 0:
            logger.warning(f"Refusing to delete {kind} {entry_id}: {active} active case(s).")
            raise ActiveCasesConflictError(ENTITY_LABELS[InsuranceType(kind)].lower(), entry_id, active)
        deleted = await directory_store.delete_entry(db, kind, entry_id)
    if not deleted:
        raise EntityNotFoundError(ENTITY_LABELS[InsuranceType(kind)], entry_id)
    return entry


async def dropdown_data(db: AsyncIOMotorDatabase) -> Dict[str, List[Dict[str, Any]]]:
    with translate_storage_errors("dropdown data"):
        return {
            "providers": await directory_store.list_entry_names(db, InsuranceType.PROVIDERS),
            "hospitals": await directory_store.list_entry_names(db, InsuranceType.HOSPITALS),
            "clients": await directory_store.list_entry_names(db, InsuranceType.CLIENTS),
        }
