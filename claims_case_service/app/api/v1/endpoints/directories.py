# API Routers for the entity directories (clients, providers, hospitals)
from fastapi import APIRouter, Body, Depends, HTTPException
import logging
from typing import Dict, List, Tuple, Type
from motor.motor_asyncio import AsyncIOMotorDatabase

from claims_case_service.app.api.errors import http_exception_for
from claims_case_service.app.dependencies.auth import get_current_user, require_admin
from claims_case_service.app.models import (
    ActingUser, ClientDB, ClientListing, DirectoryEntryDB, HospitalDB, HospitalListing,
    InsuranceType, ProviderDB, ProviderListing,
)
from claims_case_service.app.service import directories as directory_service
from claims_case_service.app.service.commands.models import CreateDirectoryEntryRequest, UpdateDirectoryEntryRequest
from claims_case_service.app.service.exceptions import BaseCaseManagementError
from claims_case_service.infrastructure.database.connection import get_db

logger = logging.getLogger(__name__)

# Response schema per directory: (entry, entry with its open-case count)
DIRECTORY_SCHEMAS: Dict[InsuranceType, Tuple[Type[DirectoryEntryDB], Type[DirectoryEntryDB]]] = {
    InsuranceType.CLIENTS: (ClientDB, ClientListing),
    InsuranceType.PROVIDERS: (ProviderDB, ProviderListing),
    InsuranceType.HOSPITALS: (HospitalDB, HospitalListing),
}


def build_directory_router(kind: InsuranceType) -> APIRouter:
    """Same CRUD surface for every directory; only the collection and document model differ."""
    kind = InsuranceType(kind)
    entry_model, listing_model = DIRECTORY_SCHEMAS[kind]
    path = f"/{kind.value}"
    tag = kind.value.capitalize()
    router = APIRouter(prefix=path, tags=[tag])

    @router.get("", response_model=List[listing_model])
    async def list_entries(
        user: ActingUser = Depends(get_current_user),
        db: AsyncIOMotorDatabase = Depends(get_db),
    ):
        try:
            rows = await directory_service.list_entries_with_active_cases(db, kind)
        except BaseCaseManagementError as e:
            raise http_exception_for(e)
        except Exception as e:
            logger.error(f"Error listing {kind.value}: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail="Internal server error")
        return [listing_model(**entry.model_dump(), active_cases=active) for entry, active in rows]

    @router.get("/{entry_id}", response_model=entry_model)
    async def get_entry(
        entry_id: str,
        user: ActingUser = Depends(get_current_user),
        db: AsyncIOMotorDatabase = Depends(get_db),
    ):
        try:
            return await directory_service.get_entry(db, kind, entry_id)
        except BaseCaseManagementError as e:
            raise http_exception_for(e)
        except Exception as e:
            logger.error(f"Error retrieving {kind.value} {entry_id}: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail="Internal server error")

    @router.post("", status_code=201, response_model=entry_model)
    async def create_entry(
        request_data: CreateDirectoryEntryRequest = Body(...),
        admin: ActingUser = Depends(require_admin),
        db: AsyncIOMotorDatabase = Depends(get_db),
    ):
        try:
            return await directory_service.create_entry(db, kind, request_data)
        except BaseCaseManagementError as e:
            raise http_exception_for(e)
        except Exception as e:
            logger.error(f"Error creating {kind.value} entry: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail="Internal server error")

    @router.put("/{entry_id}", response_model=entry_model)
    async def update_entry(
        entry_id: str,
        request_data: UpdateDirectoryEntryRequest = Body(...),
        admin: ActingUser = Depends(require_admin),
        db: AsyncIOMotorDatabase = Depends(get_db),
    ):
        try:
            return await directory_service.update_entry(db, kind, entry_id, request_data)
        except BaseCaseManagementError as e:
            raise http_exception_for(e)
        except Exception as e:
            logger.error(f"Error updating {kind.value} {entry_id}: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail="Internal server error")

    @router.delete("/{entry_id}")
    async def delete_entry(
        entry_id: str,
        admin: ActingUser = Depends(require_admin),
        db: AsyncIOMotorDatabase = Depends(get_db),
    ):
        try:
            await directory_service.delete_entry(db, kind, entry_id)
        except BaseCaseManagementError as e:
            raise http_exception_for(e)
        except Exception as e:
            logger.error(f"Error deleting {kind.value} {entry_id}: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail="Internal server error")
        return {"message": f"{tag[:-1]} deleted successfully", "id": entry_id}

    return router


clients_router = build_directory_router(InsuranceType.CLIENTS)
providers_router = build_directory_router(InsuranceType.PROVIDERS)
hospitals_router = build_directory_router(InsuranceType.HOSPITALS)
