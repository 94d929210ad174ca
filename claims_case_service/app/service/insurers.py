"""
Polymorphic insurer references.

A case points at its insurer through (insurance_type, insurance_id). Instead of
branching on the type string at every call site, the pair is parsed once into
a tagged union (ClientRef | ProviderRef | HospitalRef) and resolved through the
directory lookup table.
"""
import logging
from typing import Annotated, Literal, Optional, Union

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from claims_case_service.app.models import DirectoryEntryDB, InsuranceType
from claims_case_service.app.service.exceptions import EntityNotFoundError, ValidationError
from claims_case_service.infrastructure.database import directory_store

logger = logging.getLogger(__name__)


class ClientRef(BaseModel):
    kind: Literal["clients"] = "clients"
    id: str


class ProviderRef(BaseModel):
    kind: Literal["providers"] = "providers"
    id: str


class HospitalRef(BaseModel):
    kind: Literal["hospitals"] = "hospitals"
    id: str


InsurerRef = Annotated[Union[ClientRef, ProviderRef, HospitalRef], Field(discriminator="kind")]
_insurer_ref_adapter = TypeAdapter(InsurerRef)

ENTITY_LABELS = {
    InsuranceType.CLIENTS: "Client",
    InsuranceType.PROVIDERS: "Provider",
    InsuranceType.HOSPITALS: "Hospital",
}


def insurer_ref(insurance_type: str, insurance_id: str) -> Union[ClientRef, ProviderRef, HospitalRef]:
    try:
        return _insurer_ref_adapter.validate_python({"kind": getattr(insurance_type, "value", insurance_type), "id": insurance_id})
    except PydanticValidationError:
        raise ValidationError(
            f"Invalid insuranceType '{insurance_type}'. Must be one of: clients, providers, hospitals",
            fields={"insuranceType": insurance_type},
        )


async def resolve_insurer(db: AsyncIOMotorDatabase, ref: Union[ClientRef, ProviderRef, HospitalRef]) -> DirectoryEntryDB:
    kind = InsuranceType(ref.kind)
    entry = await directory_store.get_entry_by_id(db, kind, ref.id)
    if entry is None:
        logger.warning(f"Insurer {ref.kind}/{ref.id} not found.")
        raise EntityNotFoundError(ENTITY_LABELS[kind], ref.id)
    return entry


async def resolve_service_location(db: AsyncIOMotorDatabase, hospital_id: str) -> DirectoryEntryDB:
    """The hospital a case is served at; a provider may also act as the location."""
    entry: Optional[DirectoryEntryDB] = await directory_store.get_entry_by_id(db, InsuranceType.HOSPITALS, hospital_id)
    if entry is None:
        entry = await directory_store.get_entry_by_id(db, InsuranceType.PROVIDERS, hospital_id)
        if entry is not None:
            logger.info(f"Service location {hospital_id} resolved to a provider.")
    if entry is None:
        raise EntityNotFoundError("Hospital", hospital_id)
    return entry
