import datetime
import uuid
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from .base import ApiModel, MongoDocument, Money, utcnow


class EntityStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class HospitalRelation(str, Enum):
    CASH = "cash"
    CASHLESS = "cashless"


class ContactPerson(ApiModel):
    name: Optional[str] = None
    email: Optional[str] = None
    designation: Optional[str] = None
    phone: Optional[str] = None


class Contacts(ApiModel):
    primary: Optional[ContactPerson] = None
    secondary: Optional[ContactPerson] = None


class DirectoryEntryDB(MongoDocument):
    """Fields shared by clients, providers and hospitals."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4().hex))
    name: str
    location: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None
    address: Optional[str] = None
    contacts: Optional[Contacts] = None

    case_fee: Optional[Money] = None # Fee schedule snapshotted into finance entries
    service_type: Optional[str] = None
    coverage: List[str] = Field(default_factory=list)

    status: EntityStatus = EntityStatus.ACTIVE
    created_at: datetime.datetime = Field(default_factory=utcnow)
    updated_at: datetime.datetime = Field(default_factory=utcnow)


class ClientDB(DirectoryEntryDB):
    pass


class ProviderDB(DirectoryEntryDB):
    pass


class HospitalDB(DirectoryEntryDB):
    bank_details: List[Dict[str, Any]] = Field(default_factory=list)
    relation: HospitalRelation = HospitalRelation.CASH
    claim_amount: Optional[Money] = None


# Directory listings carry the number of open cases referencing each entry
class ClientListing(ClientDB):
    active_cases: int = 0


class ProviderListing(ProviderDB):
    active_cases: int = 0


class HospitalListing(HospitalDB):
    active_cases: int = 0
