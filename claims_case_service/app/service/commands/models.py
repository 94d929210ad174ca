# Pydantic models for Commands and request payloads
import datetime
import uuid
from typing import Any, Dict, List, Optional

from pydantic import Field

from claims_case_service.app.models import (
    ActingUser, ApiModel, Contacts, EntityStatus, FinanceStatus, HospitalRelation,
    InsuranceType, InvoiceStatus, Money, ProgressFlag,
)


class BaseCommand(ApiModel):
    command_id: str = Field(default_factory=lambda: str(uuid.uuid4()))


# --- Case payloads ---

class CaseFields(ApiModel):
    """Caller-writable case fields. Workflow status and audit fields are never accepted here."""
    insurance_reference: Optional[str] = None
    claim_amount: Optional[Money] = None
    service_type: Optional[str] = None
    coverage: Optional[List[str]] = None
    assistance_date: Optional[datetime.datetime] = None
    region: Optional[str] = None
    country: Optional[str] = None
    address: Optional[str] = None
    remarks: Optional[str] = None
    invoice_status: Optional[ProgressFlag] = None
    mr_status: Optional[ProgressFlag] = None


class CreateCaseRequest(CaseFields):
    patient_name: str = Field(min_length=1)
    insurance_type: InsuranceType
    insurance_id: str = Field(min_length=1)
    hospital: str = Field(min_length=1)
    hospital_id: str = Field(min_length=1)


class UpdateCaseRequest(CaseFields):
    patient_name: Optional[str] = Field(default=None, min_length=1)
    insurance_type: Optional[InsuranceType] = None
    insurance_id: Optional[str] = None
    hospital: Optional[str] = None
    hospital_id: Optional[str] = None


class CreateCaseCommand(BaseCommand):
    data: CreateCaseRequest
    acting_user: ActingUser
    source_ip: Optional[str] = None


class UpdateCaseCommand(BaseCommand):
    case_id: str
    changes: UpdateCaseRequest
    acting_user: ActingUser


# --- Lifecycle commands ---

class CloseCaseCommand(BaseCommand):
    """open -> in-review; spawns the finance entry."""
    case_id: str
    remark: Optional[str] = None
    acting_user: ActingUser


class UpdateFinanceStatusCommand(BaseCommand):
    finance_id: str
    new_status: FinanceStatus # approve | reject
    remark: Optional[str] = None
    acting_user: ActingUser
    source_ip: Optional[str] = None


class UpdateInvoiceStatusCommand(BaseCommand):
    invoice_id: str
    new_status: InvoiceStatus
    acting_user: ActingUser


# --- Directory payloads ---

class DirectoryEntryFields(ApiModel):
    location: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None
    address: Optional[str] = None
    contacts: Optional[Contacts] = None
    case_fee: Optional[Money] = None
    service_type: Optional[str] = None
    coverage: Optional[List[str]] = None
    status: Optional[EntityStatus] = None
    # Hospitals only; ignored for clients and providers
    bank_details: Optional[List[Dict[str, Any]]] = None
    relation: Optional[HospitalRelation] = None
    claim_amount: Optional[Money] = None


class CreateDirectoryEntryRequest(DirectoryEntryFields):
    name: str = Field(min_length=1)


class UpdateDirectoryEntryRequest(DirectoryEntryFields):
    name: Optional[str] = Field(default=None, min_length=1)
