import datetime
import uuid
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import Field

from .base import ApiModel, MongoDocument, Money, utcnow
from .user import UserRole


class CaseStatus(str, Enum):
    OPEN = "open"
    IN_REVIEW = "in-review"
    CLOSED = "closed" # Terminal


class InsuranceType(str, Enum):
    CLIENTS = "clients"
    PROVIDERS = "providers"
    HOSPITALS = "hospitals"


class ProgressFlag(str, Enum): # invoiceStatus / mrStatus, independent of CaseStatus
    PENDING = "pending"
    COMPLETED = "completed"


class RemarkEntry(ApiModel):
    remark: str
    user: Optional[str] = None
    role: Optional[UserRole] = None
    action: str # e.g. "submit-review", "reject"
    at: datetime.datetime = Field(default_factory=utcnow)


class CaseDB(MongoDocument):
    id: str = Field(default_factory=lambda: str(uuid.uuid4().hex))
    ref_number: Optional[str] = None # Generated, e.g. CMA25-0701
    insurance_reference: Optional[str] = None # External reference, unique when present

    patient_name: str

    # Insurer: polymorphic reference, resolved through insurance_type
    insurance_type: InsuranceType
    insurance_id: str
    insurance: Optional[str] = None # Denormalized insurer name

    # Service location
    hospital: str
    hospital_id: str

    claim_amount: Money = Decimal("0")
    service_type: Optional[str] = None
    coverage: List[str] = Field(default_factory=list)
    assistance_date: Optional[datetime.datetime] = None
    region: Optional[str] = None
    country: Optional[str] = None
    address: Optional[str] = None

    status: CaseStatus = CaseStatus.OPEN
    invoice_status: ProgressFlag = ProgressFlag.PENDING
    mr_status: ProgressFlag = ProgressFlag.PENDING

    # Latest remark only; the full trail is in remark_history
    remarks: Optional[str] = None
    remark_user: Optional[str] = None
    remark_user_role: Optional[UserRole] = None
    remark_history: List[RemarkEntry] = Field(default_factory=list)

    created_by_id: Optional[str] = None
    created_by: Optional[str] = None
    approved_by: Optional[str] = None
    rejected_by: Optional[str] = None

    created_at: datetime.datetime = Field(default_factory=utcnow)
    updated_at: datetime.datetime = Field(default_factory=utcnow)
    closed_at: Optional[datetime.datetime] = None
