import datetime
import uuid
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import Field

from .base import MongoDocument, Money, utcnow
from .case_db import InsuranceType
from .user import UserRole


class FinanceStatus(str, Enum):
    PENDING = "pending"
    APPROVE = "approve"
    REJECT = "reject"


class FinanceDB(MongoDocument):
    """Approval-pending snapshot of a case. Deleted on approve or reject."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4().hex))
    case_id: str # Unique: one active finance per case
    ref_number: Optional[str] = None

    insurance_type: InsuranceType
    insurance_id: str
    insurance: Optional[str] = None
    hospital: Optional[str] = None
    hospital_id: Optional[str] = None
    patient_name: str

    claim_amount: Money = Decimal("0")
    case_fee: Money = Decimal("0") # Insurer's caseFee at transition time
    service_type: Optional[str] = None
    coverage: List[str] = Field(default_factory=list)
    region: Optional[str] = None
    country: Optional[str] = None

    issue_date: datetime.datetime = Field(default_factory=utcnow)
    due_date: Optional[datetime.datetime] = None

    remarks: Optional[str] = None
    remark_user: Optional[str] = None
    remark_user_role: Optional[UserRole] = None

    status: FinanceStatus = FinanceStatus.PENDING
    created_by_id: Optional[str] = None
    created_by: Optional[str] = None

    created_at: datetime.datetime = Field(default_factory=utcnow)
    updated_at: datetime.datetime = Field(default_factory=utcnow)
