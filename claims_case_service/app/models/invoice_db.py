import datetime
import uuid
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import Field

from .base import MongoDocument, Money, utcnow
from .case_db import InsuranceType


class InvoiceStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    UNPAID = "unpaid"


class InvoiceDB(MongoDocument):
    """Billable record created from an approved finance entry. Only status fields change afterwards."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4().hex))
    finance_id: str
    case_id: str
    ref_number: Optional[str] = None

    insurance_type: InsuranceType
    insurance_id: str
    insurance: Optional[str] = None
    hospital: Optional[str] = None
    patient_name: str

    claim_amount: Money = Decimal("0")
    case_fee: Money = Decimal("0")
    service_type: Optional[str] = None
    coverage: List[str] = Field(default_factory=list)
    region: Optional[str] = None
    country: Optional[str] = None
    remarks: Optional[str] = None

    issue_date: Optional[datetime.datetime] = None
    due_date: Optional[datetime.datetime] = None

    status: InvoiceStatus = InvoiceStatus.PENDING
    paid_date: Optional[datetime.datetime] = None # Only while status == paid
    approved_by: Optional[str] = None
    updated_by_user: Optional[str] = None

    created_at: datetime.datetime = Field(default_factory=utcnow)
    updated_at: datetime.datetime = Field(default_factory=utcnow)
