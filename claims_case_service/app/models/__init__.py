from .base import ApiModel, MongoDocument, Money, to_bson_values, utcnow
from .user import ActingUser, UserRole
from .case_db import CaseDB, CaseStatus, InsuranceType, ProgressFlag, RemarkEntry
from .finance_db import FinanceDB, FinanceStatus
from .invoice_db import InvoiceDB, InvoiceStatus
from .directory_db import (
    ClientDB, ProviderDB, HospitalDB, DirectoryEntryDB,
    ClientListing, ProviderListing, HospitalListing,
    Contacts, ContactPerson, EntityStatus, HospitalRelation,
)
from .issue_log_db import IssueLogDB

__all__ = [
    "ApiModel",
    "MongoDocument",
    "Money",
    "utcnow",
    "to_bson_values",
    "ActingUser",
    "UserRole",
    "CaseDB",
    "CaseStatus",
    "InsuranceType",
    "ProgressFlag",
    "RemarkEntry",
    "FinanceDB",
    "FinanceStatus",
    "InvoiceDB",
    "InvoiceStatus",
    "ClientDB",
    "ProviderDB",
    "HospitalDB",
    "DirectoryEntryDB",
    "ClientListing",
    "ProviderListing",
    "HospitalListing",
    "Contacts",
    "ContactPerson",
    "EntityStatus",
    "HospitalRelation",
    "IssueLogDB",
]
