# Shared fixtures: acting users and document factories
import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from claims_case_service.app.models import (
    ActingUser, CaseDB, CaseStatus, ClientDB, FinanceDB, HospitalDB, InsuranceType, UserRole,
)


@pytest.fixture
def admin_user() -> ActingUser:
    return ActingUser(id="admin-1", name="Ada Admin", role=UserRole.ADMIN)


@pytest.fixture
def employee_user() -> ActingUser:
    return ActingUser(id="emp-1", name="Eve Employee", role=UserRole.EMPLOYEE)


@pytest.fixture
def client_entry() -> ClientDB:
    return ClientDB(id="client-1", name="Acme Insurance", region="North", country="PT", case_fee=Decimal("150.00"), coverage=["outpatient"])


@pytest.fixture
def hospital_entry() -> HospitalDB:
    return HospitalDB(id="hosp-1", name="General Hospital", region="South", country="PT")


@pytest.fixture
def case_factory():
    def _factory(**overrides) -> CaseDB:
        fields = {
            "id": "case-1",
            "ref_number": "CMA24-0301",
            "patient_name": "Alice Patient",
            "insurance_type": InsuranceType.CLIENTS,
            "insurance_id": "client-1",
            "insurance": "Acme Insurance",
            "hospital": "General Hospital",
            "hospital_id": "hosp-1",
            "claim_amount": Decimal("1200.50"),
            "status": CaseStatus.OPEN,
            "created_by_id": "emp-1",
            "created_by": "Eve Employee",
        }
        fields.update(overrides)
        return CaseDB(**fields)
    return _factory


@pytest.fixture
def finance_factory():
    def _factory(**overrides) -> FinanceDB:
        fields = {
            "id": "fin-1",
            "case_id": "case-1",
            "ref_number": "CMA24-0301",
            "insurance_type": InsuranceType.CLIENTS,
            "insurance_id": "client-1",
            "insurance": "Acme Insurance",
            "hospital": "General Hospital",
            "hospital_id": "hosp-1",
            "patient_name": "Alice Patient",
            "claim_amount": Decimal("1200.50"),
            "case_fee": Decimal("150.00"),
            "issue_date": datetime.datetime(2024, 3, 10, tzinfo=datetime.UTC),
            "due_date": datetime.datetime(2024, 4, 9, tzinfo=datetime.UTC),
        }
        fields.update(overrides)
        return FinanceDB(**fields)
    return _factory


@pytest.fixture
def mock_collection():
    coll = MagicMock(name="mock_collection")
    coll.find_one = AsyncMock(return_value=None)
    coll.insert_one = AsyncMock()
    coll.find_one_and_update = AsyncMock(return_value=None)
    coll.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))
    coll.create_indexes = AsyncMock(return_value=[])
    coll.find.return_value.to_list = AsyncMock(return_value=[])
    coll.aggregate.return_value.to_list = AsyncMock(return_value=[])
    return coll


@pytest.fixture
def mock_db(mock_collection):
    db = MagicMock(name="mock_db")
    db.__getitem__.return_value = mock_collection
    db.command = AsyncMock(return_value={"ok": 1})
    return db
