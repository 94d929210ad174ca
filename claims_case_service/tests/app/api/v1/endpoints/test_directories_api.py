# Unit Tests for the directory routers and dropdown data
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from claims_case_service.app.models import ClientDB, HospitalDB, InsuranceType, ProviderDB
from claims_case_service.app.service.exceptions import ActiveCasesConflictError, DuplicateKeyConflictError

SERVICE = "claims_case_service.app.api.v1.endpoints.directories.directory_service"


@pytest.mark.parametrize("path, kind, model", [
    ("/api/clients", InsuranceType.CLIENTS, ClientDB),
    ("/api/providers", InsuranceType.PROVIDERS, ProviderDB),
    ("/api/hospitals", InsuranceType.HOSPITALS, HospitalDB),
])
def test_listing_includes_active_cases(client_fixture: TestClient, path, kind, model):
    rows = [(model(id="e-1", name="Entry One", case_fee="25.50"), 2)]
    with patch(f"{SERVICE}.list_entries_with_active_cases", new_callable=AsyncMock, return_value=rows) as mock_list:
        response = client_fixture.get(path)

    assert response.status_code == 200
    body = response.json()[0]
    assert body["name"] == "Entry One"
    assert body["activeCases"] == 2
    assert body["caseFee"] == 25.5
    assert mock_list.await_args.args[1] == kind


def test_hospital_listing_keeps_hospital_fields(client_fixture: TestClient):
    rows = [(HospitalDB(id="h-1", name="St. Mary", relation="cashless"), 0)]
    with patch(f"{SERVICE}.list_entries_with_active_cases", new_callable=AsyncMock, return_value=rows):
        response = client_fixture.get("/api/hospitals")

    assert response.status_code == 200
    assert response.json()[0]["relation"] == "cashless"
    assert response.json()[0]["activeCases"] == 0
    assert response.json()[0]["bankDetails"] == []


def test_get_entry_returns_typed_document(client_fixture: TestClient, client_entry):
    with patch(f"{SERVICE}.get_entry", new_callable=AsyncMock, return_value=client_entry):
        response = client_fixture.get("/api/clients/client-1")

    assert response.status_code == 200
    assert response.json()["caseFee"] == 150.0
    assert "activeCases" not in response.json()


def test_create_hospital_as_admin(admin_client: TestClient):
    created = HospitalDB(id="h-1", name="St. Mary", relation="cashless", case_fee="80.00")
    with patch(f"{SERVICE}.create_entry", new_callable=AsyncMock, return_value=created) as mock_create:
        response = admin_client.post("/api/hospitals", json={"name": "St. Mary", "relation": "cashless", "caseFee": 80})

    assert response.status_code == 201
    assert response.json()["caseFee"] == 80.0
    assert response.json()["relation"] == "cashless"
    assert mock_create.await_args.args[2].name == "St. Mary"


def test_create_requires_admin(client_fixture: TestClient):
    response = client_fixture.post("/api/clients", json={"name": "Acme"})
    assert response.status_code == 403


def test_create_duplicate_name_is_409(admin_client: TestClient):
    with patch(f"{SERVICE}.create_entry", new_callable=AsyncMock, side_effect=DuplicateKeyConflictError("name", "Acme")):
        response = admin_client.post("/api/clients", json={"name": "Acme"})

    assert response.status_code == 409
    assert response.json()["detail"] == 'Name "Acme" is already in use.'


def test_delete_with_active_cases_is_409(admin_client: TestClient):
    with patch(f"{SERVICE}.delete_entry", new_callable=AsyncMock,
               side_effect=ActiveCasesConflictError("provider", "p-1", 4)):
        response = admin_client.delete("/api/providers/p-1")

    assert response.status_code == 409
    assert "4 active case(s)" in response.json()["detail"]


def test_delete_without_active_cases(admin_client: TestClient, client_entry):
    with patch(f"{SERVICE}.delete_entry", new_callable=AsyncMock, return_value=client_entry):
        response = admin_client.delete("/api/clients/client-1")

    assert response.status_code == 200
    assert response.json()["message"] == "Client deleted successfully"


def test_update_entry(admin_client: TestClient, client_entry):
    with patch(f"{SERVICE}.update_entry", new_callable=AsyncMock, return_value=client_entry) as mock_update:
        response = admin_client.put("/api/clients/client-1", json={"region": "West"})

    assert response.status_code == 200
    assert mock_update.await_args.args[2] == "client-1"
    assert mock_update.await_args.args[3].region == "West"


def test_dropdown_data(client_fixture: TestClient):
    data = {"providers": [], "hospitals": [{"id": "h-1", "name": "General"}], "clients": []}
    with patch("claims_case_service.app.api.v1.endpoints.utils.dropdown_data", new_callable=AsyncMock, return_value=data):
        response = client_fixture.get("/api/utils/dropdown-data")

    assert response.status_code == 200
    assert response.json() == data
