# Unit Tests for directory entry rules
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from claims_case_service.app.models import ClientDB, InsuranceType
from claims_case_service.app.service import directories
from claims_case_service.app.service.commands.models import CreateDirectoryEntryRequest, UpdateDirectoryEntryRequest
from claims_case_service.app.service.exceptions import (
    ActiveCasesConflictError, DuplicateKeyConflictError, EntityNotFoundError,
)

STORE = "claims_case_service.app.service.directories.directory_store"
CASE_STORE = "claims_case_service.app.service.directories.case_store"


@pytest.mark.asyncio
async def test_list_entries_attaches_active_case_counts(mock_db, client_entry):
    other = ClientDB(id="client-2", name="Globex")
    with patch(f"{STORE}.list_entries", new_callable=AsyncMock, return_value=[client_entry, other]), \
         patch(f"{CASE_STORE}.active_case_counts_by_entity", new_callable=AsyncMock, return_value={"client-1": 3}) as mock_counts:
        rows = await directories.list_entries_with_active_cases(mock_db, InsuranceType.CLIENTS)

    assert [(entry.id, count) for entry, count in rows] == [("client-1", 3), ("client-2", 0)]
    mock_counts.assert_awaited_once_with(mock_db, InsuranceType.CLIENTS, ["client-1", "client-2"])


@pytest.mark.asyncio
async def test_create_entry_rejects_duplicate_name(mock_db, client_entry):
    payload = CreateDirectoryEntryRequest(name="Acme Insurance")
    with patch(f"{STORE}.find_entry_by_name", new_callable=AsyncMock, return_value=client_entry), \
         patch(f"{STORE}.insert_entry", new_callable=AsyncMock) as mock_insert:
        with pytest.raises(DuplicateKeyConflictError, match='Name "Acme Insurance" is already in use.'):
            await directories.create_entry(mock_db, InsuranceType.CLIENTS, payload)

    mock_insert.assert_not_awaited()


@pytest.mark.asyncio
async def test_create_entry_builds_model_for_kind(mock_db):
    payload = CreateDirectoryEntryRequest(name="St. Mary", caseFee=Decimal("80"), relation="cashless")
    with patch(f"{STORE}.find_entry_by_name", new_callable=AsyncMock, return_value=None), \
         patch(f"{STORE}.insert_entry", new_callable=AsyncMock) as mock_insert:
        entry = await directories.create_entry(mock_db, InsuranceType.HOSPITALS, payload)

    assert entry.name == "St. Mary"
    assert entry.case_fee == Decimal("80")
    assert entry.relation == "cashless"
    mock_insert.assert_awaited_once_with(mock_db, InsuranceType.HOSPITALS, entry)


@pytest.mark.asyncio
async def test_update_entry_drops_fields_the_kind_does_not_have(mock_db, client_entry):
    payload = UpdateDirectoryEntryRequest(region="West", relation="cash")
    with patch(f"{STORE}.update_entry", new_callable=AsyncMock, return_value=client_entry) as mock_update:
        await directories.update_entry(mock_db, InsuranceType.CLIENTS, "client-1", payload)

    assert mock_update.await_args.args[3] == {"region": "West"}


@pytest.mark.asyncio
async def test_update_entry_allows_keeping_own_name(mock_db, client_entry):
    payload = UpdateDirectoryEntryRequest(name="Acme Insurance")
    with patch(f"{STORE}.find_entry_by_name", new_callable=AsyncMock, return_value=client_entry), \
         patch(f"{STORE}.update_entry", new_callable=AsyncMock, return_value=client_entry):
        updated = await directories.update_entry(mock_db, InsuranceType.CLIENTS, "client-1", payload)

    assert updated is client_entry


@pytest.mark.asyncio
async def test_update_entry_missing_raises_not_found(mock_db):
    with patch(f"{STORE}.update_entry", new_callable=AsyncMock, return_value=None):
        with pytest.raises(EntityNotFoundError, match="Client with ID 'nope' not found."):
            await directories.update_entry(mock_db, InsuranceType.CLIENTS, "nope", UpdateDirectoryEntryRequest(region="X"))


@pytest.mark.asyncio
async def test_delete_entry_blocked_by_open_cases(mock_db, client_entry):
    with patch(f"{STORE}.get_entry_by_id", new_callable=AsyncMock, return_value=client_entry), \
         patch(f"{CASE_STORE}.active_case_counts_by_entity", new_callable=AsyncMock, return_value={"client-1": 1}), \
         patch(f"{STORE}.delete_entry", new_callable=AsyncMock) as mock_delete:
        with pytest.raises(ActiveCasesConflictError) as exc_info:
            await directories.delete_entry(mock_db, InsuranceType.CLIENTS, "client-1")

    assert exc_info.value.active_cases == 1
    mock_delete.assert_not_awaited()


@pytest.mark.asyncio
async def test_delete_entry_without_open_cases_succeeds(mock_db, client_entry):
    with patch(f"{STORE}.get_entry_by_id", new_callable=AsyncMock, return_value=client_entry), \
         patch(f"{CASE_STORE}.active_case_counts_by_entity", new_callable=AsyncMock, return_value={}), \
         patch(f"{STORE}.delete_entry", new_callable=AsyncMock, return_value=True) as mock_delete:
        deleted = await directories.delete_entry(mock_db, InsuranceType.CLIENTS, "client-1")

    assert deleted is client_entry
    mock_delete.assert_awaited_once_with(mock_db, InsuranceType.CLIENTS, "client-1")


@pytest.mark.asyncio
async def test_dropdown_data_lists_all_directories(mock_db):
    with patch(f"{STORE}.list_entry_names", new_callable=AsyncMock, return_value=[{"id": "1", "name": "A"}]) as mock_names:
        data = await directories.dropdown_data(mock_db)

    assert set(data) == {"providers", "hospitals", "clients"}
    assert mock_names.await_count == 3
