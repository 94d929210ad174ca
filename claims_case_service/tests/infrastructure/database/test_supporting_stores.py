# Unit Tests for finance, invoice, directory, counter and issue-log operations
import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pymongo.errors import AutoReconnect, DuplicateKeyError, ServerSelectionTimeoutError

from claims_case_service.app.models import InsuranceType, InvoiceStatus
from claims_case_service.app.service.exceptions import DuplicateKeyConflictError, UpstreamError
from claims_case_service.infrastructure.database import (
    counter_store, directory_store, finance_store, indexes, invoice_store, issue_log_store,
)
from claims_case_service.infrastructure.database.errors import translate_storage_errors


# --- Finances ---

@pytest.mark.asyncio
async def test_delete_finance_reports_whether_it_removed_the_entry(mock_db, mock_collection):
    mock_collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))
    assert await finance_store.delete_finance(mock_db, "fin-1") is True

    mock_collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=0))
    assert await finance_store.delete_finance(mock_db, "fin-1") is False


@pytest.mark.asyncio
async def test_list_finances_filters_on_issue_date(mock_db, mock_collection, finance_factory):
    start = datetime.datetime(2024, 1, 1, tzinfo=datetime.UTC)
    end = datetime.datetime(2024, 6, 30, tzinfo=datetime.UTC)
    mock_collection.find.return_value.to_list = AsyncMock(return_value=[finance_factory().to_mongo()])

    finances = await finance_store.list_finances(mock_db, start, end)

    mock_db.__getitem__.assert_called_with(finance_store.FINANCES_COLLECTION)
    mock_collection.find.assert_called_once_with({"issue_date": {"$gte": start, "$lte": end}})
    assert finances[0].case_fee == Decimal("150.00")


# --- Invoices ---

@pytest.mark.asyncio
async def test_update_invoice_status_paid_sets_paid_date(mock_db, mock_collection):
    await invoice_store.update_invoice_status(mock_db, "inv-1", InvoiceStatus.PAID, updated_by_user="Ada Admin")

    query_filter, update_query = mock_collection.find_one_and_update.call_args.args
    assert query_filter == {"id": "inv-1"}
    assert update_query["$set"]["status"] == "paid"
    assert update_query["$set"]["updated_by_user"] == "Ada Admin"
    assert "paid_date" in update_query["$set"]
    assert "$unset" not in update_query


@pytest.mark.asyncio
async def test_update_invoice_status_unpaid_clears_paid_date(mock_db, mock_collection):
    result = await invoice_store.update_invoice_status(mock_db, "inv-1", "unpaid")

    update_query = mock_collection.find_one_and_update.call_args.args[1]
    assert update_query["$set"]["status"] == "unpaid"
    assert update_query["$unset"] == {"paid_date": ""}
    assert result is None # mock returned no document


# --- Directories ---

@pytest.mark.parametrize("kind, collection", [
    (InsuranceType.CLIENTS, "clients"),
    ("providers", "providers"),
    (InsuranceType.HOSPITALS, "hospitals"),
])
def test_collection_for_maps_each_directory(kind, collection):
    assert directory_store.collection_for(kind)[0] == collection


@pytest.mark.asyncio
async def test_get_entry_by_id_builds_hospital_model(mock_db, mock_collection):
    mock_collection.find_one = AsyncMock(return_value={"id": "hosp-1", "name": "General", "relation": "cashless"})

    entry = await directory_store.get_entry_by_id(mock_db, InsuranceType.HOSPITALS, "hosp-1")

    assert entry.name == "General"
    assert entry.relation == "cashless"


@pytest.mark.asyncio
async def test_list_entry_names_projects_id_and_name(mock_db, mock_collection):
    mock_collection.find.return_value.to_list = AsyncMock(return_value=[{"id": "c1", "name": "Acme"}])

    names = await directory_store.list_entry_names(mock_db, InsuranceType.CLIENTS)

    assert names == [{"id": "c1", "name": "Acme"}]
    mock_collection.find.assert_called_once_with({}, {"_id": 0, "id": 1, "name": 1})


# --- Counter ---

@pytest.mark.asyncio
async def test_next_case_reference_formats_prefix_month_and_sequence(mock_db, mock_collection):
    mock_collection.find_one_and_update = AsyncMock(return_value={"_id": "CMA25-07", "seq": 3})
    now = datetime.datetime(2025, 7, 14, tzinfo=datetime.UTC)

    reference = await counter_store.next_case_reference(mock_db, "CMA", now=now)

    assert reference == "CMA25-0703"
    args, kwargs = mock_collection.find_one_and_update.call_args
    assert args == ({"_id": "CMA25-07"}, {"$inc": {"seq": 1}})
    assert kwargs["upsert"] is True


# --- Issue log ---

@pytest.mark.asyncio
async def test_log_issue_inserts_entry(mock_db, mock_collection):
    issue = await issue_log_store.log_issue(mock_db, "Issue in case creation", "10.0.0.1", {"case_id": "c1"})

    assert issue.message == "Issue in case creation"
    inserted = mock_collection.insert_one.call_args.args[0]
    assert inserted["ip"] == "10.0.0.1"
    assert inserted["data"] == {"case_id": "c1"}


@pytest.mark.asyncio
async def test_log_issue_write_failure_does_not_raise(mock_db, mock_collection):
    mock_collection.insert_one = AsyncMock(side_effect=AutoReconnect("down"))

    assert await issue_log_store.log_issue(mock_db, "anything") is None


# --- Indexes ---

def test_index_plan_declares_unique_keys():
    plan = indexes.index_plan()

    def unique_keys(collection):
        return {index.document["name"] for index in plan[collection] if index.document.get("unique")}

    assert "case_id_1" in unique_keys("finances")
    assert {"finance_id_1", "case_id_1"} <= unique_keys("invoices")
    assert {"ref_number_1", "insurance_reference_1"} <= unique_keys("cases")
    for directory in ("clients", "providers", "hospitals"):
        assert "name_1" in unique_keys(directory)


@pytest.mark.asyncio
async def test_ensure_indexes_continues_after_a_failure(mock_db, mock_collection):
    mock_collection.create_indexes = AsyncMock(side_effect=[AutoReconnect("down")] + [["idx"]] * 20)

    created = await indexes.ensure_indexes(mock_db)

    assert len(created) == len(indexes.index_plan()) - 1


# --- Error translation ---

def test_translate_storage_errors_duplicate_key_names_field():
    error = DuplicateKeyError("E11000", code=11000, details={"keyValue": {"insurance_reference": "POL-9"}})

    with pytest.raises(DuplicateKeyConflictError) as exc_info:
        with translate_storage_errors("create case"):
            raise error

    assert str(exc_info.value) == 'InsuranceReference "POL-9" is already in use.'
    assert exc_info.value.field == "insuranceReference"


def test_translate_storage_errors_timeout_becomes_upstream_error():
    with pytest.raises(UpstreamError):
        with translate_storage_errors("list cases"):
            raise ServerSelectionTimeoutError("no servers")
