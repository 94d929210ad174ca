# Command Handler Implementation: case CRUD and the case lifecycle
#
#   open --[close]--> in-review --[approve]--> closed
#                         |
#                         +------[reject]----> open
#
# Each compound transition runs inside start_transaction(). Without
# transactions, every write is guarded (status preconditions in the filter,
# unique indexes, delete-as-claim) and a failed guard undoes the transition's
# earlier writes before raising.
import datetime
import logging
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from opentelemetry import trace
from pymongo.errors import DuplicateKeyError

from claims_case_service.app.config import settings
from claims_case_service.app.models import (
    ActingUser, CaseDB, CaseStatus, FinanceDB, FinanceStatus, InvoiceDB, InvoiceStatus,
    RemarkEntry, utcnow,
)
from claims_case_service.app.observability import case_transitions_counter, invoices_created_counter
from claims_case_service.app.service.commands.models import (
    CloseCaseCommand, CreateCaseCommand, UpdateCaseCommand,
    UpdateFinanceStatusCommand, UpdateInvoiceStatusCommand,
)
from claims_case_service.app.service.exceptions import (
    BaseCaseManagementError, EntityNotFoundError, IntegrityError, InvalidCaseStateError, ValidationError,
)
from claims_case_service.app.service.insurers import insurer_ref, resolve_insurer, resolve_service_location
from claims_case_service.infrastructure.database import (
    case_store, counter_store, finance_store, invoice_store,
)
from claims_case_service.infrastructure.database.connection import start_transaction
from claims_case_service.infrastructure.database.errors import translate_storage_errors
from claims_case_service.infrastructure.database.issue_log_store import log_issue


logger = logging.getLogger(__name__)

# Fields a partial update may not blank out
_REQUIRED_CASE_FIELDS = ("patient_name", "insurance_type", "insurance_id", "hospital", "hospital_id")


def _remark_fields(remark: Optional[str], user: ActingUser, action: str) -> Tuple[Dict[str, Any], Optional[Dict[str, Any]]]:
    """Overwrites the current remark and returns the history entry to append."""
    if not remark:
        return {}, None
    entry = RemarkEntry(remark=remark, user=user.name, role=user.role, action=action)
    return (
        {"remarks": remark, "remark_user": user.name, "remark_user_role": user.role},
        entry.model_dump(),
    )


def _record_transition(from_status: CaseStatus, to_status: CaseStatus) -> None:
    case_transitions_counter.add(1, {"from_status": from_status.value, "to_status": to_status.value})


# --- Case CRUD ---

async def handle_create_case_command(db: AsyncIOMotorDatabase, command: CreateCaseCommand) -> CaseDB:
    current_span = trace.get_current_span()
    current_span.set_attribute("command.name", "CreateCaseCommand")
    current_span.set_attribute("command.id", command.command_id)
    data = command.data
    logger.info(f"Handling CreateCaseCommand: {command.command_id} for {data.insurance_type}/{data.insurance_id} by user {command.acting_user.id}")

    try:
        try:
            insurer = await resolve_insurer(db, insurer_ref(data.insurance_type, data.insurance_id))
            location = await resolve_service_location(db, data.hospital_id)
        except EntityNotFoundError as e:
            # Unresolved ids in a create request are bad input, not a missing resource
            raise ValidationError(str(e), fields={"id": e.entity_id}) from e

        case_fields = data.model_dump(exclude_none=True)
        case_fields.update(
            insurance=insurer.name,
            hospital=location.name,
            region=data.region or insurer.region,
            country=data.country or insurer.country,
            created_by_id=command.acting_user.id,
            created_by=command.acting_user.name,
        )
        with translate_storage_errors("create case"):
            case_fields["ref_number"] = await counter_store.next_case_reference(db, settings.CASE_REFERENCE_PREFIX)
            new_case = CaseDB(**case_fields)
            await case_store.insert_case(db, new_case)
    except BaseCaseManagementError as e:
        await log_issue(db, "Issue in case creation", command.source_ip, {
            "error": str(e),
            "insurance_type": data.insurance_type,
            "insurance_id": data.insurance_id,
            "hospital_id": data.hospital_id,
            "user_id": command.acting_user.id,
        })
        raise

    current_span.add_event("CaseCreated", {"case.id": new_case.id, "case.ref_number": new_case.ref_number})
    logger.info(f"Case created: {new_case.id} ({new_case.ref_number})")
    return new_case


async def handle_update_case_command(db: AsyncIOMotorDatabase, command: UpdateCaseCommand) -> CaseDB:
    logger.info(f"Handling UpdateCaseCommand for case {command.case_id}")
    changes = command.changes.model_dump(exclude_unset=True)
    for field in _REQUIRED_CASE_FIELDS:
        if field in changes and changes[field] is None:
            raise ValidationError(f"{field} cannot be cleared", fields={field: None})

    with translate_storage_errors("update case"):
        existing = await case_store.get_case_by_id(db, command.case_id)
        if existing is None:
            raise EntityNotFoundError("Case", command.case_id)

        if "insurance_type" in changes or "insurance_id" in changes:
            ref = insurer_ref(
                changes.get("insurance_type", existing.insurance_type),
                changes.get("insurance_id", existing.insurance_id),
            )
            try:
                insurer = await resolve_insurer(db, ref)
            except EntityNotFoundError as e:
                raise ValidationError(str(e), fields={"insuranceId": e.entity_id}) from e
            changes["insurance"] = insurer.name
        if "hospital_id" in changes:
            try:
                location = await resolve_service_location(db, changes["hospital_id"])
            except EntityNotFoundError as e:
                raise ValidationError(str(e), fields={"hospitalId": e.entity_id}) from e
            changes["hospital"] = location.name

        if not changes:
            return existing
        updated = await case_store.update_case_fields(db, command.case_id, changes)
    if updated is None:
        raise EntityNotFoundError("Case", command.case_id)
    return updated


async def handle_delete_case(db: AsyncIOMotorDatabase, case_id: str) -> CaseDB:
    """A case under review owns a live finance entry and cannot be deleted."""
    with translate_storage_errors("delete case"):
        existing = await case_store.get_case_by_id(db, case_id)
        if existing is None:
            raise EntityNotFoundError("Case", case_id)
        if existing.status == CaseStatus.IN_REVIEW:
            raise InvalidCaseStateError(case_id, existing.status, "delete case")
        deleted = await case_store.delete_case(db, case_id, protected_statuses=[CaseStatus.IN_REVIEW])
    if not deleted:
        # Moved into review (or removed) between the read and the delete
        current = await case_store.get_case_by_id(db, case_id)
        if current is None:
            raise EntityNotFoundError("Case", case_id)
        raise InvalidCaseStateError(case_id, current.status, "delete case")
    logger.info(f"Case deleted: {case_id}")
    return existing


# --- Lifecycle ---

async def handle_close_case_command(db: AsyncIOMotorDatabase, command: CloseCaseCommand) -> Tuple[CaseDB, FinanceDB]:
    """open -> in-review. Creates the finance entry, then moves the case."""
    current_span = trace.get_current_span()
    current_span.set_attribute("command.name", "CloseCaseCommand")
    current_span.set_attribute("case.id", command.case_id)
    logger.info(f"Handling CloseCaseCommand for case {command.case_id} by user {command.acting_user.id}")

    with translate_storage_errors("close case"):
        case = await case_store.get_case_by_id(db, command.case_id)
        if case is None:
            raise EntityNotFoundError("Case", command.case_id)
        if case.status in (CaseStatus.IN_REVIEW, CaseStatus.CLOSED):
            raise InvalidCaseStateError(case.id, case.status, "submit case for review")

        insurer = await resolve_insurer(db, insurer_ref(case.insurance_type, case.insurance_id))
        location = await resolve_service_location(db, case.hospital_id)
        current_span.add_event("CaseReferencesResolved", {"insurer.id": insurer.id, "location.id": location.id})

        user = command.acting_user
        now = utcnow()
        remark_fields, remark_entry = _remark_fields(command.remark, user, "submit-review")
        finance = FinanceDB(
            case_id=case.id,
            ref_number=case.ref_number,
            insurance_type=case.insurance_type,
            insurance_id=case.insurance_id,
            insurance=insurer.name,
            hospital=location.name,
            hospital_id=case.hospital_id,
            patient_name=case.patient_name,
            claim_amount=case.claim_amount,
            case_fee=insurer.case_fee if insurer.case_fee is not None else Decimal("0"),
            service_type=case.service_type or insurer.service_type,
            coverage=case.coverage or insurer.coverage,
            region=insurer.region or case.region,
            country=insurer.country or case.country,
            issue_date=now,
            due_date=now + datetime.timedelta(days=settings.PAYMENT_TERMS_DAYS),
            remarks=remark_fields.get("remarks", case.remarks),
            remark_user=remark_fields.get("remark_user", case.remark_user),
            remark_user_role=remark_fields.get("remark_user_role", case.remark_user_role),
            created_by_id=case.created_by_id,
            created_by=case.created_by,
        )

        async with start_transaction(db) as session:
            try:
                await finance_store.insert_finance(db, finance, session=session)
            except DuplicateKeyError as e:
                logger.error(f"Case {case.id} is open but already has a finance entry.", exc_info=True)
                raise InvalidCaseStateError(case.id, case.status, "submit case for review (finance entry already exists)") from e
            current_span.add_event("FinanceCreated", {"finance.id": finance.id})

            updated = await case_store.transition_case_status(
                db, case.id, [CaseStatus.OPEN], CaseStatus.IN_REVIEW,
                extra_fields=remark_fields, remark_entry=remark_entry, session=session,
            )
            if updated is None:
                await finance_store.delete_finance(db, finance.id, session=session)
                current = await case_store.get_case_by_id(db, case.id, session=session)
                if current is None:
                    raise EntityNotFoundError("Case", case.id)
                raise InvalidCaseStateError(case.id, current.status, "submit case for review")

    _record_transition(CaseStatus.OPEN, CaseStatus.IN_REVIEW)
    current_span.add_event("CaseSubmittedForReview", {"case.id": case.id, "finance.id": finance.id})
    logger.info(f"Case {case.id} is in review; finance entry {finance.id} created with case fee {finance.case_fee}.")
    return updated, finance


async def _load_finance_and_case(db: AsyncIOMotorDatabase, command: UpdateFinanceStatusCommand) -> Tuple[FinanceDB, CaseDB]:
    finance = await finance_store.get_finance_by_id(db, command.finance_id)
    if finance is None:
        raise EntityNotFoundError("Finance", command.finance_id)
    case = await case_store.get_case_by_id(db, finance.case_id)
    if case is None:
        logger.error(f"Finance {finance.id} references missing case {finance.case_id}.")
        await log_issue(db, "Finance entry references a missing case", command.source_ip, {
            "finance_id": finance.id,
            "case_id": finance.case_id,
            "requested_status": command.new_status,
            "user_id": command.acting_user.id,
        })
        raise IntegrityError(f"Finance '{finance.id}' references missing case '{finance.case_id}'.")
    if case.status != CaseStatus.IN_REVIEW:
        raise InvalidCaseStateError(case.id, case.status, f"{command.new_status} finance entry")
    return finance, case


async def handle_update_finance_status_command(db: AsyncIOMotorDatabase, command: UpdateFinanceStatusCommand) -> Dict[str, Any]:
    """
    approve: invoice created, finance deleted, case closed.
    reject: finance deleted, case reopened.
    Deleting the finance entry is what makes a second call fail with not-found.
    """
    current_span = trace.get_current_span()
    current_span.set_attribute("command.name", "UpdateFinanceStatusCommand")
    current_span.set_attribute("finance.id", command.finance_id)
    current_span.set_attribute("finance.new_status", str(command.new_status))
    logger.info(f"Handling UpdateFinanceStatusCommand: finance {command.finance_id} -> {command.new_status}")

    if command.new_status not in (FinanceStatus.APPROVE, FinanceStatus.REJECT):
        raise ValidationError("Invalid status value", fields={"status": command.new_status})

    with translate_storage_errors(f"{command.new_status} finance"):
        finance, case = await _load_finance_and_case(db, command)
        if command.new_status == FinanceStatus.REJECT:
            return await _reject_finance(db, command, finance, case)
        return await _approve_finance(db, command, finance, case)


async def _reject_finance(db: AsyncIOMotorDatabase, command: UpdateFinanceStatusCommand, finance: FinanceDB, case: CaseDB) -> Dict[str, Any]:
    user = command.acting_user
    remark_fields, remark_entry = _remark_fields(command.remark, user, "reject")
    extra_fields = {"rejected_by": user.name, **remark_fields}

    async with start_transaction(db) as session:
        if not await finance_store.delete_finance(db, finance.id, session=session):
            raise EntityNotFoundError("Finance", finance.id)
        updated = await case_store.transition_case_status(
            db, case.id, [CaseStatus.IN_REVIEW], CaseStatus.OPEN,
            extra_fields=extra_fields, remark_entry=remark_entry, session=session,
        )
        if updated is None:
            await finance_store.insert_finance(db, finance, session=session)
            raise InvalidCaseStateError(case.id, case.status, "reject finance entry")

    _record_transition(CaseStatus.IN_REVIEW, CaseStatus.OPEN)
    trace.get_current_span().add_event("FinanceRejected", {"finance.id": finance.id, "case.id": case.id})
    logger.info(f"Finance {finance.id} rejected by {user.name}; case {case.id} reopened.")
    return {"finance": finance, "case": updated, "invoice": None}


async def _approve_finance(db: AsyncIOMotorDatabase, command: UpdateFinanceStatusCommand, finance: FinanceDB, case: CaseDB) -> Dict[str, Any]:
    user = command.acting_user
    now = utcnow()
    invoice = InvoiceDB(
        finance_id=finance.id,
        case_id=finance.case_id,
        ref_number=finance.ref_number,
        insurance_type=finance.insurance_type,
        insurance_id=finance.insurance_id,
        insurance=finance.insurance,
        hospital=finance.hospital,
        patient_name=finance.patient_name,
        claim_amount=finance.claim_amount,
        case_fee=finance.case_fee,
        service_type=finance.service_type,
        coverage=finance.coverage,
        region=finance.region,
        country=finance.country,
        remarks=finance.remarks,
        issue_date=finance.issue_date,
        due_date=finance.due_date,
        status=InvoiceStatus.PENDING,
        approved_by=user.name,
    )

    async with start_transaction(db) as session:
        try:
            await invoice_store.insert_invoice(db, invoice, session=session)
        except DuplicateKeyError as e:
            # Another approval of this finance entry got there first
            raise EntityNotFoundError("Finance", finance.id) from e
        if not await finance_store.delete_finance(db, finance.id, session=session):
            await invoice_store.delete_invoice(db, invoice.id, session=session)
            raise EntityNotFoundError("Finance", finance.id)
        updated = await case_store.transition_case_status(
            db, case.id, [CaseStatus.IN_REVIEW], CaseStatus.CLOSED,
            extra_fields={"approved_by": user.name, "closed_at": now}, session=session,
        )
        if updated is None:
            await invoice_store.delete_invoice(db, invoice.id, session=session)
            await finance_store.insert_finance(db, finance, session=session)
            raise InvalidCaseStateError(case.id, case.status, "approve finance entry")

    _record_transition(CaseStatus.IN_REVIEW, CaseStatus.CLOSED)
    invoices_created_counter.add(1)
    trace.get_current_span().add_event("FinanceApproved", {"finance.id": finance.id, "invoice.id": invoice.id, "case.id": case.id})
    logger.info(f"Finance {finance.id} approved by {user.name}; invoice {invoice.id} created, case {case.id} closed.")
    return {"finance": finance.model_copy(update={"status": FinanceStatus.APPROVE.value}), "case": updated, "invoice": invoice}


async def handle_update_invoice_status_command(db: AsyncIOMotorDatabase, command: UpdateInvoiceStatusCommand) -> InvoiceDB:
    logger.info(f"Handling UpdateInvoiceStatusCommand: invoice {command.invoice_id} -> {command.new_status}")
    if command.new_status not in (InvoiceStatus.PAID, InvoiceStatus.UNPAID):
        raise ValidationError("Invalid status value", fields={"status": command.new_status})
    with translate_storage_errors("update invoice status"):
        updated = await invoice_store.update_invoice_status(
            db, command.invoice_id, command.new_status, updated_by_user=command.acting_user.name,
        )
    if updated is None:
        raise EntityNotFoundError("Invoice", command.invoice_id)
    return updated
