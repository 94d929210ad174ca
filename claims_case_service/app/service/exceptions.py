"""
Custom exceptions for the Claims Case service.

Every error carries the HTTP status it maps to, so the API layer can translate
without knowing about each concrete subclass.
"""
from typing import Any, Dict, Optional


class BaseCaseManagementError(Exception):
    """Base class for exceptions in this module."""
    status_code: int = 500


class ValidationError(BaseCaseManagementError):
    """Missing or malformed input. Never retried."""
    status_code = 400

    def __init__(self, message: str, fields: Optional[Dict[str, Any]] = None):
        self.fields = fields or {}
        super().__init__(message)


class NotFoundError(BaseCaseManagementError):
    """A referenced resource does not exist."""
    status_code = 404


class EntityNotFoundError(NotFoundError):
    """Raised when a case, finance, invoice or directory entry is not found."""
    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} with ID '{entity_id}' not found.")


class ConflictError(BaseCaseManagementError):
    status_code = 409


class InvalidCaseStateError(ConflictError):
    """Raised when an operation is attempted on a case in an invalid state."""
    def __init__(self, case_id: str, current_state: str, attempted_action: str):
        self.case_id = case_id
        self.current_state = current_state
        self.attempted_action = attempted_action
        super().__init__(f"Cannot {attempted_action} for case '{case_id}' in state '{current_state}'.")


class DuplicateKeyConflictError(ConflictError):
    """A unique key (name, reference number) is already taken."""
    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        super().__init__(f'{field[:1].upper()}{field[1:]} "{value}" is already in use.')


class ActiveCasesConflictError(ConflictError):
    """Raised when deleting a directory entry that still has open cases."""
    def __init__(self, entity: str, entity_id: str, active_cases: int):
        self.entity = entity
        self.entity_id = entity_id
        self.active_cases = active_cases
        super().__init__(
            f"Cannot delete {entity} '{entity_id}': it has {active_cases} active case(s)."
        )


class IntegrityError(BaseCaseManagementError):
    """
    Stored data contradicts itself (e.g. a finance entry whose case is gone).
    Needs manual intervention; the caller only gets a generic not-found.
    """
    status_code = 404
    public_message = "Associated record not found."


class UpstreamError(BaseCaseManagementError):
    """Storage is unavailable or timed out."""
    status_code = 503
