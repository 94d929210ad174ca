# Translation of pymongo failures into the service error taxonomy
import logging
from contextlib import contextmanager
from typing import Iterator

from pymongo.errors import (
    ConnectionFailure,
    DuplicateKeyError,
    ExecutionTimeout,
    NetworkTimeout,
    ServerSelectionTimeoutError,
    WTimeoutError,
)
from pydantic.alias_generators import to_camel

from claims_case_service.app.service.exceptions import DuplicateKeyConflictError, UpstreamError

logger = logging.getLogger(__name__)

_UNAVAILABLE = (ConnectionFailure, ServerSelectionTimeoutError, NetworkTimeout, ExecutionTimeout, WTimeoutError)


def duplicate_key_conflict(error: DuplicateKeyError) -> DuplicateKeyConflictError:
    """Builds a user-facing conflict naming the offending (camelCase) field and value."""
    details = error.details or {}
    key_value = details.get("keyValue") or {}
    if key_value:
        field, value = next(iter(key_value.items()))
    else:
        field, value = "value", "unknown"
    return DuplicateKeyConflictError(field=to_camel(field), value=value)


@contextmanager
def translate_storage_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except DuplicateKeyError as e:
        logger.warning(f"Duplicate key during {operation}: {e.details}")
        raise duplicate_key_conflict(e) from e
    except _UNAVAILABLE as e:
        logger.error(f"Storage unavailable during {operation}: {e}", exc_info=True)
        raise UpstreamError(f"Storage unavailable during {operation}.") from e
