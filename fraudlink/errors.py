"""Domain error hierarchy for the link-analysis core.

Every error carries the HTTP-equivalent ``status_code`` the API layer maps it to,
plus a small ``context`` dict describing what was being operated on.
"""
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, Optional

logger = logging.getLogger(__name__)


class GraphError(Exception):
    """Base class for all fraudlink errors."""

    status_code = 500

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class ValidationError(GraphError):
    """A required field is missing or malformed (e.g. payer equals payee)."""

    status_code = 400


class NotFoundError(GraphError):
    """A referenced id does not resolve to a stored entity."""

    status_code = 404

    def __init__(self, kind: str, ids: Iterable[str], message: Optional[str] = None):
        id_list = [i for i in ids]
        if message is None:
            message = f"{kind} with ID {', '.join(id_list)} not found"
        super().__init__(message, {"kind": kind, "ids": id_list})
        self.kind = kind
        self.ids = id_list


class ConflictError(GraphError):
    """A create would duplicate an attribute that is enforced as unique."""

    status_code = 409


class IntegrityError(GraphError):
    """An internal invariant was broken; fatal to the current operation."""

    status_code = 500


class StorageError(GraphError):
    """A storage-level failure, wrapped with the operation that was running."""

    status_code = 500


@contextmanager
def storage_errors(operation: str, **context: Any) -> Iterator[None]:
    """Re-raise any non-domain failure inside the block as StorageError.

    GraphError subclasses pass through untouched.
    """
    try:
        yield
    except GraphError:
        raise
    except Exception as exc:
        logger.exception("%s failed (%s)", operation, context)
        raise StorageError(
            f"Error while running {operation}: {exc}", {"operation": operation, **context}
        ) from exc
