"""Exceptions raised by the projection core.

Every error carries a short ``code`` and a human readable message. The MCP
boundary turns them into error results; nothing in the core recovers from them.
"""
from typing import Any, Iterable, Optional


class ProjectionError(Exception):
    """Base exception for the projection package."""
    code = "PROJECTION_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(ProjectionError):
    """A plan or entity lookup by id came back empty."""
    code = "NOT_FOUND"

    def __init__(self, kind: str, entity_id: Any):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} not found: {entity_id}")


class ValidationError(ProjectionError):
    """A date reference or milestone criterion has the wrong shape."""
    code = "VALIDATION_ERROR"

    def __init__(self, field: str, expected: str, received: Any = None, detail: Optional[str] = None):
        self.field = field
        self.expected = expected
        self.received = received
        message = f"Invalid {field}: expected {expected}, received {_describe(received)}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class ReferentialIntegrityError(ProjectionError):
    """A criterion refId does not point at anything in the document."""
    code = "REFERENTIAL_INTEGRITY"

    def __init__(self, field: str, ref_id: Any, searched: Iterable[str]):
        self.field = field
        self.ref_id = ref_id
        self.searched = list(searched)
        super().__init__(
            f"Invalid {field}: refId '{ref_id}' does not match any entry in {' or '.join(self.searched)}"
        )


class InvariantViolationError(ProjectionError):
    """The requested mutation would break a document-wide invariant."""
    code = "INVARIANT_VIOLATION"


class PreconditionError(ProjectionError):
    """The session is not ready for the requested operation."""
    code = "PRECONDITION"


class DocumentFormatError(PreconditionError):
    """The loaded file is not a projection export."""


def _describe(value: Any) -> str:
    if value is None:
        return "nothing"
    if isinstance(value, bool):
        return f"boolean {str(value).lower()}"
    if isinstance(value, (int, float)):
        return f"number {value}"
    if isinstance(value, str):
        return f"string '{value}'"
    return f"{type(value).__name__} {value!r}"
