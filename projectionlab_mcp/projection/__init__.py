from .errors import (
    ProjectionError,
    NotFoundError,
    ValidationError,
    ReferentialIntegrityError,
    InvariantViolationError,
    PreconditionError,
    DocumentFormatError,
)
from .session import ProjectionSession
from .ids import IdGenerator, UuidIdGenerator, TimestampIdGenerator, SequentialIdGenerator, make_id_generator
from .date_references import validate_date_reference
from .criteria import validate_criteria
from .mutations import MutationOrchestrator

__all__ = [
    "ProjectionSession",
    "MutationOrchestrator",
    "validate_date_reference",
    "validate_criteria",
    "IdGenerator",
    "UuidIdGenerator",
    "TimestampIdGenerator",
    "SequentialIdGenerator",
    "make_id_generator",
    "ProjectionError",
    "NotFoundError",
    "ValidationError",
    "ReferentialIntegrityError",
    "InvariantViolationError",
    "PreconditionError",
    "DocumentFormatError",
]
