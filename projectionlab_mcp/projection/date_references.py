"""Validation of DateReference values.

A DateReference is the ``{type, value, modifier?}`` object used for every
start/end style boundary in the export. The same checks apply no matter which
field embeds the reference; the field name is only used to make errors
locatable.
"""
import copy
import re
from typing import Any, Dict

from .document import (
    BOUNDARY_MODIFIERS,
    DATE_KEYWORDS,
    DATE_REFERENCE_TYPES,
)
from .errors import ValidationError

YEAR_PATTERN = re.compile(r"[0-9]{4}")
# Partial ISO dates ("2027", "2027-06", "2027-06-01"), optionally with a time part.
DATE_PATTERN = re.compile(r"[0-9]{4}(?:-[0-9]{2}(?:-[0-9]{2}(?:T.*)?)?)?")


def validate_date_reference(reference: Any, field: str) -> Dict[str, Any]:
    """Check ``reference`` and return the normalized copy to store.

    Raises ValidationError on the first rule that fails.
    """
    if not isinstance(reference, dict) or not reference:
        raise ValidationError(field, "a DateReference object with 'type' and 'value'", reference)

    ref_type = reference.get("type")
    if ref_type not in DATE_REFERENCE_TYPES:
        raise ValidationError(
            f"{field}.type", f"one of {', '.join(DATE_REFERENCE_TYPES)}", ref_type
        )

    if "value" not in reference or reference["value"] is None:
        raise ValidationError(f"{field}.value", f"a value for a '{ref_type}' reference", None)

    normalized = copy.deepcopy(reference)
    normalized["value"] = _check_value(ref_type, reference["value"], f"{field}.value")

    if "modifier" in reference:
        _check_modifier(reference["modifier"], f"{field}.modifier")
    return normalized


def _check_value(ref_type: str, value: Any, field: str) -> Any:
    if ref_type == "keyword":
        if value not in DATE_KEYWORDS:
            raise ValidationError(field, f"one of {', '.join(DATE_KEYWORDS)}", value)
        return value

    if ref_type == "year":
        if not isinstance(value, str) or not YEAR_PATTERN.fullmatch(value):
            raise ValidationError(field, "a 4-digit year string such as '2059'", value)
        return value

    if ref_type == "date":
        if not isinstance(value, str) or not DATE_PATTERN.fullmatch(value):
            raise ValidationError(field, "an ISO date string such as '2027', '2027-06' or '2027-06-01'", value)
        return value

    # milestone: an id or one of the built-in names; existence is not checked here.
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(field, "a non-empty milestone id", value)
    return value.strip()


def _check_modifier(modifier: Any, field: str) -> None:
    # Year offsets are whole years; booleans are not offsets.
    if isinstance(modifier, int) and not isinstance(modifier, bool):
        return
    if modifier in BOUNDARY_MODIFIERS:
        return
    raise ValidationError(field, "a whole-year offset or one of include, exclude", modifier)
