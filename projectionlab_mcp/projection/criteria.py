"""Validation of milestone criteria lists.

Two passes per criterion, in list order: the value shape implied by its
``type``, then (only when a ``refId`` is given) the cross reference into the
document. The first failing criterion is reported with its index, type and
value so an automated caller can correct exactly that clause.
"""
import copy
import logging
from typing import Any, Dict, List, Optional

from .document import (
    BUILTIN_MILESTONES,
    DEBTS,
    INVESTMENT_ACCOUNTS,
    SAVINGS_ACCOUNTS,
    Document,
    Entity,
    is_number,
    plan_collection,
    today_collection,
)
from .errors import ReferentialIntegrityError, ValidationError
from .locator import find_in_collection, locate_account

logger = logging.getLogger(__name__)

STRING_VALUE_TYPES = {
    "year": "a date string",
    "date": "a date string",
    "milestone": "a milestone id string",
}
NUMBER_VALUE_TYPES = ("netWorth", "account", "totalDebt")
DEBT_REFERENCE_TYPES = ("debt", "totalDebt")


def validate_criteria(
    criteria: Any,
    document: Document,
    plan: Optional[Entity] = None,
    field: str = "criteria",
) -> List[Dict[str, Any]]:
    """Validate a whole criteria list and return a copy ready to store.

    ``plan`` enables the milestone refId check; without it that check is
    skipped rather than failed.
    """
    if not isinstance(criteria, list):
        raise ValidationError(field, "a list of milestone criteria", criteria)

    for index, criterion in enumerate(criteria):
        location = f"{field}[{index}]"
        if not isinstance(criterion, dict):
            raise ValidationError(location, "a criterion object", criterion)
        _check_shape(criterion, location)
        if criterion.get("refId") is not None:
            _check_reference(criterion, document, plan, location)
    return copy.deepcopy(criteria)


def _check_shape(criterion: Dict[str, Any], location: str) -> None:
    crit_type = criterion.get("type")
    value = criterion.get("value")

    if crit_type in STRING_VALUE_TYPES:
        if not isinstance(value, str):
            raise ValidationError(
                f"{location} (type '{crit_type}')",
                STRING_VALUE_TYPES[crit_type],
                value,
                detail="numeric values are not accepted for this criterion type" if is_number(value) else None,
            )
    elif crit_type in NUMBER_VALUE_TYPES:
        if not is_number(value):
            raise ValidationError(f"{location} (type '{crit_type}')", "a number", value)
    # Any other type passes through unchecked.


def _check_reference(criterion: Dict[str, Any], document: Document, plan: Optional[Entity], location: str) -> None:
    crit_type = criterion.get("type")
    ref_id = criterion["refId"]
    field = f"{location} (type '{crit_type}')"

    if crit_type == "account":
        if locate_account(document, ref_id) is None:
            raise ReferentialIntegrityError(field, ref_id, [SAVINGS_ACCOUNTS, INVESTMENT_ACCOUNTS])

    elif crit_type in DEBT_REFERENCE_TYPES:
        if find_in_collection(today_collection(document, DEBTS), ref_id) is None:
            raise ReferentialIntegrityError(field, ref_id, [DEBTS])

    elif crit_type == "milestone":
        if plan is None:
            logger.debug(f"{field}: no plan in scope, skipping milestone refId check for '{ref_id}'")
            return
        if ref_id in BUILTIN_MILESTONES:
            return
        for key in ("milestones", "computedMilestones"):
            if find_in_collection(plan_collection(plan, key), ref_id) is not None:
                return
        raise ReferentialIntegrityError(
            field, ref_id, ["milestones", "computedMilestones", "built-in milestones"]
        )
