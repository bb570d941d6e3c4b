"""Entity lookup by id inside the live document.

Every lookup returns the stored dict itself, so callers mutate the document in
place. Misses in ``find_in_collection`` return None; the ``require_*``
helpers turn a miss into a ``NotFoundError`` carrying the kind and the id.
"""
import logging
from typing import Any, List, NamedTuple, Optional, Tuple

from .document import (
    DEBTS,
    INVESTMENT_ACCOUNTS,
    SAVINGS_ACCOUNTS,
    Document,
    Entity,
    today_collection,
)
from .errors import NotFoundError

logger = logging.getLogger(__name__)

# Search order for the account namespace. Savings wins on an id collision.
ACCOUNT_COLLECTIONS: Tuple[Tuple[str, str], ...] = (
    ("savings", SAVINGS_ACCOUNTS),
    ("investment", INVESTMENT_ACCOUNTS),
)


class AccountRef(NamedTuple):
    """An account together with the collection it lives in."""
    category: str  # "savings" or "investment"
    collection_key: str
    account: Entity
    index: int


def find_plan(document: Document, plan_id: Any) -> Entity:
    plan = find_in_collection(document.get("plans") or [], plan_id)
    if plan is None:
        raise NotFoundError("Plan", plan_id)
    return plan


def find_in_collection(collection: List[Entity], entity_id: Any) -> Optional[Entity]:
    index = index_in_collection(collection, entity_id)
    return None if index < 0 else collection[index]


def index_in_collection(collection: List[Entity], entity_id: Any) -> int:
    for index, entity in enumerate(collection):
        if isinstance(entity, dict) and entity.get("id") == entity_id:
            return index
    logger.debug(f"No entity with id '{entity_id}' among {len(collection)} entries")
    return -1


def require_in_collection(collection: List[Entity], entity_id: Any, kind: str) -> Entity:
    entity = find_in_collection(collection, entity_id)
    if entity is None:
        raise NotFoundError(kind, entity_id)
    return entity


def locate_account(document: Document, account_id: Any) -> Optional[AccountRef]:
    """Union lookup over savings then investment accounts; None on a miss."""
    for category, key in ACCOUNT_COLLECTIONS:
        collection = today_collection(document, key)
        index = index_in_collection(collection, account_id)
        if index >= 0:
            return AccountRef(category, key, collection[index], index)
    return None


def find_account_ref(document: Document, account_id: Any) -> AccountRef:
    ref = locate_account(document, account_id)
    if ref is None:
        raise NotFoundError("Account", account_id)
    return ref


def find_account(document: Document, account_id: Any) -> Entity:
    return find_account_ref(document, account_id).account


def find_debt(document: Document, debt_id: Any) -> Entity:
    return require_in_collection(today_collection(document, DEBTS), debt_id, "Debt")
