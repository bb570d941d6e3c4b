"""Applies validated changes to located entities and commits the session.

Changes are staged first: every date reference and criteria list in the
payload is validated before anything is written, and a write that fails is
undone in memory, so a failing call leaves the document exactly as it was.
"""
import copy
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional

from .criteria import validate_criteria
from .date_references import validate_date_reference
from .document import Entity, display_name
from .errors import NotFoundError
from .locator import index_in_collection
from .session import ProjectionSession

logger = logging.getLogger(__name__)

# Fields holding a DateReference anywhere in the export.
DATE_REFERENCE_FIELDS = frozenset({
    "start",
    "end",
    "withdrawAge",
    "displayAge",
    "partTimeStart",
    "partTimeEnd",
    "pensionPayoutsStart",
    "pensionPayoutsEnd",
    "repeatEnd",
    "effectiveDate",
    "forgiveAt",
})
CRITERIA_FIELDS = frozenset({"criteria"})


class MutationOrchestrator:
    def __init__(self, session: ProjectionSession):
        self.session = session

    def prepare(
        self,
        payload: Dict[str, Any],
        fields: Iterable[str],
        plan: Optional[Entity] = None,
    ) -> Dict[str, Any]:
        """Return the validated subset of ``payload`` limited to ``fields``.

        Presence decides what is staged, so 0, "" and False all overwrite.
        """
        staged: Dict[str, Any] = {}
        for key in fields:
            if key not in payload:
                continue
            value = payload[key]
            if key in DATE_REFERENCE_FIELDS:
                value = validate_date_reference(value, key)
            elif key in CRITERIA_FIELDS:
                value = validate_criteria(value, self.session.document, plan, key)
            staged[key] = value
        return staged

    def apply(self, target: Dict[str, Any], staged: Dict[str, Any]) -> Dict[str, Any]:
        previous = {key: target[key] for key in staged if key in target}
        target.update(staged)
        try:
            self.session.commit()
        except Exception:
            for key in staged:
                if key in previous:
                    target[key] = previous[key]
                else:
                    target.pop(key, None)
            raise
        return target

    def update(
        self,
        entity: Entity,
        payload: Dict[str, Any],
        fields: Iterable[str],
        plan: Optional[Entity] = None,
    ) -> Entity:
        staged = self.prepare(payload, fields, plan)
        logger.info(f"Updating {entity.get('id', 'record')}: {sorted(staged)}")
        return self.apply(entity, staged)

    def add(self, collection: List[Entity], entity: Entity) -> Entity:
        collection.append(entity)
        try:
            self.session.commit()
        except Exception:
            collection.pop()
            raise
        logger.info(f"Added {entity.get('id')}")
        return entity

    def remove(self, collection: List[Entity], entity_id: Any, kind: str) -> Entity:
        index = index_in_collection(collection, entity_id)
        if index < 0:
            raise NotFoundError(kind, entity_id)
        return self.remove_at(collection, index)

    def remove_at(self, collection: List[Entity], index: int) -> Entity:
        removed = collection.pop(index)
        try:
            self.session.commit()
        except Exception:
            collection.insert(index, removed)
            raise
        logger.info(f"Removed {removed.get('id')} ({display_name(removed)})")
        return removed

    @contextmanager
    def guard(self, parent: Dict[str, Any], key: str) -> Iterator[None]:
        """Put ``parent[key]`` back as it was if the block raises.

        Wraps mutations that lazily create a container before committing.
        """
        existed = key in parent
        previous = copy.deepcopy(parent[key]) if existed else None
        try:
            yield
        except Exception:
            if existed:
                parent[key] = previous
            else:
                parent.pop(key, None)
            raise
