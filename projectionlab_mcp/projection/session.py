"""The explicit context every operation runs against."""
import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .errors import PreconditionError
from .ids import IdGenerator, UuidIdGenerator
from .storage import check_document, load_document, save_document

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class ProjectionSession:
    """Holds the loaded export, where it came from, and the id generator.

    A session can be built straight from an in-memory document (``from_document``)
    in which case ``commit`` only stamps ``meta.lastUpdated``.
    """

    def __init__(self, id_generator: Optional[IdGenerator] = None, json_indent: int = 2):
        self.id_generator = id_generator or UuidIdGenerator()
        self.json_indent = json_indent
        self.source_path: Optional[Path] = None
        self.revision = 0
        self._document: Optional[Dict[str, Any]] = None

    @classmethod
    def from_document(cls, document: Dict[str, Any], id_generator: Optional[IdGenerator] = None) -> "ProjectionSession":
        check_document(document)
        session = cls(id_generator=id_generator)
        session._document = document
        return session

    @property
    def is_loaded(self) -> bool:
        return self._document is not None

    @property
    def document(self) -> Dict[str, Any]:
        if self._document is None:
            raise PreconditionError("Data not loaded. Use set_data_file tool first.")
        return self._document

    def load(self, path: Union[str, Path]) -> Path:
        absolute = Path(path).expanduser().resolve()
        self._document = load_document(absolute)
        self.source_path = absolute
        self.revision = 0
        return absolute

    def new_id(self, prefix: str) -> str:
        return self.id_generator.new_id(prefix)

    def commit(self) -> None:
        """Persist the document after a successful mutation.

        If the write fails the timestamp is put back and the error propagates;
        callers undo their own change.
        """
        meta = self.document.setdefault("meta", {})
        had_stamp = "lastUpdated" in meta
        previous_stamp = meta.get("lastUpdated")
        meta["lastUpdated"] = now_ms()
        if self.source_path is not None:
            try:
                save_document(self.source_path, self.document, indent=self.json_indent)
            except Exception:
                if had_stamp:
                    meta["lastUpdated"] = previous_stamp
                else:
                    del meta["lastUpdated"]
                raise
        else:
            logger.debug("No source path configured; commit kept in memory")
        self.revision += 1
