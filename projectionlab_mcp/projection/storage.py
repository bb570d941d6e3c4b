"""Reading and writing projection export files."""
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Union

from jsonschema import validate, ValidationError as JsonSchemaValidationError

from .errors import DocumentFormatError, PreconditionError

logger = logging.getLogger(__name__)

# Only the structure the tools navigate; everything else is carried through untouched.
EXPORT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["meta", "today", "plans"],
    "properties": {
        "meta": {"type": "object"},
        "today": {
            "type": "object",
            "properties": {
                "savingsAccounts": {"type": "array", "items": {"type": "object"}},
                "investmentAccounts": {"type": "array", "items": {"type": "object"}},
                "debts": {"type": "array", "items": {"type": "object"}},
                "assets": {"type": "array", "items": {"type": "object"}},
            },
        },
        "plans": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id"],
                "properties": {"id": {"type": "string"}},
            },
        },
        "progress": {
            "type": "object",
            "properties": {"data": {"type": "array", "items": {"type": "object"}}},
        },
    },
}


def check_document(document: Any, source: str = "<memory>") -> None:
    try:
        validate(instance=document, schema=EXPORT_SCHEMA)
    except JsonSchemaValidationError as e:
        error_path = " -> ".join(map(str, e.path)) if e.path else "Root"
        raise DocumentFormatError(
            f"{source} is not a ProjectionLab export: '{error_path}': {e.message}"
        ) from e


def load_document(path: Union[str, Path]) -> Dict[str, Any]:
    path = Path(path)
    if not path.is_file():
        raise PreconditionError(f"Data file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            document = json.load(f)
    except json.JSONDecodeError as e:
        raise DocumentFormatError(f"{path} is not valid JSON: {e}") from e
    check_document(document, str(path))
    logger.info(f"Loaded export from {path} ({len(document['plans'])} plans)")
    return document


def save_document(path: Union[str, Path], document: Dict[str, Any], indent: int = 2) -> None:
    """Write ``document`` to ``path`` through a temp file and an atomic rename."""
    path = Path(path)
    tmp_path = path.with_name(f"{path.name}.tmp")
    try:
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=indent, ensure_ascii=False)
        os.replace(tmp_path, path)
    except Exception:
        logger.error(f"Failed to save export to {path}", exc_info=True)
        if tmp_path.exists():
            tmp_path.unlink()
        raise
    logger.info(f"Saved export to {path}")
