"""
Rule Catalog

Loads the CDR and test libraries from JSON documents and exposes them as
immutable, id-indexed collections.

Usage:
    from app.core.cdr.catalog import load_cdr_catalog

    catalog = load_cdr_catalog()            # bundled library
    heart = catalog.get("heart")
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Generic, Iterable, Iterator, List, Optional, TypeVar, Union

from pydantic import ValidationError

from app import config
from app.utils.exceptions import CatalogError
from .base import CdrDefinition, TestDefinition
from .schemas import CdrDefinitionSchema, TestDefinitionSchema

logger = logging.getLogger(__name__)

T = TypeVar("T", CdrDefinition, TestDefinition)


class Catalog(Generic[T]):
    """
    Ordered, read-only collection of catalog definitions keyed by id.

    Iteration order is the document order; the first definition wins when a
    document repeats an id.
    """

    def __init__(self, definitions: Iterable[T] = ()):
        self._by_id: Dict[str, T] = {}
        for definition in definitions:
            if definition.id in self._by_id:
                logger.warning(f"Catalog: duplicate id '{definition.id}' ignored")
                continue
            self._by_id[definition.id] = definition

    def get(self, definition_id: str) -> Optional[T]:
        return self._by_id.get(definition_id)

    def ids(self) -> List[str]:
        return list(self._by_id.keys())

    def __contains__(self, definition_id: object) -> bool:
        return definition_id in self._by_id

    def __iter__(self) -> Iterator[T]:
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)

    def to_list(self) -> List[dict]:
        return [d.to_dict() for d in self]


CdrCatalog = Catalog[CdrDefinition]
TestCatalog = Catalog[TestDefinition]


def _read_documents(path: Union[str, Path]) -> List[Dict[str, Any]]:
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise CatalogError(f"Catalog file not found: {path}", path=str(path)) from exc
    except json.JSONDecodeError as exc:
        raise CatalogError(
            f"Catalog file is not valid JSON: {path}",
            path=str(path),
            details={"line": exc.lineno, "column": exc.colno},
        ) from exc

    # Accept either a bare list or a library response envelope
    if isinstance(raw, dict):
        raw = raw.get("cdrs", raw.get("tests", []))
    if not isinstance(raw, list):
        raise CatalogError(f"Catalog file must hold a list of definitions: {path}", path=str(path))
    return raw


def parse_cdr_definitions(documents: Iterable[Dict[str, Any]], path: str = "<memory>") -> CdrCatalog:
    """Validate raw CDR documents and build a catalog."""
    try:
        definitions = [CdrDefinitionSchema.model_validate(doc).to_domain() for doc in documents]
    except ValidationError as exc:
        raise CatalogError(
            "Invalid CDR definition",
            path=path,
            details={"errors": exc.errors(include_url=False, include_context=False, include_input=False)},
        ) from exc
    return Catalog(definitions)


def parse_test_definitions(documents: Iterable[Dict[str, Any]], path: str = "<memory>") -> TestCatalog:
    """Validate raw test documents and build a catalog."""
    try:
        definitions = [TestDefinitionSchema.model_validate(doc).to_domain() for doc in documents]
    except ValidationError as exc:
        raise CatalogError(
            "Invalid test definition",
            path=path,
            details={"errors": exc.errors(include_url=False, include_context=False, include_input=False)},
        ) from exc
    return Catalog(definitions)


def load_cdr_catalog(path: Optional[Union[str, Path]] = None) -> CdrCatalog:
    path = path or config.CDR_LIBRARY_PATH
    catalog = parse_cdr_definitions(_read_documents(path), path=str(path))
    logger.info(f"Loaded {len(catalog)} CDR definition(s) from {path}")
    return catalog


def load_test_catalog(path: Optional[Union[str, Path]] = None) -> TestCatalog:
    path = path or config.TEST_LIBRARY_PATH
    catalog = parse_test_definitions(_read_documents(path), path=str(path))
    logger.info(f"Loaded {len(catalog)} test definition(s) from {path}")
    return catalog
