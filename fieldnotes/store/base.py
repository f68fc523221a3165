from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..internal_core.contracts import UpdateResult, UpsertResult

Document = Dict[str, Any]

_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def validate_name(kind: str, name: str) -> str:
    if not isinstance(name, str) or not _NAME_RE.match(name):
        raise ValueError(f"Invalid {kind} name: {name!r}")
    return name


def validate_query(query: Mapping[str, Any]) -> None:
    for key in query:
        validate_name("key", key)


def matches(document: Mapping[str, Any], query: Mapping[str, Any]) -> bool:
    return all(document.get(key) == value for key, value in query.items())


class DocumentStore(ABC):
    """Single-document primitives over named, schema-less collections.

    Every primitive touches at most one logical record and is atomic with
    respect to other primitives on the same store.
    """

    @abstractmethod
    def find_one(self, collection: str, query: Mapping[str, Any]) -> Optional[Document]: ...

    @abstractmethod
    def find(self, collection: str, query: Mapping[str, Any]) -> List[Document]: ...

    @abstractmethod
    def insert_one(self, collection: str, document: Mapping[str, Any]) -> str: ...

    @abstractmethod
    def update_one(
        self, collection: str, query: Mapping[str, Any], fields: Mapping[str, Any]
    ) -> UpdateResult: ...

    @abstractmethod
    def upsert_one(
        self, collection: str, query: Mapping[str, Any], fields: Mapping[str, Any]
    ) -> UpsertResult: ...

    @abstractmethod
    def ensure_unique_index(self, collection: str, keys: Sequence[str]) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    def count(self, collection: str, query: Mapping[str, Any]) -> int:
        return len(self.find(collection, query))

    def name(self) -> str:
        return type(self).__name__
