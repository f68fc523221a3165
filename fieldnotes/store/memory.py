from __future__ import annotations

import copy
import uuid
from threading import RLock
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..internal_core.contracts import UpdateResult, UpsertResult
from ..internal_core.errors import DuplicateKeyError, StorageError
from .base import Document, DocumentStore, matches, validate_name, validate_query


class InMemoryDocumentStore(DocumentStore):
    def __init__(self) -> None:
        self._lock = RLock()
        self._collections: Dict[str, Dict[str, Document]] = {}
        self._unique_keys: Dict[str, List[Tuple[str, ...]]] = {}
        self._closed = False

    def _collection(self, collection: str) -> Dict[str, Document]:
        if self._closed:
            raise StorageError("Document store is closed")
        validate_name("collection", collection)
        return self._collections.setdefault(collection, {})

    def _first_match(
        self, docs: Dict[str, Document], query: Mapping[str, Any]
    ) -> Optional[Document]:
        validate_query(query)
        for doc in docs.values():
            if matches(doc, query):
                return doc
        return None

    def _check_unique(
        self, collection: str, candidate: Mapping[str, Any], ignore_id: Optional[str]
    ) -> None:
        docs = self._collections.get(collection, {})
        for keys in self._unique_keys.get(collection, []):
            key = {k: candidate.get(k) for k in keys}
            if any(value is None for value in key.values()):
                continue
            for doc_id, doc in docs.items():
                if doc_id != ignore_id and matches(doc, key):
                    raise DuplicateKeyError(
                        f"Duplicate key in {collection}: {', '.join(keys)}",
                        collection=collection,
                        key=key,
                    )

    def find_one(self, collection: str, query: Mapping[str, Any]) -> Optional[Document]:
        with self._lock:
            doc = self._first_match(self._collection(collection), query)
            return copy.deepcopy(doc) if doc is not None else None

    def find(self, collection: str, query: Mapping[str, Any]) -> List[Document]:
        with self._lock:
            docs = self._collection(collection)
            validate_query(query)
            return [copy.deepcopy(doc) for doc in docs.values() if matches(doc, query)]

    def insert_one(self, collection: str, document: Mapping[str, Any]) -> str:
        with self._lock:
            docs = self._collection(collection)
            doc_id = uuid.uuid4().hex
            stored = copy.deepcopy(dict(document))
            stored.pop("_id", None)
            self._check_unique(collection, stored, ignore_id=None)
            stored["_id"] = doc_id
            docs[doc_id] = stored
            return doc_id

    def update_one(
        self, collection: str, query: Mapping[str, Any], fields: Mapping[str, Any]
    ) -> UpdateResult:
        with self._lock:
            docs = self._collection(collection)
            doc = self._first_match(docs, query)
            if doc is None:
                return UpdateResult(matched_count=0, modified_count=0)
            return UpdateResult(matched_count=1, modified_count=self._apply(collection, doc, fields))

    def upsert_one(
        self, collection: str, query: Mapping[str, Any], fields: Mapping[str, Any]
    ) -> UpsertResult:
        with self._lock:
            docs = self._collection(collection)
            doc = self._first_match(docs, query)
            if doc is None:
                doc_id = self.insert_one(collection, {**dict(query), **dict(fields)})
                return UpsertResult(matched_count=0, modified_count=0, upserted_id=doc_id)
            return UpsertResult(matched_count=1, modified_count=self._apply(collection, doc, fields))

    def _apply(self, collection: str, doc: Document, fields: Mapping[str, Any]) -> int:
        changes = {
            k: copy.deepcopy(v)
            for k, v in fields.items()
            if k != "_id" and doc.get(k, object()) != v
        }
        if not changes:
            return 0
        self._check_unique(collection, {**doc, **changes}, ignore_id=doc["_id"])
        doc.update(changes)
        return 1

    def ensure_unique_index(self, collection: str, keys: Sequence[str]) -> None:
        key_tuple = tuple(validate_name("key", k) for k in keys)
        if not key_tuple:
            raise ValueError("Unique index needs at least one key")
        with self._lock:
            docs = self._collection(collection)
            existing = self._unique_keys.setdefault(collection, [])
            if key_tuple in existing:
                return
            seen = set()
            for doc in docs.values():
                if any(doc.get(k) is None for k in key_tuple):
                    continue
                marker = tuple(repr(doc.get(k)) for k in key_tuple)
                if marker in seen:
                    raise DuplicateKeyError(
                        f"Existing duplicates prevent unique index on {collection}: {', '.join(key_tuple)}",
                        collection=collection,
                    )
                seen.add(marker)
            existing.append(key_tuple)

    def close(self) -> None:
        with self._lock:
            self._closed = True
            self._collections = {}
