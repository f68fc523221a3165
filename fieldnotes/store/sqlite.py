from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from pathlib import Path
from threading import RLock
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from ..internal_core.contracts import UpdateResult, UpsertResult
from ..internal_core.errors import DuplicateKeyError, StorageError
from .base import Document, DocumentStore, validate_name

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    collection TEXT NOT NULL,
    id TEXT NOT NULL UNIQUE,
    body TEXT NOT NULL
)
"""


def _json_path(key: str) -> str:
    return f"$.{validate_name('key', key)}"


def _where(collection: str, query: Mapping[str, Any]) -> Tuple[str, List[Any]]:
    clauses = ["collection = ?"]
    params: List[Any] = [collection]
    for key, value in query.items():
        # IS so that a None value also matches a missing key.
        clauses.append("json_extract(body, ?) IS ?")
        params.extend([_json_path(key), value])
    return " AND ".join(clauses), params


def _decode(doc_id: str, body: str) -> Document:
    document = json.loads(body)
    document["_id"] = doc_id
    return document


def _encode(document: Mapping[str, Any]) -> str:
    return json.dumps({k: v for k, v in document.items() if k != "_id"}, ensure_ascii=False)


class SQLiteDocumentStore(DocumentStore):
    """JSON documents in a single SQLite table behind one long-lived connection."""

    def __init__(self, db_path: str) -> None:
        if db_path != ":memory:":
            Path(db_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
        self._db_path = db_path
        self._lock = RLock()
        try:
            self._conn: Optional[sqlite3.Connection] = sqlite3.connect(
                db_path, check_same_thread=False
            )
            with self._conn:
                self._conn.execute(_SCHEMA)
                self._conn.execute(
                    "CREATE INDEX IF NOT EXISTS idx_documents_collection ON documents (collection)"
                )
        except sqlite3.Error as exc:
            raise StorageError(f"Unable to open document store at {db_path}: {exc}") from exc

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError("Document store is closed")
        return self._conn

    def _select(
        self, collection: str, query: Mapping[str, Any], limit: Optional[int] = None
    ) -> List[Tuple[int, str, str]]:
        validate_name("collection", collection)
        where, params = _where(collection, query)
        sql = f"SELECT seq, id, body FROM documents WHERE {where} ORDER BY seq"
        if limit is not None:
            sql += f" LIMIT {int(limit)}"
        return list(self._connection().execute(sql, params).fetchall())

    def find_one(self, collection: str, query: Mapping[str, Any]) -> Optional[Document]:
        with self._lock:
            try:
                rows = self._select(collection, query, limit=1)
            except sqlite3.Error as exc:
                raise StorageError(f"find_one failed on {collection}: {exc}") from exc
        if not rows:
            return None
        _, doc_id, body = rows[0]
        return _decode(doc_id, body)

    def find(self, collection: str, query: Mapping[str, Any]) -> List[Document]:
        with self._lock:
            try:
                rows = self._select(collection, query)
            except sqlite3.Error as exc:
                raise StorageError(f"find failed on {collection}: {exc}") from exc
        return [_decode(doc_id, body) for _, doc_id, body in rows]

    def count(self, collection: str, query: Mapping[str, Any]) -> int:
        validate_name("collection", collection)
        where, params = _where(collection, query)
        with self._lock:
            try:
                row = self._connection().execute(
                    f"SELECT COUNT(*) FROM documents WHERE {where}", params
                ).fetchone()
            except sqlite3.Error as exc:
                raise StorageError(f"count failed on {collection}: {exc}") from exc
        return int(row[0])

    def _insert(self, conn: sqlite3.Connection, collection: str, document: Mapping[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        conn.execute(
            "INSERT INTO documents (collection, id, body) VALUES (?, ?, ?)",
            (collection, doc_id, _encode(document)),
        )
        return doc_id

    def insert_one(self, collection: str, document: Mapping[str, Any]) -> str:
        validate_name("collection", collection)
        with self._lock:
            conn = self._connection()
            try:
                with conn:
                    return self._insert(conn, collection, document)
            except sqlite3.IntegrityError as exc:
                raise DuplicateKeyError(
                    f"Duplicate key in {collection}: {exc}", collection=collection
                ) from exc
            except sqlite3.Error as exc:
                raise StorageError(f"insert_one failed on {collection}: {exc}") from exc

    def _update_row(
        self, conn: sqlite3.Connection, row: Tuple[int, str, str], fields: Mapping[str, Any]
    ) -> int:
        seq, doc_id, body = row
        current = _decode(doc_id, body)
        changes = {
            k: v for k, v in fields.items() if k != "_id" and current.get(k, object()) != v
        }
        if not changes:
            return 0
        current.update(changes)
        conn.execute("UPDATE documents SET body = ? WHERE seq = ?", (_encode(current), seq))
        return 1

    def update_one(
        self, collection: str, query: Mapping[str, Any], fields: Mapping[str, Any]
    ) -> UpdateResult:
        with self._lock:
            conn = self._connection()
            try:
                with conn:
                    rows = self._select(collection, query, limit=1)
                    if not rows:
                        return UpdateResult(matched_count=0, modified_count=0)
                    modified = self._update_row(conn, rows[0], fields)
            except sqlite3.IntegrityError as exc:
                raise DuplicateKeyError(
                    f"Duplicate key in {collection}: {exc}", collection=collection
                ) from exc
            except sqlite3.Error as exc:
                raise StorageError(f"update_one failed on {collection}: {exc}") from exc
        return UpdateResult(matched_count=1, modified_count=modified)

    def upsert_one(
        self, collection: str, query: Mapping[str, Any], fields: Mapping[str, Any]
    ) -> UpsertResult:
        with self._lock:
            conn = self._connection()
            try:
                with conn:
                    rows = self._select(collection, query, limit=1)
                    if rows:
                        modified = self._update_row(conn, rows[0], fields)
                        return UpsertResult(matched_count=1, modified_count=modified)
                    doc_id = self._insert(conn, collection, {**dict(query), **dict(fields)})
            except sqlite3.IntegrityError as exc:
                raise DuplicateKeyError(
                    f"Duplicate key in {collection}: {exc}", collection=collection
                ) from exc
            except sqlite3.Error as exc:
                raise StorageError(f"upsert_one failed on {collection}: {exc}") from exc
        return UpsertResult(matched_count=0, modified_count=0, upserted_id=doc_id)

    def ensure_unique_index(self, collection: str, keys: Sequence[str]) -> None:
        validate_name("collection", collection)
        key_names = [validate_name("key", k) for k in keys]
        if not key_names:
            raise ValueError("Unique index needs at least one key")
        index_name = f"uq_{collection}_{'_'.join(key_names)}"
        # DDL takes no bound parameters; names are validated identifiers.
        columns = ", ".join(f"json_extract(body, '$.{k}')" for k in key_names)
        sql = (
            f"CREATE UNIQUE INDEX IF NOT EXISTS {index_name} "
            f"ON documents ({columns}) WHERE collection = '{collection}'"
        )
        with self._lock:
            conn = self._connection()
            try:
                with conn:
                    conn.execute(sql)
            except sqlite3.IntegrityError as exc:
                raise DuplicateKeyError(
                    f"Existing duplicates prevent unique index on {collection}: "
                    f"{', '.join(key_names)}",
                    collection=collection,
                ) from exc
            except sqlite3.Error as exc:
                raise StorageError(
                    f"ensure_unique_index failed on {collection}: {exc}"
                ) from exc
        logger.info("unique index ensured collection=%s keys=%s", collection, key_names)

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
