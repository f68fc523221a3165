from __future__ import annotations

import logging

from ..internal_core.config import FieldNotesConfig
from ..internal_core.contracts import FIELD_REPORTS, PROFILES
from .base import Document, DocumentStore
from .memory import InMemoryDocumentStore
from .sqlite import SQLiteDocumentStore

logger = logging.getLogger(__name__)

__all__ = [
    "Document",
    "DocumentStore",
    "InMemoryDocumentStore",
    "SQLiteDocumentStore",
    "build_store",
]


def build_store(config: FieldNotesConfig) -> DocumentStore:
    if config.FIELDNOTES_STORE_BACKEND == "sqlite":
        store: DocumentStore = SQLiteDocumentStore(config.sqlite_path())
    else:
        store = InMemoryDocumentStore()

    if config.FIELDNOTES_UNIQUE_PROFILES:
        store.ensure_unique_index(PROFILES, ["email"])
    if config.FIELDNOTES_UNIQUE_FIELD_REPORTS:
        store.ensure_unique_index(FIELD_REPORTS, ["username", "sessionID"])

    logger.info(
        "document store ready backend=%s unique_profiles=%s unique_field_reports=%s",
        store.name(),
        config.FIELDNOTES_UNIQUE_PROFILES,
        config.FIELDNOTES_UNIQUE_FIELD_REPORTS,
    )
    return store
