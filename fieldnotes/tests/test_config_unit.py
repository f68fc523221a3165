import pytest

from fieldnotes.internal_core.config import FieldNotesConfig, load_config
from fieldnotes.internal_core.contracts import FIELD_REPORTS
from fieldnotes.internal_core.errors import DuplicateKeyError
from fieldnotes.store import InMemoryDocumentStore, SQLiteDocumentStore, build_store


def test_load_config_defaults(monkeypatch) -> None:
    for name in (
        "FIELDNOTES_STORE_BACKEND",
        "FIELDNOTES_SQLITE_PATH",
        "FIELDNOTES_UNIQUE_PROFILES",
        "FIELDNOTES_UNIQUE_FIELD_REPORTS",
        "FIELDNOTES_CORS_ORIGINS",
        "FIELDNOTES_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)

    config = load_config()

    assert config.FIELDNOTES_STORE_BACKEND == "memory"
    assert config.FIELDNOTES_UNIQUE_PROFILES is False
    assert config.FIELDNOTES_UNIQUE_FIELD_REPORTS is False
    assert config.FIELDNOTES_CORS_ORIGINS == ("*",)
    assert config.FIELDNOTES_LOG_LEVEL == "INFO"


def test_load_config_reads_environment(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("FIELDNOTES_STORE_BACKEND", "SQLite")
    monkeypatch.setenv("FIELDNOTES_SQLITE_PATH", str(tmp_path / "fieldnotes.db"))
    monkeypatch.setenv("FIELDNOTES_UNIQUE_FIELD_REPORTS", "yes")
    monkeypatch.setenv("FIELDNOTES_CORS_ORIGINS", "http://localhost:3000, https://town.example")
    monkeypatch.setenv("FIELDNOTES_LOG_LEVEL", "debug")

    config = load_config()

    assert config.FIELDNOTES_STORE_BACKEND == "sqlite"
    assert config.sqlite_path() == str((tmp_path / "fieldnotes.db").resolve())
    assert config.FIELDNOTES_UNIQUE_FIELD_REPORTS is True
    assert config.FIELDNOTES_CORS_ORIGINS == ("http://localhost:3000", "https://town.example")
    assert config.FIELDNOTES_LOG_LEVEL == "DEBUG"


def test_unknown_backend_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("FIELDNOTES_STORE_BACKEND", "mongo")
    with pytest.raises(ValueError):
        load_config()


def test_build_store_applies_unique_indexes(tmp_path) -> None:
    memory = build_store(FieldNotesConfig(FIELDNOTES_UNIQUE_FIELD_REPORTS=True))
    sqlite = build_store(
        FieldNotesConfig(
            FIELDNOTES_STORE_BACKEND="sqlite",
            FIELDNOTES_SQLITE_PATH=str(tmp_path / "fieldnotes.db"),
            FIELDNOTES_UNIQUE_FIELD_REPORTS=True,
        )
    )

    assert isinstance(memory, InMemoryDocumentStore)
    assert isinstance(sqlite, SQLiteDocumentStore)
    for store in (memory, sqlite):
        store.insert_one(FIELD_REPORTS, {"username": "alice", "sessionID": "s1"})
        with pytest.raises(DuplicateKeyError):
            store.insert_one(FIELD_REPORTS, {"username": "alice", "sessionID": "s1"})
    sqlite.close()
