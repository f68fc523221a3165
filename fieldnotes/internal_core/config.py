from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

_STORE_BACKENDS = {"memory", "sqlite"}


def _project_root() -> Path:
    # fieldnotes/internal_core/config.py -> fieldnotes -> project root
    return Path(__file__).resolve().parents[2]


def _getenv_str(name: str, default: str) -> str:
    value = os.getenv(name)
    return default if value is None else value


def _getenv_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _getenv_list(name: str, default: list[str]) -> list[str]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class FieldNotesConfig:
    FIELDNOTES_STORE_BACKEND: str = "memory"
    FIELDNOTES_SQLITE_PATH: str = "./data/fieldnotes.db"
    FIELDNOTES_UNIQUE_PROFILES: bool = False
    FIELDNOTES_UNIQUE_FIELD_REPORTS: bool = False
    FIELDNOTES_CORS_ORIGINS: tuple[str, ...] = ("*",)
    FIELDNOTES_LOG_LEVEL: str = "INFO"

    def __post_init__(self) -> None:
        if self.FIELDNOTES_STORE_BACKEND not in _STORE_BACKENDS:
            raise ValueError(
                f"Unsupported FIELDNOTES_STORE_BACKEND: {self.FIELDNOTES_STORE_BACKEND!r} "
                f"(expected one of {sorted(_STORE_BACKENDS)})"
            )

    def sqlite_path(self, repo_root: Path | None = None) -> str:
        raw = self.FIELDNOTES_SQLITE_PATH
        if raw == ":memory:":
            return raw
        path = Path(raw).expanduser()
        if not path.is_absolute():
            path = (repo_root or _project_root()) / path
        return str(path.resolve())


def load_config() -> FieldNotesConfig:
    return FieldNotesConfig(
        FIELDNOTES_STORE_BACKEND=_getenv_str("FIELDNOTES_STORE_BACKEND", "memory").strip().lower(),
        FIELDNOTES_SQLITE_PATH=_getenv_str("FIELDNOTES_SQLITE_PATH", "./data/fieldnotes.db"),
        FIELDNOTES_UNIQUE_PROFILES=_getenv_bool("FIELDNOTES_UNIQUE_PROFILES", False),
        FIELDNOTES_UNIQUE_FIELD_REPORTS=_getenv_bool("FIELDNOTES_UNIQUE_FIELD_REPORTS", False),
        FIELDNOTES_CORS_ORIGINS=tuple(_getenv_list("FIELDNOTES_CORS_ORIGINS", ["*"])),
        FIELDNOTES_LOG_LEVEL=_getenv_str("FIELDNOTES_LOG_LEVEL", "INFO").strip().upper(),
    )
