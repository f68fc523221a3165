from __future__ import annotations

from typing import Literal

ErrorCode = Literal["NOT_FOUND", "STORAGE_ERROR", "VALIDATION_ERROR", "DUPLICATE_KEY"]


class ServiceError(RuntimeError):
    code: ErrorCode = "STORAGE_ERROR"

    def __init__(self, message: str, code: ErrorCode | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class NotFoundError(ServiceError):
    code: ErrorCode = "NOT_FOUND"


class ValidationError(ServiceError):
    code: ErrorCode = "VALIDATION_ERROR"

    def __init__(self, message: str, fields: list[str] | None = None):
        super().__init__(message)
        self.fields = list(fields or [])


class StorageError(ServiceError):
    code: ErrorCode = "STORAGE_ERROR"


class DuplicateKeyError(StorageError):
    code: ErrorCode = "DUPLICATE_KEY"

    def __init__(self, message: str, collection: str, key: dict | None = None):
        super().__init__(message)
        self.collection = collection
        self.key = dict(key or {})
