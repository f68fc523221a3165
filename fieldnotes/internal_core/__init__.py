from .config import FieldNotesConfig, load_config
from .errors import DuplicateKeyError, NotFoundError, ServiceError, StorageError, ValidationError

__all__ = [
    "FieldNotesConfig",
    "load_config",
    "ServiceError",
    "NotFoundError",
    "ValidationError",
    "StorageError",
    "DuplicateKeyError",
]
