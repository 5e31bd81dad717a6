"""SecureData core library - the credential vault engine."""

from securedata.core.errors import (
    Conflict,
    InternalError,
    NotFound,
    PayloadTooLarge,
    SecureDataError,
    StorageUnavailable,
    Unauthorized,
    ValidationError,
)
from securedata.core.types import Account, Principal, Role, Stage

__all__ = [
    # Types
    "Account",
    "Principal",
    "Role",
    "Stage",
    # Errors
    "Conflict",
    "InternalError",
    "NotFound",
    "PayloadTooLarge",
    "SecureDataError",
    "StorageUnavailable",
    "Unauthorized",
    "ValidationError",
]
