"""Storage layer for SecureData - supervised SQLite connection and repositories."""

from securedata.storage.db import ConnectionSupervisor, get_supervisor
from securedata.storage.repos import AccountsRepo

__all__ = [
    "ConnectionSupervisor",
    "get_supervisor",
    "AccountsRepo",
]
