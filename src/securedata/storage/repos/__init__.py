"""Repository classes for data access."""

from securedata.storage.repos.accounts_repo import AccountsRepo

__all__ = [
    "AccountsRepo",
]
