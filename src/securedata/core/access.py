"""Ownership checks for account records.

Pure decisions, no I/O. Admins may read any record; only the owner may
write, update or delete it, whatever their role.
"""

from securedata.core.errors import Unauthorized
from securedata.core.types import Account, Principal


def can_read(record: Account, principal: Principal) -> bool:
    """Owner or admin may read."""
    return record.owner == principal.id or principal.is_admin


def can_write(record: Account, principal: Principal) -> bool:
    """Only the owner may write."""
    return record.owner == principal.id


def ensure_can_read(record: Account, principal: Principal) -> None:
    if not can_read(record, principal):
        raise Unauthorized("Not authorized")


def ensure_can_write(record: Account, principal: Principal) -> None:
    if not can_write(record, principal):
        raise Unauthorized("Not authorized")
