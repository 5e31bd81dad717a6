"""Accounts repository - credential persistence with uniqueness scoping.

Two compound unique indexes back the uniqueness rules: (username, website)
and (email, website). ``find_duplicate`` is a read-only fast path for callers
that want to fail before doing other work; the indexes are the authority, and
their rejections surface as ``Conflict`` on both insert and update, naming the
violated pair. Serial numbers come from the ``counters`` row, which only goes up.
"""

import logging
import sqlite3
from datetime import datetime
from uuid import uuid4

from securedata.core.errors import Conflict, NotFound
from securedata.core.types import Account, AccountDraft, AccountPatch
from securedata.storage.db import ConnectionSupervisor

logger = logging.getLogger(__name__)

COLUMNS = (
    "id, owner, website, name, username, email, password, logo, note, "
    "attached_file, serial_number, created_at, updated_at"
)

USERNAME_TAKEN = "An account with this username already exists for this website"
EMAIL_TAKEN = "An account with this email already exists for this website"
DUPLICATE_ENTRY = (
    "Duplicate entry found. Please check username and email combination."
)


def _conflict_message(exc: sqlite3.IntegrityError) -> str | None:
    """Map a unique index rejection to a user-facing message; None otherwise."""
    message = str(exc)
    if not message.startswith("UNIQUE constraint failed"):
        return None
    if "accounts.username" in message:
        return USERNAME_TAKEN
    if "accounts.email" in message:
        return EMAIL_TAKEN
    return DUPLICATE_ENTRY


def _row_to_account(row: sqlite3.Row) -> Account:
    return Account(
        id=row["id"],
        owner=row["owner"],
        website=row["website"],
        name=row["name"],
        username=row["username"],
        email=row["email"],
        password=row["password"],
        logo=row["logo"],
        note=row["note"],
        attached_file=row["attached_file"],
        serial_number=row["serial_number"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


class AccountsRepo:
    """Repository for account records."""

    def __init__(self, supervisor: ConnectionSupervisor):
        """
        Initialize accounts repository.

        Args:
            supervisor: Owner of the live database connection
        """
        self.supervisor = supervisor

    def find_duplicate(self, website: str, username: str, email: str) -> str | None:
        """
        Check both uniqueness scopes for an existing account.

        Returns:
            A conflict message, or None if neither pair is taken
        """
        with self.supervisor.connection() as conn:
            if conn.execute(
                "SELECT 1 FROM accounts WHERE website = ? AND username = ?",
                (website, username),
            ).fetchone():
                return USERNAME_TAKEN
            if conn.execute(
                "SELECT 1 FROM accounts WHERE website = ? AND email = ?",
                (website, email),
            ).fetchone():
                return EMAIL_TAKEN
        return None

    def create(self, draft: AccountDraft) -> Account:
        """
        Insert a new account.

        Raises:
            Conflict: If (username, website) or (email, website) is taken
        """
        account_id = str(uuid4())
        now = datetime.now().isoformat()
        with self.supervisor.connection() as conn:
            try:
                conn.execute(
                    "UPDATE counters SET value = value + 1 WHERE name = 'accounts'"
                )
                conn.execute(
                    f"""
                    INSERT INTO accounts ({COLUMNS})
                    SELECT ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, value, ?, ?
                    FROM counters WHERE name = 'accounts'
                    """,
                    (
                        account_id,
                        draft.owner,
                        draft.website,
                        draft.name,
                        draft.username,
                        draft.email,
                        draft.password,
                        draft.logo,
                        draft.note,
                        draft.attached_file,
                        now,
                        now,
                    ),
                )
            except sqlite3.IntegrityError as exc:
                message = _conflict_message(exc)
                if message is None:
                    raise
                logger.info("Unique index rejected insert: %s", exc)
                raise Conflict(message) from exc
            row = conn.execute(
                f"SELECT {COLUMNS} FROM accounts WHERE id = ?", (account_id,)
            ).fetchone()
        return _row_to_account(row)

    def list_by_owner(self, owner: str) -> list[Account]:
        """Get all accounts owned by a principal, in serial number order."""
        with self.supervisor.connection() as conn:
            rows = conn.execute(
                f"""
                SELECT {COLUMNS}
                FROM accounts
                WHERE owner = ?
                ORDER BY serial_number
                """,
                (owner,),
            ).fetchall()
        return [_row_to_account(row) for row in rows]

    def get_by_id(self, account_id: str) -> Account:
        """
        Get an account by ID.

        Raises:
            NotFound: If no account has this ID
        """
        with self.supervisor.connection() as conn:
            row = conn.execute(
                f"SELECT {COLUMNS} FROM accounts WHERE id = ?", (account_id,)
            ).fetchone()
        if row is None:
            raise NotFound("Account not found")
        return _row_to_account(row)

    def update(self, account_id: str, patch: AccountPatch) -> Account:
        """
        Overwrite the mutable fields of an account (last write wins).

        Raises:
            NotFound: If no account has this ID
            Conflict: If the new values collide with another account
        """
        with self.supervisor.connection() as conn:
            try:
                cursor = conn.execute(
                    """
                    UPDATE accounts
                    SET website = ?, name = ?, username = ?, email = ?,
                        password = ?, logo = ?, note = ?, attached_file = ?,
                        updated_at = ?
                    WHERE id = ?
                    """,
                    (
                        patch.website,
                        patch.name,
                        patch.username,
                        patch.email,
                        patch.password,
                        patch.logo,
                        patch.note,
                        patch.attached_file,
                        datetime.now().isoformat(),
                        account_id,
                    ),
                )
            except sqlite3.IntegrityError as exc:
                message = _conflict_message(exc)
                if message is None:
                    raise
                logger.info("Unique index rejected update of %s: %s", account_id, exc)
                raise Conflict(message) from exc
            if cursor.rowcount == 0:
                raise NotFound("Account not found")
            row = conn.execute(
                f"SELECT {COLUMNS} FROM accounts WHERE id = ?", (account_id,)
            ).fetchone()
        return _row_to_account(row)

    def delete(self, account_id: str) -> Account:
        """
        Delete an account.

        Returns:
            The account as it was before deletion

        Raises:
            NotFound: If no account has this ID
        """
        with self.supervisor.connection() as conn:
            row = conn.execute(
                f"SELECT {COLUMNS} FROM accounts WHERE id = ?", (account_id,)
            ).fetchone()
            if row is None:
                raise NotFound("Account not found")
            conn.execute("DELETE FROM accounts WHERE id = ?", (account_id,))
        return _row_to_account(row)
