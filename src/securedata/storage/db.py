"""SQLite connection supervision and schema bootstrap."""

import logging
import sqlite3
import threading
from collections import defaultdict
from collections.abc import Callable
from contextlib import contextmanager
from enum import StrEnum
from pathlib import Path
from typing import Any, Generator

from securedata.core.config import DATABASE_PATH, RECONNECT_DELAY_SECONDS
from securedata.core.errors import StorageUnavailable

logger = logging.getLogger(__name__)

SCHEMA = """
    CREATE TABLE IF NOT EXISTS accounts (
        id TEXT PRIMARY KEY,
        owner TEXT NOT NULL,
        website TEXT NOT NULL,
        name TEXT NOT NULL,
        username TEXT NOT NULL,
        email TEXT NOT NULL,
        password TEXT NOT NULL,
        logo TEXT NOT NULL,
        note TEXT,
        attached_file TEXT,
        serial_number INTEGER NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    CREATE TABLE IF NOT EXISTS counters (
        name TEXT PRIMARY KEY,
        value INTEGER NOT NULL
    );
    INSERT OR IGNORE INTO counters (name, value)
        SELECT 'accounts', COALESCE(MAX(serial_number), 0) FROM accounts;
"""

# (name, statement); IF NOT EXISTS makes every run after the first a no-op
INDEXES = (
    (
        "idx_accounts_username_website",
        "CREATE UNIQUE INDEX IF NOT EXISTS idx_accounts_username_website "
        "ON accounts(username, website)",
    ),
    (
        "idx_accounts_email_website",
        "CREATE UNIQUE INDEX IF NOT EXISTS idx_accounts_email_website "
        "ON accounts(email, website)",
    ),
    (
        "idx_accounts_owner",
        "CREATE INDEX IF NOT EXISTS idx_accounts_owner ON accounts(owner)",
    ),
)

# Messages meaning the handle itself is unusable, as opposed to a busy
# database or a bad statement
LOST_CONNECTION_MESSAGES = (
    "cannot operate on a closed database",
    "disk i/o error",
    "unable to open database file",
    "database disk image is malformed",
    "file is not a database",
)


def is_connection_lost(exc: sqlite3.Error) -> bool:
    """Whether an error means the connection must be dropped and reopened."""
    if isinstance(exc, sqlite3.InterfaceError):
        return True
    message = str(exc).lower()
    return any(text in message for text in LOST_CONNECTION_MESSAGES)


def ensure_indexes(conn: sqlite3.Connection) -> None:
    """Create the accounts table, its serial counter and its indexes if missing."""
    conn.executescript(SCHEMA)
    for name, statement in INDEXES:
        conn.execute(statement)
        logger.debug("Index ready: %s", name)
    conn.commit()
    logger.info("Account indexes created successfully")


class ConnectionState(StrEnum):
    """Lifecycle states of the supervised connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"


class ConnectionSupervisor:
    """
    Owns the process-wide database connection and keeps it alive.

    Lifecycle: connect -> [error | disconnect -> reconnect]* -> shutdown.
    Reconnects are retried after a fixed delay, forever, until shutdown().
    """

    def __init__(
        self,
        db_path: Path | str | None = None,
        reconnect_delay: float | None = None,
        connect: Callable[..., sqlite3.Connection] = sqlite3.connect,
    ):
        """
        Initialize connection supervisor.

        Args:
            db_path: Path to SQLite database (defaults to DATABASE_PATH)
            reconnect_delay: Seconds to wait before each reconnect attempt
            connect: Connection factory (sqlite3.connect signature)
        """
        self.db_path = Path(db_path) if db_path else DATABASE_PATH
        self.reconnect_delay = (
            RECONNECT_DELAY_SECONDS if reconnect_delay is None else reconnect_delay
        )
        self._connect_fn = connect
        self._connection: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        self._observers: dict[str, list[Callable[..., Any]]] = defaultdict(list)
        self._observing = False
        self._reconnect_timer: threading.Timer | None = None
        self.state = ConnectionState.DISCONNECTED
        self.reconnect_attempts = 0
        self.last_error: str | None = None

    # --- signals ---

    def on(self, event: str, callback: Callable[..., Any]) -> None:
        """Register an observer for 'connected', 'disconnected' or 'error'."""
        self._observers[event].append(callback)

    def emit(self, event: str, *args: Any) -> None:
        """Notify observers of a connection event."""
        for callback in list(self._observers[event]):
            callback(*args)

    # --- lifecycle ---

    @property
    def is_connected(self) -> bool:
        return self.state == ConnectionState.CONNECTED

    def start(self) -> bool:
        """
        Connect and begin supervising the connection.

        Returns:
            True if the initial connection succeeded. On failure a retry is
            already scheduled, so callers need not act on False.
        """
        if not self._observing:
            self.on("disconnected", self._handle_disconnected)
            self.on("error", self._handle_error)
            self._observing = True
        if self.state == ConnectionState.CLOSED:
            self.state = ConnectionState.DISCONNECTED
        return self._connect()

    def shutdown(self) -> None:
        """Close the connection for good; no reconnects after this."""
        with self._lock:
            self.state = ConnectionState.CLOSED
        self._cancel_reconnect()
        self._force_close()
        logger.info("Database disconnected through app termination")

    def _connect(self) -> bool:
        with self._lock:
            if self.state == ConnectionState.CLOSED:
                return False
            self.state = ConnectionState.CONNECTING

        conn: sqlite3.Connection | None = None
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = self._connect_fn(self.db_path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            ensure_indexes(conn)
        except (sqlite3.Error, OSError) as exc:
            logger.error("Error connecting to database: %s", exc)
            self.last_error = str(exc)
            if conn is not None:
                self._close_quietly(conn)
            with self._lock:
                if self.state == ConnectionState.CLOSED:
                    return False
                self.state = ConnectionState.DISCONNECTED
            logger.info("Retrying connection in %s seconds...", self.reconnect_delay)
            self._schedule_reconnect()
            return False

        with self._lock:
            if self.state == ConnectionState.CLOSED:
                self._close_quietly(conn)
                return False
            self._connection = conn
            self.state = ConnectionState.CONNECTED
        logger.info("Database connected: %s", self.db_path)
        self.emit("connected")
        return True

    def _handle_disconnected(self) -> None:
        self._force_close()
        if self.state == ConnectionState.CLOSED:
            return
        self.state = ConnectionState.DISCONNECTED
        logger.warning("Database disconnected! Attempting to reconnect...")
        self._schedule_reconnect()

    def _handle_error(self, exc: BaseException) -> None:
        logger.error("Database connection error: %s", exc)
        self.last_error = str(exc)
        self.emit("disconnected")

    def _force_close(self) -> None:
        with self._lock:
            conn = self._connection
            self._connection = None
        if conn is not None:
            self._close_quietly(conn)

    @staticmethod
    def _close_quietly(conn: sqlite3.Connection) -> None:
        try:
            conn.close()
        except sqlite3.Error as exc:
            logger.debug("Ignoring error while closing connection: %s", exc)

    def _schedule_reconnect(self) -> None:
        with self._lock:
            if self.state == ConnectionState.CLOSED or self._reconnect_timer:
                return
            timer = threading.Timer(self.reconnect_delay, self._reconnect)
            timer.daemon = True
            self._reconnect_timer = timer
        timer.start()

    def _cancel_reconnect(self) -> None:
        with self._lock:
            timer = self._reconnect_timer
            self._reconnect_timer = None
        if timer is not None:
            timer.cancel()

    def _reconnect(self) -> None:
        with self._lock:
            self._reconnect_timer = None
        if self.state == ConnectionState.CLOSED:
            return
        self.reconnect_attempts += 1
        logger.info("Reconnecting to database (attempt %d)", self.reconnect_attempts)
        self._connect()

    # --- access ---

    @contextmanager
    def connection(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Use the live connection inside a transaction.

        Commits on success and rolls back on error. Broken-connection errors
        are reported through the 'error' signal.

        Raises:
            StorageUnavailable: If there is no live connection
        """
        with self._lock:
            conn = self._connection
            if conn is None or self.state != ConnectionState.CONNECTED:
                raise StorageUnavailable("Database is not connected")
            try:
                yield conn
                conn.commit()
            except sqlite3.Error as exc:
                self._rollback_quietly(conn)
                if not is_connection_lost(exc):
                    raise
                self.emit("error", exc)
                raise StorageUnavailable("Database connection lost") from exc
            except Exception:
                self._rollback_quietly(conn)
                raise

    @staticmethod
    def _rollback_quietly(conn: sqlite3.Connection) -> None:
        try:
            conn.rollback()
        except sqlite3.Error as exc:
            logger.debug("Rollback failed: %s", exc)

    def status(self) -> dict[str, Any]:
        """Connection status for health reporting."""
        return {
            "state": self.state.value,
            "connected": self.is_connected,
            "database": str(self.db_path),
            "reconnect_attempts": self.reconnect_attempts,
            "last_error": self.last_error,
        }


# Default instance for singleton pattern
_supervisor: ConnectionSupervisor | None = None


def get_supervisor() -> ConnectionSupervisor:
    """Get or create the default connection supervisor."""
    global _supervisor
    if _supervisor is None:
        _supervisor = ConnectionSupervisor()
    return _supervisor


def set_supervisor(supervisor: ConnectionSupervisor) -> None:
    """Set the default connection supervisor (for testing)."""
    global _supervisor
    _supervisor = supervisor
