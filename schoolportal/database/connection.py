"""SQLite connection management for the school portal.

A ``Database`` owns a small thread-safe connection pool for one database
file. It is created once at startup and passed explicitly to the
repository and the HTTP app, so tests can open as many isolated stores as
they need.
"""

import os
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from queue import Empty, Full, Queue
from typing import Iterator, Optional

from dotenv import load_dotenv

from ..errors import ConstraintViolation
from ..logutils import get_logger

load_dotenv()

logger = get_logger(__name__)

DB_PATH = Path(os.getenv("DATABASE_PATH", "school.db"))

_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "5"))
_POOL_TIMEOUT = float(os.getenv("DB_POOL_TIMEOUT", "30.0"))

SCHEMA_PATH = Path(__file__).parent / "schema.sql"


class ConnectionPool:
    """Thread-safe SQLite connection pool with WAL mode.

    FastAPI runs synchronous endpoints in a worker threadpool, so several
    requests may need a connection at the same time.
    """

    def __init__(self, db_path: Path, pool_size: int = 5, timeout: float = 30.0):
        """Initialize the connection pool.

        Args:
            db_path: Path to the SQLite database file
            pool_size: Maximum number of idle connections kept
            timeout: Seconds to wait for an available connection
        """
        self._db_path = self._validate_path(db_path)
        self._pool_size = pool_size
        self._timeout = timeout
        self._pool: Queue[sqlite3.Connection] = Queue(maxsize=pool_size)
        self._lock = threading.Lock()
        self._created = 0

    @property
    def db_path(self) -> Path:
        return self._db_path

    @staticmethod
    def _validate_path(db_path: Path) -> Path:
        """Reject paths that climb out of their directory.

        Raises:
            ValueError: If the path contains ``..`` components
        """
        if ".." in Path(db_path).parts:
            raise ValueError(f"Invalid database path: {db_path}")
        return Path(db_path).resolve()

    def _create_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            str(self._db_path),
            check_same_thread=False,  # connections move between pool threads
            timeout=self._timeout,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode = WAL")
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("PRAGMA busy_timeout = 5000")
        conn.execute("PRAGMA synchronous = NORMAL")
        return conn

    def get_connection(self) -> sqlite3.Connection:
        """Take a connection from the pool, opening a new one when needed.

        Raises:
            TimeoutError: If every connection stays busy past the timeout
        """
        try:
            return self._pool.get_nowait()
        except Empty:
            pass

        with self._lock:
            if self._created < self._pool_size:
                self._created += 1
                logger.debug(
                    "Opening new connection",
                    extra={"extra_data": {"open_connections": self._created}},
                )
                return self._create_connection()

        try:
            return self._pool.get(block=True, timeout=self._timeout)
        except Empty:
            logger.error(
                "Connection pool exhausted",
                extra={"extra_data": {"timeout": self._timeout, "pool_size": self._pool_size}},
            )
            raise TimeoutError(f"Connection pool exhausted after {self._timeout}s")

    def return_connection(self, conn: sqlite3.Connection) -> None:
        try:
            self._pool.put_nowait(conn)
        except Full:
            conn.close()
            with self._lock:
                self._created -= 1

    def close_all(self) -> None:
        while True:
            try:
                conn = self._pool.get_nowait()
            except Empty:
                break
            conn.close()
        with self._lock:
            self._created = 0


def _constraint_message(error: sqlite3.IntegrityError) -> str:
    text = str(error)
    if "users.email" in text:
        return "A user with this email already exists"
    if "FOREIGN KEY" in text:
        return "The change references a record that does not exist"
    return "The change conflicts with existing data"


class Database:
    """Handle to one portal database file.

    Example:
        db = Database(Path("school.db"))
        db.init_schema()
        with db.connection() as conn:
            rows = conn.execute("SELECT * FROM news").fetchall()
    """

    def __init__(
        self,
        db_path: Optional[Path] = None,
        pool_size: int = _POOL_SIZE,
        timeout: float = _POOL_TIMEOUT,
    ):
        self._pool = ConnectionPool(Path(db_path or DB_PATH), pool_size, timeout)

    @property
    def path(self) -> Path:
        return self._pool.db_path

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Yield a pooled connection; commit on success, roll back on error.

        ``sqlite3.IntegrityError`` is re-raised as ``ConstraintViolation``.
        """
        conn = self._pool.get_connection()
        try:
            yield conn
            conn.commit()
        except sqlite3.IntegrityError as e:
            conn.rollback()
            logger.warning("Store rejected write", extra={"extra_data": {"reason": str(e)}})
            raise ConstraintViolation(_constraint_message(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            self._pool.return_connection(conn)

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run several statements atomically.

        The write lock is taken up front with ``BEGIN IMMEDIATE`` so no other
        writer can interleave; every exit path either commits everything or
        rolls everything back.
        """
        with self.connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            yield conn

    def init_schema(self) -> None:
        """Create tables and indexes if they do not exist."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.connection() as conn:
            conn.executescript(SCHEMA_PATH.read_text(encoding="utf-8"))
        logger.info("Schema ready", extra={"extra_data": {"path": str(self.path)}})

    def verify(self) -> dict:
        """Report the tables present and their row counts."""
        if not self.path.exists():
            return {"exists": False, "path": str(self.path), "tables": [], "row_counts": {}}

        with self.connection() as conn:
            tables = [
                row["name"]
                for row in conn.execute(
                    "SELECT name FROM sqlite_master WHERE type='table' "
                    "AND name NOT LIKE 'sqlite_%' ORDER BY name"
                )
            ]
            # Names come from sqlite_master, never from user input.
            counts = {
                table: conn.execute(f"SELECT COUNT(*) AS cnt FROM [{table}]").fetchone()["cnt"]
                for table in tables
            }

        return {"exists": True, "path": str(self.path), "tables": tables, "row_counts": counts}

    def reset(self) -> None:
        """Delete the database file so the next ``init_schema`` starts empty."""
        self.close()
        for suffix in ("", "-wal", "-shm"):
            candidate = Path(f"{self.path}{suffix}")
            if candidate.exists():
                candidate.unlink()
        logger.info("Database removed", extra={"extra_data": {"path": str(self.path)}})

    def close(self) -> None:
        self._pool.close_all()
