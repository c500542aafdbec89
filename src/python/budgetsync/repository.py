"""SQLite repository implementation for the versioned entity store."""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
import sqlite3
import time
from typing import Any, Iterator

from budgetsync.exceptions import IntegrityViolation, SyncAbortedError, SyncTimeoutError
from budgetsync.persistence import PersistenceBackend
from budgetsync.schema import DEFAULT_BUSY_TIMEOUT_SECONDS, SCHEMA_STATEMENTS, TABLE_COLUMNS

# Number of SQLite VM instructions between deadline checks
PROGRESS_HANDLER_INTERVAL = 1000


class Repository(PersistenceBackend):
    """SQLite-backed persistence implementation.

    ``BEGIN IMMEDIATE`` takes the database write lock up front, so sync
    transactions are serialized against each other.
    """

    def __init__(
        self,
        db_path: str | Path,
        busy_timeout_seconds: float = DEFAULT_BUSY_TIMEOUT_SECONDS,
    ) -> None:
        """Create a repository for the given database path."""
        self.db_path = db_path if str(db_path) == ":memory:" else Path(db_path)
        self.busy_timeout_seconds = busy_timeout_seconds
        self.connection: sqlite3.Connection | None = None
        self._deadline: float | None = None
        self._savepoint_counter = 0

    def connect(self) -> None:
        """Open the database connection."""
        if self.connection is None:
            self.connection = sqlite3.connect(
                str(self.db_path),
                timeout=self.busy_timeout_seconds,
                isolation_level=None,
            )
            self.connection.row_factory = sqlite3.Row
            self.connection.execute("PRAGMA foreign_keys = ON")

    def close(self) -> None:
        """Close the database connection."""
        if self.connection is not None:
            self.connection.close()
            self.connection = None

    def initialize_schema(self) -> None:
        """Create tables and indexes when missing."""
        self._ensure_connection()
        for statement in SCHEMA_STATEMENTS:
            self.connection.execute(statement)

    def begin_transaction(self, deadline: float | None = None) -> None:
        """Begin a write transaction, interrupting work after ``deadline``."""
        self._ensure_connection()
        self._deadline = deadline
        if deadline is not None:
            self.connection.set_progress_handler(
                self._deadline_passed, PROGRESS_HANDLER_INTERVAL
            )
        try:
            self._execute("BEGIN IMMEDIATE")
        except Exception:
            self._clear_deadline()
            raise

    def commit(self) -> None:
        """Commit the current transaction."""
        self._ensure_connection()
        self._execute("COMMIT")
        self._clear_deadline()

    def rollback(self) -> None:
        """Rollback the current transaction, if one is open."""
        self._clear_deadline()
        if self.connection is not None and self.connection.in_transaction:
            self.connection.rollback()

    @contextmanager
    def savepoint(self) -> Iterator[None]:
        """Scope a block of writes so a failure undoes only that block."""
        self._savepoint_counter += 1
        name = f"change_{self._savepoint_counter}"
        self._execute(f"SAVEPOINT {name}")
        try:
            yield
        except SyncAbortedError:
            # The enclosing transaction is about to be rolled back as a whole
            raise
        except Exception:
            self._execute(f"ROLLBACK TO SAVEPOINT {name}")
            self._execute(f"RELEASE SAVEPOINT {name}")
            raise
        else:
            self._execute(f"RELEASE SAVEPOINT {name}")

    def find_by_id(
        self,
        table: str,
        entity_id: str,
        tenant: str,
        include_deleted: bool = True,
    ) -> dict[str, Any] | None:
        """Fetch a single row by id within a tenant."""
        self._validate_columns(table, [])
        sql = f'SELECT * FROM "{table}" WHERE id = ? AND familyId = ?'
        if not include_deleted:
            sql += " AND isDeleted = 0"
        row = self._execute(sql, (entity_id, tenant)).fetchone()
        return dict(row) if row is not None else None

    def create(self, table: str, values: dict[str, Any]) -> dict[str, Any]:
        """Insert a new row and return it."""
        columns = list(values)
        self._validate_columns(table, columns)
        placeholders = ", ".join("?" for _ in columns)
        self._execute(
            f'INSERT INTO "{table}" ({", ".join(columns)}) VALUES ({placeholders})',
            [values[column] for column in columns],
        )
        return self.find_by_id(table, values["id"], values["familyId"])

    def update(
        self,
        table: str,
        entity_id: str,
        tenant: str,
        patch: dict[str, Any],
        expected_version: int | None = None,
    ) -> dict[str, Any]:
        """Update a row and return the latest state.

        With ``expected_version`` the write only applies when the stored
        version still matches; a miss aborts the transaction.
        """
        columns = list(patch)
        if not columns:
            raise ValueError("Update requires at least one column")
        self._validate_columns(table, columns)
        params: list[object] = [patch[column] for column in columns]
        sql = (
            f'UPDATE "{table}" SET {", ".join(f"{column} = ?" for column in columns)} '
            "WHERE id = ? AND familyId = ?"
        )
        params.extend([entity_id, tenant])
        if expected_version is not None:
            sql += " AND version = ?"
            params.append(expected_version)
        cursor = self._execute(sql, params)
        if cursor.rowcount == 0:
            raise SyncAbortedError(f"{table} {entity_id} was modified concurrently")
        return self.find_by_id(table, entity_id, tenant)

    def list_changed_since(
        self,
        table: str,
        tenant: str,
        since: str | None,
    ) -> list[dict[str, Any]]:
        """List rows of a tenant updated strictly after ``since``."""
        self._validate_columns(table, [])
        filters = ["familyId = ?"]
        params: list[object] = [tenant]
        if since is not None:
            filters.append("updatedAt > ?")
            params.append(since)
        rows = self._execute(
            f'SELECT * FROM "{table}" WHERE {" AND ".join(filters)} ORDER BY updatedAt, id',
            params,
        ).fetchall()
        return [dict(row) for row in rows]

    def _execute(self, sql: str, params: Any = ()) -> sqlite3.Cursor:
        """Run a statement, translating driver errors to sync errors."""
        self._ensure_connection()
        try:
            return self.connection.execute(sql, params)
        except sqlite3.IntegrityError as exc:
            raise IntegrityViolation(f"Constraint violation: {exc}") from exc
        except sqlite3.OperationalError as exc:
            if self._deadline_passed():
                raise SyncTimeoutError("Sync transaction timed out") from exc
            raise SyncAbortedError(f"Storage error: {exc}") from exc

    def _deadline_passed(self) -> bool:
        return self._deadline is not None and time.monotonic() > self._deadline

    def _clear_deadline(self) -> None:
        self._deadline = None
        if self.connection is not None:
            self.connection.set_progress_handler(None, 0)

    def _ensure_connection(self) -> None:
        """Ensure the connection is initialized before use."""
        if self.connection is None:
            raise RuntimeError("Repository connection is not initialized")

    @staticmethod
    def _validate_columns(table: str, columns: list[str]) -> None:
        """Reject table or column names outside the known schema."""
        known = TABLE_COLUMNS.get(table)
        if known is None:
            raise ValueError(f"Unknown table: {table}")
        unknown = [column for column in columns if column not in known]
        if unknown:
            raise ValueError(f"Unknown columns for {table}: {', '.join(unknown)}")
