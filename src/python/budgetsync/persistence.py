"""Persistence interfaces for sync storage backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Any


class PersistenceBackend(ABC):
    """Abstract interface for the versioned entity store.

    Rows are plain dicts keyed by column name. Every entity operation is
    scoped to one tenant and runs inside the transaction opened by
    ``begin_transaction``.
    """

    @abstractmethod
    def connect(self) -> None:
        """Establish a backend connection."""

    @abstractmethod
    def close(self) -> None:
        """Close the backend connection."""

    @abstractmethod
    def initialize_schema(self) -> None:
        """Create the entity tables when missing."""

    @abstractmethod
    def begin_transaction(self, deadline: float | None = None) -> None:
        """Start a serializable transaction.

        ``deadline`` is a ``time.monotonic()`` value after which running
        statements are interrupted.
        """

    @abstractmethod
    def commit(self) -> None:
        """Commit the active transaction."""

    @abstractmethod
    def rollback(self) -> None:
        """Rollback the active transaction."""

    @abstractmethod
    def savepoint(self) -> AbstractContextManager[None]:
        """Return a context manager that undoes its block's writes on error."""

    @abstractmethod
    def find_by_id(
        self,
        table: str,
        entity_id: str,
        tenant: str,
        include_deleted: bool = True,
    ) -> dict[str, Any] | None:
        """Return one row, or None when absent in this tenant."""

    @abstractmethod
    def create(self, table: str, values: dict[str, Any]) -> dict[str, Any]:
        """Insert a row and return it as stored."""

    @abstractmethod
    def update(
        self,
        table: str,
        entity_id: str,
        tenant: str,
        patch: dict[str, Any],
        expected_version: int | None = None,
    ) -> dict[str, Any]:
        """Apply a column patch and return the row as stored."""

    @abstractmethod
    def list_changed_since(
        self,
        table: str,
        tenant: str,
        since: str | None,
    ) -> list[dict[str, Any]]:
        """Return rows with updatedAt strictly after ``since``, or all rows."""
