"""In-memory implementation of the RemoteDataPort.

This is an infrastructure adapter that implements the RemoteDataPort for
testing and development purposes. Tables are dictionaries of rows keyed by
identifier; blobs are kept in a dictionary keyed by bucket and path.
"""

from __future__ import annotations

import asyncio
import copy
import uuid
from typing import Any

from ..domain.exceptions import DataAccessError
from ..domain.queries import SelectQuery
from ..domain.value_objects import Identity
from ..ports.clock import ClockPort
from ..ports.remote_data import RemoteDataPort


class InMemoryRemoteData(RemoteDataPort):
    """In-memory table store, blob store and identity check."""

    def __init__(self, clock: ClockPort | None = None, latency: float = 0.0) -> None:
        """Initialize the in-memory storage.

        Args:
            clock: Clock stamping ``created_at`` on inserted rows
            latency: Seconds each operation waits before completing
        """
        self._tables: dict[str, dict[str, dict[str, Any]]] = {}
        self._blobs: dict[tuple[str, str], tuple[bytes, str]] = {}
        self._identity: Identity | None = None
        self._clock = clock
        self._latency = latency
        self._failures: list[tuple[str, str | None, Exception]] = []
        self.calls: list[tuple[str, str]] = []

    # RemoteDataPort

    async def select(self, table: str, query: SelectQuery | None = None) -> list[dict[str, Any]]:
        """Select rows matching the query."""
        await self._enter("select", table)
        query = query or SelectQuery()

        rows = [
            row
            for row in self._tables.get(table, {}).values()
            if all(row.get(f.column) == f.value for f in query.filters)
        ]

        if query.order is not None:
            column = query.order.column
            present = [r for r in rows if r.get(column) is not None]
            missing = [r for r in rows if r.get(column) is None]
            present.sort(key=lambda r: r[column], reverse=not query.order.ascending)
            rows = present + missing

        rows = rows[query.offset :]
        if query.limit is not None:
            rows = rows[: query.limit]

        return [self._shape(row, query) for row in rows]

    async def insert(self, table: str, record: dict[str, Any]) -> str:
        """Insert a row, generating an identifier when absent."""
        await self._enter("insert", table)
        row = copy.deepcopy(record)
        record_id = str(row.get("id") or uuid.uuid4())
        rows = self._tables.setdefault(table, {})
        if record_id in rows:
            raise DataAccessError(
                f"Duplicate key '{record_id}' in {table}", table=table, operation="insert"
            )
        row["id"] = record_id
        if self._clock is not None:
            row.setdefault("created_at", self._clock.now().isoformat())
        rows[record_id] = row
        return record_id

    async def update(self, table: str, record_id: str, patch: dict[str, Any]) -> None:
        """Update columns of one row."""
        await self._enter("update", table)
        row = self._tables.get(table, {}).get(record_id)
        if row is None:
            raise DataAccessError(
                f"No row '{record_id}' in {table}", table=table, operation="update"
            )
        row.update(copy.deepcopy(patch))

    async def upload_blob(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> str:
        """Store a blob and return its URL."""
        await self._enter("upload_blob", bucket)
        if (bucket, path) in self._blobs:
            raise DataAccessError(
                f"Object '{path}' already exists in {bucket}", table=bucket, operation="upload"
            )
        self._blobs[(bucket, path)] = (bytes(data), content_type)
        return self.public_url(bucket, path)

    async def get_identity(self) -> Identity | None:
        """Return the identity bound to the backend session."""
        await self._enter("get_identity", "auth")
        return self._identity

    # Test and development helpers

    def seed(self, table: str, rows: list[dict[str, Any]]) -> None:
        """Load rows into a table. Every row needs an ``id``."""
        target = self._tables.setdefault(table, {})
        for row in rows:
            target[str(row["id"])] = copy.deepcopy(row)

    def get_row(self, table: str, record_id: str) -> dict[str, Any] | None:
        """Copy of one stored row."""
        row = self._tables.get(table, {}).get(record_id)
        return copy.deepcopy(row) if row is not None else None

    def get_rows(self, table: str) -> list[dict[str, Any]]:
        """Copies of all rows of a table, in insertion order."""
        return [copy.deepcopy(row) for row in self._tables.get(table, {}).values()]

    def get_blob(self, bucket: str, path: str) -> bytes | None:
        """Stored blob content, if any."""
        blob = self._blobs.get((bucket, path))
        return blob[0] if blob is not None else None

    @staticmethod
    def public_url(bucket: str, path: str) -> str:
        """URL under which a stored blob is reachable."""
        return f"memory://{bucket}/{path}"

    def set_identity(self, identity: Identity | None) -> None:
        """Bind (or unbind) the backend session identity."""
        self._identity = identity

    def fail_next(self, operation: str, error: Exception, table: str | None = None) -> None:
        """Make the next matching operation raise ``error``.

        Args:
            operation: "select", "insert", "update", "upload_blob" or "get_identity"
            error: The exception to raise
            table: Only fail for this table (or bucket); any table when None
        """
        self._failures.append((operation, table, error))

    def clear(self) -> None:
        """Drop all rows, blobs, pending failures and recorded calls."""
        self._tables.clear()
        self._blobs.clear()
        self._failures.clear()
        self.calls.clear()

    # Internals

    async def _enter(self, operation: str, table: str) -> None:
        self.calls.append((operation, table))
        await asyncio.sleep(self._latency)
        for index, (op, target, error) in enumerate(self._failures):
            if op == operation and (target is None or target == table):
                del self._failures[index]
                raise error

    def _shape(self, row: dict[str, Any], query: SelectQuery) -> dict[str, Any]:
        if "*" in query.columns:
            shaped = copy.deepcopy(row)
        else:
            shaped = {c: copy.deepcopy(row.get(c)) for c in query.columns}

        for relation in query.relations:
            related = None
            local_value = row.get(relation.local_column)
            if local_value is not None:
                for candidate in self._tables.get(relation.table, {}).values():
                    if candidate.get(relation.foreign_column) == local_value:
                        related = candidate
                        break
            if related is not None and "*" not in relation.columns:
                related = {c: related.get(c) for c in relation.columns}
            shaped[relation.alias] = copy.deepcopy(related)
        return shaped
