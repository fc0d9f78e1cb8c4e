"""Remote data port - contract for the hosted table store, blob storage and identity check."""

from abc import ABC, abstractmethod
from typing import Any

from ..domain.queries import SelectQuery
from ..domain.value_objects import Identity


class RemoteDataPort(ABC):
    """Abstract interface for the hosted backend.

    All operations are asynchronous and may fail with
    :class:`~mowglians_sdk.domain.exceptions.TransportError` or
    :class:`~mowglians_sdk.domain.exceptions.AuthorizationError`.
    """

    @abstractmethod
    async def select(self, table: str, query: SelectQuery | None = None) -> list[dict[str, Any]]:
        """Select rows from a table.

        Args:
            table: The table to read
            query: Columns, equality filters, ordering, embedded relations and paging

        Returns:
            The matching rows; embedded relations appear under their alias
        """
        ...

    @abstractmethod
    async def insert(self, table: str, record: dict[str, Any]) -> str:
        """Insert a row.

        Args:
            table: The table to write
            record: Column values; an ``id`` is generated when absent

        Returns:
            The identifier of the inserted row
        """
        ...

    @abstractmethod
    async def update(self, table: str, record_id: str, patch: dict[str, Any]) -> None:
        """Update columns of the row with the given identifier.

        Raises:
            DataAccessError: If no row has that identifier
        """
        ...

    @abstractmethod
    async def upload_blob(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> str:
        """Upload a blob to object storage.

        Returns:
            The public URL of the stored object
        """
        ...

    @abstractmethod
    async def get_identity(self) -> Identity | None:
        """Return the identity bound to the current backend session, if any."""
        ...
