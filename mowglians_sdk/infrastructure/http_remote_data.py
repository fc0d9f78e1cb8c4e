"""HTTP adapter for a PostgREST-style hosted backend.

Translates :class:`RemoteDataPort` calls into REST requests against the
backend's table, storage and auth endpoints, and translates HTTP failures
into the domain exception hierarchy.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from ..domain.exceptions import AuthorizationError, DataAccessError, TransportError
from ..domain.queries import Relation, SelectQuery
from ..domain.value_objects import Identity
from ..ports.logger import LoggerPort
from ..ports.remote_data import RemoteDataPort
from .config import RemoteDataConfig


def _format_value(value: Any) -> str:
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    return f"eq.{value}"


def _format_relation(relation: Relation) -> str:
    hint = relation.constraint or relation.local_column
    columns = ",".join(relation.columns)
    return f"{relation.alias}:{relation.table}!{hint}({columns})"


def build_select_params(query: SelectQuery) -> list[tuple[str, str]]:
    """Render a select query as PostgREST query-string parameters."""
    select = ",".join([*query.columns, *(_format_relation(r) for r in query.relations)])
    params: list[tuple[str, str]] = [("select", select)]
    params.extend((f.column, _format_value(f.value)) for f in query.filters)
    if query.order is not None:
        direction = "asc" if query.order.ascending else "desc"
        params.append(("order", f"{query.order.column}.{direction}"))
    if query.limit is not None:
        params.append(("limit", str(query.limit)))
    if query.offset:
        params.append(("offset", str(query.offset)))
    return params


class HttpRemoteData(RemoteDataPort):
    """Remote data client over HTTP using httpx."""

    def __init__(
        self,
        config: RemoteDataConfig | None = None,
        client: httpx.AsyncClient | None = None,
        logger: LoggerPort | None = None,
    ):
        """Initialize the HTTP adapter.

        Args:
            config: Connection settings (defaults used if None)
            client: Pre-built client, e.g. with a mock transport; owned by the caller
            logger: Optional logger for debugging
        """
        self._config = config or RemoteDataConfig()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self._config.timeout_seconds)
        self._logger = logger

    @property
    def _headers(self) -> dict[str, str]:
        token = self._config.access_token or self._config.api_key
        headers = {"apikey": self._config.api_key}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _rest_url(self, table: str) -> str:
        return f"{self._config.base_url}{self._config.rest_path}/{table}"

    def public_url(self, bucket: str, path: str) -> str:
        """Public URL of an object in storage."""
        base = f"{self._config.base_url}{self._config.storage_path}"
        return f"{base}/object/public/{bucket}/{quote(path)}"

    async def select(self, table: str, query: SelectQuery | None = None) -> list[dict[str, Any]]:
        """Select rows from a table."""
        params = build_select_params(query or SelectQuery())
        response = await self._request(
            "GET", self._rest_url(table), table=table, operation="select", params=params
        )
        rows = response.json()
        if not isinstance(rows, list):
            raise DataAccessError(
                "Unexpected select response shape", table=table, operation="select"
            )
        return rows

    async def insert(self, table: str, record: dict[str, Any]) -> str:
        """Insert a row and return its identifier."""
        response = await self._request(
            "POST",
            self._rest_url(table),
            table=table,
            operation="insert",
            json=record,
            headers={"Prefer": "return=representation"},
        )
        rows = response.json()
        if not rows or "id" not in rows[0]:
            raise DataAccessError("Insert returned no row", table=table, operation="insert")
        return str(rows[0]["id"])

    async def update(self, table: str, record_id: str, patch: dict[str, Any]) -> None:
        """Update one row by identifier."""
        response = await self._request(
            "PATCH",
            self._rest_url(table),
            table=table,
            operation="update",
            params=[("id", f"eq.{record_id}")],
            json=patch,
            headers={"Prefer": "return=representation"},
        )
        if not response.json():
            raise DataAccessError(
                f"No row '{record_id}' in {table}", table=table, operation="update"
            )

    async def upload_blob(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> str:
        """Upload an object and return its public URL."""
        base = f"{self._config.base_url}{self._config.storage_path}"
        await self._request(
            "POST",
            f"{base}/object/{bucket}/{quote(path)}",
            table=bucket,
            operation="upload",
            content=data,
            headers={"Content-Type": content_type},
        )
        return self.public_url(bucket, path)

    async def get_identity(self) -> Identity | None:
        """Return the identity bound to the access token, if any."""
        if not self._config.access_token:
            return None
        response = await self._request(
            "GET",
            f"{self._config.base_url}{self._config.auth_path}/user",
            table=None,
            operation="get_identity",
        )
        body = response.json()
        if not body or not body.get("id") or not body.get("email"):
            return None
        return Identity(id=str(body["id"]), email=str(body["email"]))

    async def _request(
        self,
        method: str,
        url: str,
        *,
        table: str | None,
        operation: str,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        merged = {**self._headers, **(headers or {})}
        try:
            response = await self._client.request(method, url, headers=merged, **kwargs)
        except httpx.HTTPError as e:
            if self._logger:
                self._logger.error(
                    "Backend request failed", method=method, url=url, error=str(e)
                )
            raise TransportError(
                f"Backend unreachable: {e}", table=table, operation=operation
            ) from e

        if response.is_success:
            return response

        message = self._error_message(response)
        if self._logger:
            self._logger.warning(
                "Backend rejected request",
                method=method,
                url=url,
                status_code=response.status_code,
                error=message,
            )
        details = {"status_code": response.status_code}
        if response.status_code in (401, 403):
            raise AuthorizationError(message, table=table, operation=operation, details=details)
        if response.status_code >= 500:
            raise TransportError(message, table=table, operation=operation, details=details)
        raise DataAccessError(message, table=table, operation=operation, details=details)

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            for field in ("message", "msg", "error_description", "error"):
                if body.get(field):
                    return str(body[field])
        return f"Backend returned HTTP {response.status_code}"

    async def close(self) -> None:
        """Close the HTTP client if this adapter created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HttpRemoteData:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
