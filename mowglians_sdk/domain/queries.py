"""Select query descriptions for the remote table store."""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

_IDENTIFIER = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


def _validate_identifier(v: str) -> str:
    if not _IDENTIFIER.match(v):
        raise ValueError(f"Invalid identifier '{v}'")
    return v


class ColumnFilter(BaseModel):
    """Equality filter on a single column."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    column: str = Field(..., min_length=1)
    value: Any

    @field_validator("column")
    @classmethod
    def validate_column(cls, v: str) -> str:
        """Validate the column name."""
        return _validate_identifier(v)


class OrderBy(BaseModel):
    """Ordering on a single column."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    column: str = Field(..., min_length=1)
    ascending: bool = True

    @field_validator("column")
    @classmethod
    def validate_column(cls, v: str) -> str:
        """Validate the column name."""
        return _validate_identifier(v)


class Relation(BaseModel):
    """An embedded join of a related table.

    ``local_column`` is the foreign-key column of the selected table that
    references ``foreign_column`` of ``table``. The joined row is embedded in
    each result row under ``alias``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    alias: str = Field(..., min_length=1)
    table: str = Field(..., min_length=1)
    local_column: str = Field(..., min_length=1)
    foreign_column: str = Field(default="id", min_length=1)
    columns: tuple[str, ...] = Field(default=("*",))
    constraint: str | None = Field(
        default=None,
        description="Foreign-key constraint name used to disambiguate the join",
    )

    @field_validator("alias", "table", "local_column", "foreign_column")
    @classmethod
    def validate_names(cls, v: str) -> str:
        """Validate table and column names."""
        return _validate_identifier(v)


class SelectQuery(BaseModel):
    """Description of a read against one table."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    columns: tuple[str, ...] = Field(default=("*",))
    filters: tuple[ColumnFilter, ...] = Field(default=())
    order: OrderBy | None = None
    relations: tuple[Relation, ...] = Field(default=())
    limit: int | None = Field(default=None, gt=0)
    offset: int = Field(default=0, ge=0)

    def where(self, column: str, value: Any) -> SelectQuery:
        """Return a copy with an additional equality filter."""
        return self.model_copy(
            update={"filters": (*self.filters, ColumnFilter(column=column, value=value))}
        )

    def ordered_by(self, column: str, ascending: bool = True) -> SelectQuery:
        """Return a copy ordered by ``column``."""
        return self.model_copy(update={"order": OrderBy(column=column, ascending=ascending)})

    def page(self, page: int, page_size: int) -> SelectQuery:
        """Return a copy limited to one page (pages start at 1)."""
        if page < 1:
            raise ValueError("Pages start at 1")
        return self.model_copy(update={"limit": page_size, "offset": (page - 1) * page_size})
