"""Read-only views over decoded response documents.

The views never raise on missing keys or out-of-range indexes: they return
``0``/``-1``/empty lists, as the proxy omits keys on some error replies.
Callers check the execution error before trusting the data.
"""

from __future__ import annotations

import json
import math
import sys
from typing import Any, TextIO

from pydantic import BaseModel, ConfigDict, Field

Row = dict[str, Any]


class FieldDescriptor(BaseModel):
    """Column metadata from the ``fields`` array."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str
    data_type_id: int | None = Field(default=None, alias="dataTypeID")
    table_id: int | None = Field(default=None, alias="tableID")
    column_id: int | None = Field(default=None, alias="columnID")
    data_type_size: int | None = Field(default=None, alias="dataTypeSize")
    data_type_modifier: int | None = Field(default=None, alias="dataTypeModifier")
    format: str | None = None


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _dump(document: dict[str, Any], file: TextIO | None) -> None:
    out = file if file is not None else sys.stdout
    out.write("\n")
    out.write(json.dumps(document))
    out.write("\n")


class QueryResult:
    """View over a single-statement response document."""

    def __init__(self, document: dict[str, Any] | None = None) -> None:
        """Initialize with a decoded document (empty if None)."""
        self._document: dict[str, Any] = document if document is not None else {}

    @property
    def row_count(self) -> int:
        """Rows returned, or rows affected for INSERT/UPDATE/DELETE."""
        value = self._document.get("rowCount")
        if isinstance(value, bool) or not isinstance(value, int | float):
            return 0
        if isinstance(value, float) and not math.isfinite(value):
            return 0
        return int(value)

    @property
    def rows(self) -> list[Row]:
        """Rows as column-name → value mappings."""
        return _as_list(self._document.get("rows"))

    @property
    def fields(self) -> list[dict[str, Any]]:
        """Raw column descriptors."""
        return _as_list(self._document.get("fields"))

    @property
    def message(self) -> str | None:
        """Application error message, if the proxy sent one."""
        message = self._document.get("message")
        return message if isinstance(message, str) else None

    @property
    def raw(self) -> dict[str, Any]:
        """The full decoded document."""
        return self._document

    def column_names(self) -> list[str]:
        """Column names in result order."""
        return [f["name"] for f in self.fields if isinstance(f, dict) and "name" in f]

    def field_descriptors(self) -> list[FieldDescriptor]:
        """Typed column descriptors."""
        return [FieldDescriptor.model_validate(f) for f in self.fields if isinstance(f, dict)]

    def dump(self, file: TextIO | None = None) -> None:
        """Write the raw document as JSON, framed by blank lines."""
        _dump(self._document, file)


class TransactionResult:
    """View over a transaction response document, indexed by statement."""

    def __init__(self, document: dict[str, Any] | None = None) -> None:
        """Initialize with a decoded document (empty if None)."""
        self._document: dict[str, Any] = document if document is not None else {}

    def __len__(self) -> int:
        return len(self._results())

    def _results(self) -> list[Any]:
        return _as_list(self._document.get("results"))

    def result(self, index: int) -> QueryResult | None:
        """Result for statement ``index``, or None if out of range."""
        results = self._results()
        if not 0 <= index < len(results) or not isinstance(results[index], dict):
            return None
        return QueryResult(results[index])

    def rows(self, index: int) -> list[Row]:
        """Rows of statement ``index``; empty if out of range."""
        result = self.result(index)
        return result.rows if result is not None else []

    def fields(self, index: int) -> list[dict[str, Any]]:
        """Column descriptors of statement ``index``; empty if out of range."""
        result = self.result(index)
        return result.fields if result is not None else []

    def row_count(self, index: int) -> int:
        """Row count of statement ``index``; -1 if out of range."""
        result = self.result(index)
        return result.row_count if result is not None else -1

    @property
    def message(self) -> str | None:
        """Application error message for the whole transaction."""
        message = self._document.get("message")
        return message if isinstance(message, str) else None

    @property
    def raw(self) -> dict[str, Any]:
        """The full decoded document."""
        return self._document

    def dump(self, file: TextIO | None = None) -> None:
        """Write the raw document as JSON, framed by blank lines."""
        _dump(self._document, file)
