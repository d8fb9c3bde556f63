"""Statement and transaction builders.

A ``Statement`` owns its ``ParamList``; callers clear and refill it between
executions. A ``Transaction`` is an append-only batch of statements that is
only ever reset as a whole.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Any

from sql_over_http.values import JSONScalar, Param, to_param

logger = logging.getLogger(__name__)


class ParamList:
    """Ordered, owned parameter container for one statement."""

    def __init__(self, values: Iterable[Any] = ()) -> None:
        """Initialize, coercing any initial values."""
        self._params: list[Param] = [to_param(v) for v in values]

    def clear(self) -> None:
        """Remove all parameters."""
        self._params.clear()

    def push(self, value: Any) -> int:
        """Append a value; return its 1-based marker number (``$n``)."""
        self._params.append(to_param(value))
        return len(self._params)

    def extend(self, values: Iterable[Any]) -> None:
        """Append several values in order."""
        self._params.extend(to_param(v) for v in values)

    def to_wire(self) -> list[JSONScalar]:
        """Return the JSON ``params`` array."""
        return [p.to_wire() for p in self._params]

    def __len__(self) -> int:
        return len(self._params)

    def __iter__(self) -> Iterator[Param]:
        return iter(self._params)

    def __getitem__(self, index: int) -> Param:
        return self._params[index]

    def __repr__(self) -> str:
        return f"ParamList({[p.value for p in self._params]!r})"


class Statement:
    """SQL text plus its ordered parameters.

    Positional markers (``$1``, ``$2``, ...) are not checked against the
    parameter count; the server reports any mismatch.
    """

    def __init__(self, text: str = "") -> None:
        """Initialize with optional SQL text and no parameters."""
        self.text = text
        self.params = ParamList()

    def to_document(self) -> dict[str, Any]:
        """Return ``{"query": ..., "params": [...]}``."""
        return {"query": self.text, "params": self.params.to_wire()}


class Transaction:
    """Ordered batch of statements executed atomically by the proxy."""

    def __init__(self) -> None:
        """Initialize an empty batch."""
        self._statements: list[Statement] = []

    def reset(self) -> None:
        """Drop every statement."""
        self._statements = []

    def add(self, text: str) -> int:
        """Append a statement with no parameters; return its 0-based index."""
        self._statements.append(Statement(text))
        return len(self._statements) - 1

    def params_for(self, index: int) -> ParamList:
        """Return the parameters of statement ``index``.

        Out of range returns a detached empty list; values pushed to it are
        never sent.
        """
        if not 0 <= index < len(self._statements):
            logger.warning(
                "Transaction has %d statement(s), no statement at index %d",
                len(self._statements),
                index,
            )
            return ParamList()
        return self._statements[index].params

    def to_document(self) -> dict[str, Any]:
        """Return ``{"queries": [{"query": ..., "params": [...]}, ...]}``."""
        return {"queries": [s.to_document() for s in self._statements]}

    def __len__(self) -> int:
        return len(self._statements)

    def __iter__(self) -> Iterator[Statement]:
        return iter(self._statements)

    def __getitem__(self, index: int) -> Statement:
        return self._statements[index]
