"""Byte-stream protocol consumed by the framer.

The engine programs against ``ByteStream``. ``TCPStream`` is the default
implementation; tests and embedded callers supply their own.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ByteStream(Protocol):
    """Bidirectional byte stream, opened and closed once per request."""

    def connect(self, host: str, port: int) -> bool:
        """Open the stream. Return False if the peer refuses."""
        ...

    def write(self, data: bytes) -> int:
        """Write ``data`` and return the number of bytes actually written.

        Raises ``OSError`` if the connection is lost.
        """
        ...

    def flush(self) -> None:
        """Push any buffered output to the peer."""
        ...

    def read(self, max_bytes: int, timeout: float) -> bytes:
        """Block for up to ``timeout`` seconds for at least one byte.

        Returns ``b""`` at end of stream. Raises the builtin ``TimeoutError``
        when nothing arrives in time.
        """
        ...

    def close(self) -> None:
        """Close the stream. Safe to call when already closed."""
        ...
