"""TCP/TLS implementation of the ByteStream protocol on httpcore's sync backend."""

from __future__ import annotations

import logging
import ssl

import httpcore

logger = logging.getLogger(__name__)


class TCPStream:
    """Wraps an ``httpcore.NetworkStream`` to satisfy the ByteStream protocol.

    A new network stream is opened on every ``connect()`` and released by
    ``close()``; nothing is kept alive between requests.
    """

    def __init__(
        self,
        *,
        tls: bool = True,
        ssl_context: ssl.SSLContext | None = None,
        connect_timeout: float = 10.0,
        write_timeout: float = 10.0,
        backend: httpcore.NetworkBackend | None = None,
    ) -> None:
        """Initialize without connecting."""
        self._tls = tls
        self._ssl_context = ssl_context
        self._connect_timeout = connect_timeout
        self._write_timeout = write_timeout
        self._backend = backend if backend is not None else httpcore.SyncBackend()
        self._stream: httpcore.NetworkStream | None = None

    @property
    def is_open(self) -> bool:
        """True between a successful connect() and close()."""
        return self._stream is not None

    def connect(self, host: str, port: int) -> bool:
        """Open a TCP connection, upgrading to TLS when enabled."""
        self.close()
        try:
            stream = self._backend.connect_tcp(host, port, timeout=self._connect_timeout)
        except (httpcore.ConnectError, httpcore.ConnectTimeout, OSError):
            logger.warning("Connection to %s:%d failed", host, port, exc_info=True)
            return False
        if self._tls:
            context = self._ssl_context or ssl.create_default_context()
            try:
                stream = stream.start_tls(
                    context, server_hostname=host, timeout=self._connect_timeout
                )
            except (httpcore.ConnectError, httpcore.ConnectTimeout, OSError):
                logger.warning("TLS handshake with %s:%d failed", host, port, exc_info=True)
                stream.close()
                return False
        self._stream = stream
        logger.debug("Connected to %s:%d (tls=%s)", host, port, self._tls)
        return True

    def write(self, data: bytes) -> int:
        """Send all of ``data``."""
        stream = self._require_stream()
        try:
            stream.write(data, timeout=self._write_timeout)
        except (httpcore.WriteError, httpcore.WriteTimeout) as e:
            raise ConnectionError(f"write failed: {e}") from e
        return len(data)

    def flush(self) -> None:
        """No-op: httpcore writes are unbuffered."""

    def read(self, max_bytes: int, timeout: float) -> bytes:
        """Read up to ``max_bytes``, waiting at most ``timeout`` seconds."""
        stream = self._require_stream()
        if timeout <= 0:
            raise TimeoutError("read deadline already passed")
        try:
            return stream.read(max_bytes, timeout=timeout)
        except httpcore.ReadTimeout as e:
            raise TimeoutError(str(e) or "read timed out") from e
        except httpcore.ReadError as e:
            raise ConnectionError(f"read failed: {e}") from e

    def close(self) -> None:
        """Close the network stream if open."""
        if self._stream is not None:
            self._stream.close()
            self._stream = None

    def _require_stream(self) -> httpcore.NetworkStream:
        if self._stream is None:
            raise ConnectionError("stream is not connected")
        return self._stream
