"""HTTP framing and response interpretation for the SQL-over-HTTP protocol.

One call to ``execute_request`` is one full round trip: connect, write
``POST /sql`` with the JSON document, block for the reply until the deadline,
check the status line, skip the headers, decode the JSON body, close.

Failures come back as ``ExecutionError`` values; the stream is closed on
every path.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any

import h11

from sql_over_http.errors import (
    CONNECT_FAILED,
    INVALID_RESPONSE,
    PAYLOAD_MISMATCH,
    TIMED_OUT,
    ErrorKind,
    ExecutionError,
)
from sql_over_http.transport.stream import ByteStream

logger = logging.getLogger(__name__)

SQL_PATH = "/sql"
CONNECTION_STRING_HEADER = "Neon-Connection-String"
HEADER_TERMINATOR = b"\r\n\r\n"

# Status code digits follow "HTTP/1.1 " in the status line.
_STATUS_CODE_OFFSET = 9
_READ_CHUNK = 4096
_MAX_STATUS_LINE = 8192

Document = dict[str, Any]


def serialize_document(document: Document) -> bytes:
    """Serialize a request document to compact UTF-8 JSON."""
    return json.dumps(document, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def build_request_head(host: str, connection_string: str, content_length: int) -> bytes:
    """Return the request line and headers, up to and including the blank line."""
    return (
        f"POST {SQL_PATH} HTTP/1.1\r\n"
        f"Host: {host}\r\n"
        f"{CONNECTION_STRING_HEADER}: {connection_string}\r\n"
        "Content-Type: application/json\r\n"
        f"Content-Length: {content_length}\r\n"
        "\r\n"
    ).encode("utf-8")


def parse_status_code(status_line: str) -> int:
    """Return the 3-digit status code, or 0 if the line is malformed."""
    digits = status_line[_STATUS_CODE_OFFSET : _STATUS_CODE_OFFSET + 3]
    if len(digits) != 3 or not digits.isdigit():
        return 0
    return int(digits)


def is_accepted_status(code: int) -> bool:
    """Return True if the response body should be decoded.

    2xx is success. 400 is the proxy's reply for SQL errors and carries the
    error ``message`` in its JSON body. Every other code, other 4xx included,
    is reported as the raw status line.
    """
    return 200 <= code < 300 or code == 400


def execute_request(
    stream: ByteStream,
    *,
    host: str,
    port: int,
    connection_string: str,
    document: Document,
    timeout_ms: int,
) -> tuple[Document | None, ExecutionError | None]:
    """Send ``document`` to the proxy and decode the reply.

    Returns ``(response_document, error)``. The document is None when no JSON
    body was decoded. An application error (``message`` in the body) returns
    both the document and the error.
    """
    deadline = time.monotonic() + timeout_ms / 1000
    try:
        body = serialize_document(document)
    except (TypeError, ValueError) as e:
        logger.warning("Request document is not serializable: %s", e)
        return None, ExecutionError(kind=ErrorKind.SERIALIZATION, message=PAYLOAD_MISMATCH)

    if not stream.connect(host, port):
        logger.warning("Cannot connect to proxy %s:%d", host, port)
        stream.close()
        return None, ExecutionError(kind=ErrorKind.CONNECT, message=CONNECT_FAILED)
    try:
        return _round_trip(stream, host, connection_string, body, deadline)
    finally:
        stream.close()


def _round_trip(
    stream: ByteStream,
    host: str,
    connection_string: str,
    body: bytes,
    deadline: float,
) -> tuple[Document | None, ExecutionError | None]:
    logger.debug("POST %s to %s (%d byte body)", SQL_PATH, host, len(body))
    head = build_request_head(host, connection_string, len(body))
    try:
        for part, label in ((head, "header"), (body, "body")):
            written = stream.write(part)
            if written != len(part):
                logger.warning("Wrote %d of %d %s bytes", written, len(part), label)
                return None, ExecutionError(
                    kind=ErrorKind.SERIALIZATION, message=PAYLOAD_MISMATCH
                )
        stream.flush()
    except OSError as e:
        logger.warning("Connection lost while sending request: %s", e)
        return None, ExecutionError(kind=ErrorKind.CONNECT, message=f"{CONNECT_FAILED}: {e}")

    reader = _ResponseReader(stream, deadline)
    try:
        if not reader.fill():
            logger.warning("Proxy closed the connection without responding")
            return None, ExecutionError(kind=ErrorKind.FRAMING, message=INVALID_RESPONSE)
        status_line = reader.read_status_line()
        logger.debug("Response status: %s", status_line)
        if not is_accepted_status(parse_status_code(status_line)):
            return None, ExecutionError(kind=ErrorKind.STATUS, message=status_line)
        if not reader.find_header_end():
            logger.warning("Response has no header terminator")
            return None, ExecutionError(kind=ErrorKind.FRAMING, message=INVALID_RESPONSE)
        raw_body = reader.read_body(host)
    except TimeoutError:
        logger.warning("No complete response from %s within the deadline", host)
        return None, ExecutionError(kind=ErrorKind.TIMEOUT, message=TIMED_OUT)
    except h11.RemoteProtocolError as e:
        logger.warning("Malformed HTTP response: %s", e)
        return None, ExecutionError(kind=ErrorKind.FRAMING, message=f"{INVALID_RESPONSE}: {e}")
    except OSError as e:
        logger.warning("Connection lost while reading response: %s", e)
        return None, ExecutionError(kind=ErrorKind.FRAMING, message=f"{INVALID_RESPONSE}: {e}")

    return decode_body(raw_body)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant {name}")


def decode_body(raw_body: bytes) -> tuple[Document | None, ExecutionError | None]:
    """Decode one JSON object from the body and classify it.

    ``NaN`` and ``Infinity`` are rejected as invalid JSON. Data after the
    first complete JSON value is ignored.
    """
    try:
        text = raw_body.decode("utf-8").lstrip()
        document, _ = json.JSONDecoder(parse_constant=_reject_constant).raw_decode(text)
    except ValueError as e:
        return None, ExecutionError(kind=ErrorKind.DESERIALIZE, message=str(e))
    if not isinstance(document, dict):
        return None, ExecutionError(
            kind=ErrorKind.DESERIALIZE,
            message=f"expected a JSON object, got {type(document).__name__}",
        )
    message = document.get("message")
    if message is not None:
        if not isinstance(message, str):
            message = json.dumps(message)
        return document, ExecutionError(kind=ErrorKind.APPLICATION, message=message)
    return document, None


class _ResponseReader:
    """Buffered reader over a ByteStream bounded by a monotonic deadline.

    The status line and header block are located in the buffer without
    consuming it; ``read_body`` then hands the whole response to h11, which
    applies Content-Length, chunked encoding or read-until-close.
    """

    def __init__(self, stream: ByteStream, deadline: float) -> None:
        self._stream = stream
        self._deadline = deadline
        self._buffer = bytearray()
        self._eof = False

    def _read_chunk(self) -> bytes:
        """Read one chunk from the stream; ``b""`` at end of stream."""
        if self._eof:
            return b""
        chunk = self._stream.read(_READ_CHUNK, self._deadline - time.monotonic())
        if not chunk:
            self._eof = True
        return chunk

    def fill(self) -> bool:
        """Buffer one more chunk. False at end of stream."""
        chunk = self._read_chunk()
        self._buffer += chunk
        return bool(chunk)

    def read_status_line(self) -> str:
        """Return text up to the first ``\\r``."""
        while b"\r" not in self._buffer and len(self._buffer) < _MAX_STATUS_LINE:
            if not self.fill():
                break
        end = self._buffer.find(b"\r")
        if end < 0:
            end = min(len(self._buffer), _MAX_STATUS_LINE)
        return bytes(self._buffer[:end]).decode("latin-1")

    def find_header_end(self) -> bool:
        """Buffer through the header terminator. False if the stream ends first."""
        while HEADER_TERMINATOR not in self._buffer:
            if not self.fill():
                return False
        return True

    def read_body(self, host: str) -> bytes:
        """Return the decoded response body.

        Raises ``h11.RemoteProtocolError`` for malformed or truncated
        responses.
        """
        conn = h11.Connection(our_role=h11.CLIENT)
        # Only h11's state machine sees this request; the wire bytes were
        # written by build_request_head.
        conn.send(h11.Request(method="POST", target=SQL_PATH, headers=[("Host", host)]))
        conn.send(h11.EndOfMessage())
        conn.receive_data(bytes(self._buffer))
        self._buffer.clear()
        body = bytearray()
        while True:
            event = conn.next_event()
            if event is h11.NEED_DATA:
                conn.receive_data(self._read_chunk())
            elif isinstance(event, h11.Data):
                body += event.data
            elif isinstance(event, h11.EndOfMessage | h11.ConnectionClosed):
                return bytes(body)
