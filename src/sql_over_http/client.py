"""SQL-over-HTTP client: builder state, one blocking round trip, result views.

Usage::

    client = SQLOverHTTPClient(connection_string, proxy_host="api.eu-central-1.aws.neon.tech")
    client.set_query("INSERT INTO t (c) VALUES ($1::int)")
    params = client.params()
    for value in values:
        params.clear()
        params.push(value)
        error = client.execute()
        if error is not None:
            ...

The client is not reentrant: one request is in flight at a time and the
result views are replaced by each successful call.
"""

from __future__ import annotations

import logging
from typing import Any, TextIO

from sql_over_http.config import (
    derive_proxy_host,
    get_connection_string,
    get_proxy_host,
    get_proxy_port,
    get_timeout_ms,
    is_tls_enabled,
)
from sql_over_http.errors import ExecutionError
from sql_over_http.framing import execute_request
from sql_over_http.results import QueryResult, Row, TransactionResult
from sql_over_http.statement import ParamList, Statement, Transaction
from sql_over_http.transport.stream import ByteStream
from sql_over_http.transport.tcp import TCPStream

logger = logging.getLogger(__name__)

DEFAULT_PORT = 443
DEFAULT_TIMEOUT_MS = 20000


class SQLOverHTTPClient:
    """Executes statements and transactions through a SQL-over-HTTP proxy."""

    def __init__(
        self,
        connection_string: str,
        proxy_host: str | None = None,
        proxy_port: int = DEFAULT_PORT,
        *,
        stream: ByteStream | None = None,
        default_timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> None:
        """Initialize the client.

        ``proxy_host`` defaults to the host derived from the connection
        string (``api.<region host>``). ``stream`` defaults to a TLS
        ``TCPStream``.
        """
        if not connection_string:
            raise ValueError("connection_string must not be empty")
        if proxy_host is None:
            proxy_host = derive_proxy_host(connection_string)
        if not proxy_host:
            raise ValueError("proxy_host is required when it cannot be derived")
        if not 0 < proxy_port < 65536:
            raise ValueError(f"invalid proxy port {proxy_port}")
        _check_timeout(default_timeout_ms)
        self._connection_string = connection_string
        self._proxy_host = proxy_host
        self._proxy_port = proxy_port
        self._stream = stream if stream is not None else TCPStream()
        self._default_timeout_ms = default_timeout_ms

        self._statement = Statement()
        self._result = QueryResult()
        self._transaction = Transaction()
        self._transaction_result = TransactionResult()

    @classmethod
    def from_env(cls, *, stream: ByteStream | None = None) -> SQLOverHTTPClient:
        """Create a client from SQLHTTP_* environment variables."""
        connection_string = get_connection_string()
        if connection_string is None:
            raise ValueError("SQLHTTP_CONNECTION_STRING is not set")
        if stream is None:
            stream = TCPStream(tls=is_tls_enabled())
        return cls(
            connection_string,
            get_proxy_host(),
            get_proxy_port(),
            stream=stream,
            default_timeout_ms=get_timeout_ms(),
        )

    @property
    def proxy_host(self) -> str:
        """Hostname of the proxy."""
        return self._proxy_host

    @property
    def proxy_port(self) -> int:
        """Port of the proxy."""
        return self._proxy_port

    def __repr__(self) -> str:
        # The connection string is a credential; keep it out of reprs.
        return f"SQLOverHTTPClient(proxy={self._proxy_host}:{self._proxy_port})"

    # -- Single statement --

    def set_query(self, text: str) -> None:
        """Replace the statement text. Parameters are left as they are."""
        self._statement.text = text

    def params(self) -> ParamList:
        """Return the statement's parameters; clear them before reuse."""
        return self._statement.params

    def execute(self, timeout_ms: int | None = None) -> ExecutionError | None:
        """Send the current statement and decode the result."""
        document, error = self._send(self._statement.to_document(), timeout_ms)
        if document is not None:
            self._result = QueryResult(document)
        return error

    def row_count(self) -> int:
        """Rows returned or affected by the last statement."""
        return self._result.row_count

    def rows(self) -> list[Row]:
        """Rows returned by the last statement."""
        return self._result.rows

    def fields(self) -> list[dict[str, Any]]:
        """Column descriptors of the last statement."""
        return self._result.fields

    def result(self) -> QueryResult:
        """View over the last statement result."""
        return self._result

    def raw_result(self) -> dict[str, Any]:
        """The last decoded statement response document."""
        return self._result.raw

    def print_raw_result(self, file: TextIO | None = None) -> None:
        """Dump the last statement response document for debugging."""
        self._result.dump(file)

    # -- Transactions --

    def start_transaction(self) -> None:
        """Drop all queued statements and the previous transaction result."""
        self._transaction.reset()
        self._transaction_result = TransactionResult()

    def add_query_to_transaction(self, text: str) -> int:
        """Queue a statement; return its 0-based index in the transaction."""
        return self._transaction.add(text)

    def params_for_transaction_query(self, index: int) -> ParamList:
        """Parameters of queued statement ``index`` (detached if out of range)."""
        return self._transaction.params_for(index)

    def execute_transaction(self, timeout_ms: int | None = None) -> ExecutionError | None:
        """Send every queued statement as one atomic request."""
        if len(self._transaction) == 0:
            logger.warning("Executing an empty transaction")
        document, error = self._send(self._transaction.to_document(), timeout_ms)
        if document is not None:
            self._transaction_result = TransactionResult(document)
        return error

    def rows_for_transaction_query(self, index: int) -> list[Row]:
        """Rows of statement ``index``; empty if out of range."""
        return self._transaction_result.rows(index)

    def fields_for_transaction_query(self, index: int) -> list[dict[str, Any]]:
        """Column descriptors of statement ``index``; empty if out of range."""
        return self._transaction_result.fields(index)

    def row_count_for_transaction_query(self, index: int) -> int:
        """Row count of statement ``index``; -1 if out of range."""
        return self._transaction_result.row_count(index)

    def transaction_result(self) -> TransactionResult:
        """View over the last transaction result."""
        return self._transaction_result

    def raw_transaction_result(self) -> dict[str, Any]:
        """The last decoded transaction response document."""
        return self._transaction_result.raw

    def print_raw_transaction_result(self, file: TextIO | None = None) -> None:
        """Dump the last transaction response document for debugging."""
        self._transaction_result.dump(file)

    # -- Internals --

    def _send(
        self, document: dict[str, Any], timeout_ms: int | None
    ) -> tuple[dict[str, Any] | None, ExecutionError | None]:
        if timeout_ms is None:
            timeout_ms = self._default_timeout_ms
        _check_timeout(timeout_ms)
        document_out, error = execute_request(
            self._stream,
            host=self._proxy_host,
            port=self._proxy_port,
            connection_string=self._connection_string,
            document=document,
            timeout_ms=timeout_ms,
        )
        if error is not None:
            logger.debug("Execution failed (%s): %s", error.kind, error.message)
        return document_out, error


def _check_timeout(timeout_ms: int) -> None:
    if timeout_ms <= 0:
        raise ValueError(f"timeout_ms must be positive, got {timeout_ms}")
