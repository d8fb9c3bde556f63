"""SQL over HTTP: run PostgreSQL statements through a Neon-style HTTP proxy."""

from sql_over_http.client import SQLOverHTTPClient
from sql_over_http.errors import (
    CoercionError,
    ErrorKind,
    ExecutionError,
    SQLOverHTTPError,
)
from sql_over_http.results import FieldDescriptor, QueryResult, TransactionResult
from sql_over_http.statement import ParamList, Statement, Transaction
from sql_over_http.transport import ByteStream, TCPStream
from sql_over_http.values import (
    Param,
    ParamKind,
    array_literal,
    as_bool,
    as_float,
    as_int,
    as_json,
    as_list,
    as_text,
    json_literal,
    to_param,
)

__version__ = "0.1.0"

__all__ = [
    "ByteStream",
    "CoercionError",
    "ErrorKind",
    "ExecutionError",
    "FieldDescriptor",
    "Param",
    "ParamKind",
    "ParamList",
    "QueryResult",
    "SQLOverHTTPClient",
    "SQLOverHTTPError",
    "Statement",
    "TCPStream",
    "Transaction",
    "TransactionResult",
    "__version__",
    "array_literal",
    "as_bool",
    "as_float",
    "as_int",
    "as_json",
    "as_list",
    "as_text",
    "json_literal",
    "to_param",
]
