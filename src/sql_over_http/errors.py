"""Execution error values returned by the client.

Execution failures are returned to the caller as ``ExecutionError`` values
instead of being raised, so every call site branches on ``error is None``.
Programming mistakes (wrong parameter types, empty connection settings) still
raise at the call site.
"""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class ErrorKind(StrEnum):
    """Classification of a failed execution."""

    CONNECT = "connect"
    SERIALIZATION = "serialization"
    TIMEOUT = "timeout"
    FRAMING = "framing"
    DESERIALIZE = "deserialize"
    STATUS = "status"
    APPLICATION = "application"


CONNECT_FAILED = "cannot connect to proxy"
PAYLOAD_MISMATCH = "payload serialization error"
TIMED_OUT = "query timed out"
INVALID_RESPONSE = "Invalid response"


class ExecutionError(BaseModel):
    """A diagnosable execution failure."""

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    message: str

    def __str__(self) -> str:
        return self.message

    @property
    def retryable(self) -> bool:
        """True for transport failures that are safe to re-invoke."""
        return self.kind in (ErrorKind.CONNECT, ErrorKind.TIMEOUT)

    def to_exception(self) -> "SQLOverHTTPError":
        """Wrap this error in an exception for callers that prefer raising."""
        return SQLOverHTTPError(self)


class SQLOverHTTPError(Exception):
    """Raised by callers that escalate a returned ``ExecutionError``."""

    def __init__(self, error: ExecutionError) -> None:
        """Initialize with the underlying execution error."""
        super().__init__(error.message)
        self.error = error

    @property
    def kind(self) -> ErrorKind:
        """Kind of the wrapped error."""
        return self.error.kind


class CoercionError(ValueError):
    """A result value cannot be converted to the requested Python type."""
