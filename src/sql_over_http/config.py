"""Environment-variable-based configuration."""

import logging
import os
import sys
from urllib.parse import urlsplit


def get_connection_string() -> str | None:
    """Return the database connection string from SQLHTTP_CONNECTION_STRING."""
    return os.environ.get("SQLHTTP_CONNECTION_STRING") or None


def get_proxy_host() -> str | None:
    """Return the proxy hostname from SQLHTTP_PROXY_HOST.

    Falls back to the host derived from the connection string.
    """
    host = os.environ.get("SQLHTTP_PROXY_HOST")
    if host:
        return host
    conn = get_connection_string()
    if conn is None:
        return None
    return derive_proxy_host(conn)


def get_proxy_port() -> int:
    """Return the proxy port from SQLHTTP_PROXY_PORT."""
    return int(os.environ.get("SQLHTTP_PROXY_PORT", "443"))


def get_timeout_ms() -> int:
    """Return the response timeout in milliseconds from SQLHTTP_TIMEOUT_MS."""
    return int(os.environ.get("SQLHTTP_TIMEOUT_MS", "20000"))


def is_tls_enabled() -> bool:
    """Return False only if SQLHTTP_TLS is set to FALSE."""
    return os.environ.get("SQLHTTP_TLS", "TRUE").upper() != "FALSE"


def get_log_level() -> str:
    """Return the logging level from SQLHTTP_LOG_LEVEL."""
    return os.environ.get("SQLHTTP_LOG_LEVEL", "WARNING")


def derive_proxy_host(connection_string: str) -> str | None:
    """Derive the proxy hostname from a postgres connection string.

    ``postgresql://u:p@ep-name-123.eu-central-1.aws.neon.tech/db`` maps to
    ``api.eu-central-1.aws.neon.tech``: the endpoint label is replaced by
    ``api``. Hosts with a single label are returned as ``api.<host>``.
    """
    hostname = urlsplit(connection_string).hostname
    if not hostname:
        return None
    labels = hostname.split(".")
    if len(labels) > 2:
        labels = labels[1:]
    return "api." + ".".join(labels)


def configure_logging() -> None:
    """Configure root logging to stderr at SQLHTTP_LOG_LEVEL."""
    logging.basicConfig(
        level=getattr(logging, get_log_level().upper(), logging.WARNING),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )
