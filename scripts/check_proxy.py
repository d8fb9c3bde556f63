"""Quick check that the SQL-over-HTTP proxy answers a trivial query.

Runs ``SELECT 1`` twice: once through the engine's own framing and once
with httpx, so a framing problem can be told apart from a proxy problem.
"""

import sys

import httpx

from sql_over_http import SQLOverHTTPClient
from sql_over_http.config import configure_logging, get_connection_string, get_proxy_host

QUERY = {"query": "SELECT 1 AS one", "params": []}


def main() -> None:
    """Check proxy connectivity with the engine and with httpx."""
    configure_logging()
    connection_string = get_connection_string()
    if connection_string is None:
        print("SQLHTTP_CONNECTION_STRING is not set")
        sys.exit(1)
    proxy = get_proxy_host()
    print(f"Checking proxy {proxy}...")

    client = SQLOverHTTPClient.from_env()
    client.set_query(QUERY["query"])
    error = client.execute()
    if error is None:
        print(f"  engine: ok, rows={client.rows()}")
    else:
        print(f"  engine: {error.kind} error: {error}")

    try:
        resp = httpx.post(
            f"https://{proxy}/sql",
            json=QUERY,
            headers={"Neon-Connection-String": connection_string},
            timeout=10.0,
        )
        print(f"  httpx: HTTP {resp.status_code} {resp.text[:200]}")
    except httpx.ConnectError:
        print("  httpx: cannot connect to proxy")
        sys.exit(1)
    except Exception as e:
        print(f"  httpx: error: {e}")
        sys.exit(1)

    if error is not None:
        sys.exit(1)


if __name__ == "__main__":
    main()
