"""PostgreSQL connection pool for the document store."""

from psycopg_pool import AsyncConnectionPool

POOL_NAME = "gstlifecycle"


def create_pool(
    conninfo: str,
    min_size: int = 2,
    max_size: int = 10,
    timeout: float = 10.0,
) -> AsyncConnectionPool:
    """Create a closed pool; LifespanMiddleware opens it on server startup.

    Connections are checked on checkout, so a database restart costs one
    reconnect instead of a failed transition.
    """
    return AsyncConnectionPool(
        conninfo=conninfo,
        min_size=min_size,
        max_size=max_size,
        timeout=timeout,
        name=POOL_NAME,
        check=AsyncConnectionPool.check_connection,
        open=False,
    )
