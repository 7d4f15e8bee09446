"""Lifespan middleware - opens the pool on startup, releases clients on shutdown."""

from typing import Any

import structlog
from psycopg_pool import AsyncConnectionPool

from gstlifecycle.infrastructure.gateway.whitebooks_gateway import WhiteBooksGateway

logger = structlog.get_logger(__name__)


class LifespanMiddleware:
    """Opens the connection pool when the server starts; closes it and the gateway client on shutdown."""

    def __init__(self, pool: AsyncConnectionPool, gateway: WhiteBooksGateway | None = None) -> None:
        self._pool = pool
        self._gateway = gateway

    async def process_startup(self, scope: dict[str, Any], event: dict[str, Any]) -> None:
        await self._pool.open()
        logger.info("Connection pool opened")

    async def process_shutdown(self, scope: dict[str, Any], event: dict[str, Any]) -> None:
        if self._gateway is not None:
            await self._gateway.aclose()
        await self._pool.close()
        logger.info("Connection pool closed")
