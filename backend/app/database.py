"""
backend/app/database.py

Purpose:
    MongoDB connection pool owned by the service process. Connects lazily,
    reuses the client while healthy, and rebuilds it once it has been marked
    stale. Injected into request handlers via FastAPI dependencies.

Dependencies:
    - motor.motor_asyncio
    - pymongo
    - app.config
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import ConfigurationError, ConnectionFailure

from app.config import settings
from app.errors import StorageUnavailable

logger = logging.getLogger("matchbatch.database")


class MongoConnectionPool:
    """Process-wide MongoDB client with an explicit health-check/reconnect cycle."""

    def __init__(
        self,
        uri: str,
        db_name: str,
        *,
        server_selection_timeout_ms: int = 5000,
        connect_timeout_ms: int = 10000,
        max_pool_size: int = 10,
        client_factory: Callable[..., Any] = AsyncIOMotorClient,
    ):
        self.uri = uri
        self.db_name = db_name
        self.server_selection_timeout_ms = server_selection_timeout_ms
        self.connect_timeout_ms = connect_timeout_ms
        self.max_pool_size = max_pool_size
        self._client_factory = client_factory
        self._client: Any = None
        self._stale = False
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls) -> "MongoConnectionPool":
        return cls(
            settings.MONGO_URI,
            settings.MONGO_DB,
            server_selection_timeout_ms=settings.MONGO_SERVER_SELECTION_TIMEOUT_MS,
            connect_timeout_ms=settings.MONGO_CONNECT_TIMEOUT_MS,
            max_pool_size=settings.MONGO_MAX_POOL_SIZE,
        )

    @property
    def connected(self) -> bool:
        return self._client is not None and not self._stale

    async def database(self) -> AsyncIOMotorDatabase:
        """Return the database handle, (re)connecting first if needed."""
        if not self.connected:
            async with self._lock:
                if not self.connected:
                    await self._reconnect()
        return self._client[self.db_name]

    def mark_stale(self) -> None:
        """Flag the client as unusable; the next database() call rebuilds it."""
        if self._client is not None and not self._stale:
            logger.warning("MongoDB client marked stale, reconnecting on next use")
        self._stale = True

    async def ping(self) -> bool:
        if self._client is None:
            return False
        try:
            result = await self._client.admin.command("ping")
        except ConnectionFailure:
            return False
        return result.get("ok") == 1.0

    async def ensure_healthy(self) -> AsyncIOMotorDatabase:
        """Ping the current client; reconnect once if it does not answer."""
        if self.connected and await self.ping():
            return self._client[self.db_name]
        self.mark_stale()
        return await self.database()

    async def close(self) -> None:
        if self._client is not None:
            self._client.close()
        self._client = None
        self._stale = False

    async def _reconnect(self) -> None:
        if not self.uri:
            raise StorageUnavailable("MONGO_URI is not configured")
        if self._client is not None:
            self._client.close()
            self._client = None
        client = None
        try:
            client = self._client_factory(
                self.uri,
                serverSelectionTimeoutMS=self.server_selection_timeout_ms,
                connectTimeoutMS=self.connect_timeout_ms,
                maxPoolSize=self.max_pool_size,
            )
            await client.admin.command("ping")
        except (ConnectionFailure, ConfigurationError) as exc:
            logger.error("Failed to connect to MongoDB: %s", exc)
            if client is not None:
                client.close()
            raise StorageUnavailable(str(exc)) from exc
        self._client = client
        self._stale = False
        logger.info("Connected to MongoDB database %s", self.db_name)


def get_pool(request: Request) -> MongoConnectionPool:
    return request.app.state.pool
