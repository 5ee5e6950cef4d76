import asyncio
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import text
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from ddlforge.core.config import Settings, settings as defaultSettings
from ddlforge.core.exceptions import (
    ConnectionFailedException, MetadataQueryException, NotConnectedException
)
from ddlforge.models.catalog_models import ConnectRequest

logger = logging.getLogger(__name__)

DRIVER_NAME = "postgresql+asyncpg"

# Errors a broken connection or a bad query can surface through the async driver.
DATABASE_ERRORS = (SQLAlchemyError, OSError, asyncio.TimeoutError)


def buildEngine(credentials: ConnectRequest, appSettings: Settings) -> AsyncEngine:
    url = URL.create(
        DRIVER_NAME,
        username=credentials.username,
        password=credentials.password,
        host=credentials.host,
        port=credentials.port,
        database=credentials.database,
    )
    return create_async_engine(
        url,
        pool_size=appSettings.poolSize,
        max_overflow=appSettings.poolMaxOverflow,
        pool_recycle=appSettings.poolRecycleSeconds,
        pool_pre_ping=True,
        echo=appSettings.debug,
        connect_args={
            "timeout": appSettings.connectTimeoutSeconds,
            "command_timeout": appSettings.queryTimeoutSeconds,
        },
    )


@dataclass(frozen=True)
class SessionSnapshot:
    """An engine reference plus the schema scope, captured at the start of one operation."""
    engine: AsyncEngine
    scope: Tuple[str, ...]
    session: "DatabaseSession" = field(repr=False, compare=False)

    async def fetchAll(self, statement: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        async with self.session.acquire(self.engine) as conn:
            result = await conn.execute(text(statement), params or {})
            return [dict(row) for row in result.mappings().all()]

    async def query(self, operation: str, statement: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        try:
            return await self.fetchAll(statement, params)
        except DATABASE_ERRORS as e:
            logger.error("Query failed while %s: %s", operation, e)
            raise MetadataQueryException(operation, reason=str(e))


class DatabaseSession:
    def __init__(
        self,
        appSettings: Optional[Settings] = None,
        engineFactory: Optional[Callable[[ConnectRequest, Settings], AsyncEngine]] = None,
    ):
        self.settings = appSettings or defaultSettings
        self.engineFactory = engineFactory or buildEngine
        self._engine: Optional[AsyncEngine] = None
        self._scope: Tuple[str, ...] = (self.settings.defaultSchema,)
        self._lock = asyncio.Lock()

    @property
    def isConnected(self) -> bool:
        return self._engine is not None

    @property
    def scope(self) -> Tuple[str, ...]:
        return self._scope

    async def _disposeQuietly(self, engine: AsyncEngine) -> None:
        try:
            await engine.dispose()
        except DATABASE_ERRORS as e:
            logger.warning("Ignoring error while closing connection pool: %s", e)

    async def connect(self, credentials: ConnectRequest) -> None:
        async with self._lock:
            if self._engine is not None:
                oldEngine, self._engine = self._engine, None
                await self._disposeQuietly(oldEngine)
            self._scope = (self.settings.defaultSchema,)

            try:
                engine = self.engineFactory(credentials, self.settings)
            except (SQLAlchemyError, ValueError) as e:
                raise ConnectionFailedException("Could not create connection pool.", reason=str(e))

            try:
                async with engine.connect() as conn:
                    await conn.execute(text("SELECT 1"))
            except DATABASE_ERRORS as e:
                await self._disposeQuietly(engine)
                logger.error(
                    "Connection probe failed for %s@%s:%s/%s: %s",
                    credentials.username, credentials.host, credentials.port, credentials.database, e
                )
                raise ConnectionFailedException("Could not connect to the database.", reason=str(e))

            self._engine = engine
            logger.info(
                "Connected to %s@%s:%s/%s",
                credentials.username, credentials.host, credentials.port, credentials.database
            )

    async def disconnect(self) -> bool:
        async with self._lock:
            if self._engine is None:
                return False
            engine, self._engine = self._engine, None
            self._scope = (self.settings.defaultSchema,)
            await self._disposeQuietly(engine)
            logger.info("Disconnected from database")
            return True

    async def snapshot(self) -> SessionSnapshot:
        async with self._lock:
            if self._engine is None:
                raise NotConnectedException()
            return SessionSnapshot(engine=self._engine, scope=self._scope, session=self)

    @asynccontextmanager
    async def acquire(self, engine: AsyncEngine) -> AsyncIterator[AsyncConnection]:
        """Check out a connection, but only while engine is still the live one."""
        async with AsyncExitStack() as stack:
            # checkout shares the lock with connect/disconnect so a disposed pool is never reopened
            async with self._lock:
                if self._engine is not engine:
                    logger.info("Refusing connection from a replaced or closed pool")
                    raise NotConnectedException("The database connection was replaced while the request was running.")
                conn = await stack.enter_async_context(engine.connect())
            yield conn

    async def updateScope(self, engine: AsyncEngine, schemaNames: Sequence[str]) -> Tuple[str, ...]:
        resolved = tuple(schemaNames) or (self.settings.defaultSchema,)
        async with self._lock:
            # a reconnect may have swapped the engine while the schema query ran
            if self._engine is not engine:
                logger.info("Discarding schema scope resolved against a replaced connection")
                return resolved
            self._scope = resolved
        logger.info("Schema scope set to: %s", ", ".join(resolved))
        return resolved


databaseSession = DatabaseSession()


def getSession() -> DatabaseSession:
    return databaseSession
