"""
Database management with connection pooling and health monitoring
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import event, text
from sqlalchemy.exc import DisconnectionError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from app.core.settings import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


class Base(DeclarativeBase):
    pass


class DatabaseManager:
    """Database manager owning the async engine and the session factory"""

    def __init__(self, url: Optional[str] = None) -> None:
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        self._setup_engine(url)

    def _setup_engine(self, url: Optional[str]) -> None:
        """Setup database engine"""
        db_url = url or self._prepare_database_url()
        engine_kwargs = self._get_engine_kwargs(db_url)

        self.engine = create_async_engine(db_url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

        self._setup_event_listeners()

        logger.info(f"Database engine initialized with URL: {self._mask_url(db_url)}")

    def _prepare_database_url(self) -> str:
        """Prepare database URL with appropriate async driver"""
        raw_url = settings.database.database_url

        # Handle SQLite for testing
        if settings.TESTING:
            return "sqlite+aiosqlite:///:memory:"

        if raw_url.startswith("postgresql://"):
            return raw_url.replace("postgresql://", "postgresql+asyncpg://", 1)

        return raw_url

    def _get_engine_kwargs(self, db_url: str) -> Dict[str, Any]:
        """Get engine configuration based on database type"""
        base_kwargs: Dict[str, Any] = {
            "echo": settings.database.DB_ECHO,
            "pool_pre_ping": settings.database.DB_POOL_PRE_PING,
        }

        if "sqlite" in db_url:
            sqlite_connect_args: Dict[str, Any] = {
                "check_same_thread": False,
                "timeout": 20,
            }
            base_kwargs["connect_args"] = sqlite_connect_args
            if ":memory:" in db_url:
                base_kwargs["poolclass"] = StaticPool
        else:
            postgres_connect_args: Dict[str, Any] = {
                "command_timeout": settings.database.DB_COMMAND_TIMEOUT,
                "server_settings": {
                    "application_name": f"{settings.PROJECT_NAME}_app",
                    "statement_timeout": str(settings.database.DB_STATEMENT_TIMEOUT),
                    "lock_timeout": str(settings.database.DB_LOCK_TIMEOUT),
                },
            }
            base_kwargs.update(
                {
                    "pool_size": settings.database.DB_POOL_SIZE,
                    "max_overflow": settings.database.DB_MAX_OVERFLOW,
                    "pool_timeout": settings.database.DB_POOL_TIMEOUT,
                    "pool_recycle": settings.database.DB_POOL_RECYCLE,
                    "connect_args": postgres_connect_args,
                }
            )

        return base_kwargs

    def _setup_event_listeners(self) -> None:
        """Setup connection pool listeners for slow-connection logging"""
        if not self.engine:
            return

        @event.listens_for(self.engine.sync_engine, "checkout")  # type: ignore
        def receive_checkout(
            dbapi_connection: Any, connection_record: Any, connection_proxy: Any
        ) -> None:
            connection_record.info["checkout_time"] = time.time()

        @event.listens_for(self.engine.sync_engine, "checkin")  # type: ignore
        def receive_checkin(dbapi_connection: Any, connection_record: Any) -> None:
            if "checkout_time" in connection_record.info:
                checkout_duration = (
                    time.time() - connection_record.info.pop("checkout_time")
                )
                if checkout_duration > 30:
                    logger.warning(
                        f"Long-running database connection: {checkout_duration:.2f}s"
                    )

        @event.listens_for(self.engine.sync_engine, "invalidate")  # type: ignore
        def receive_invalidate(
            dbapi_connection: Any, connection_record: Any, exception: Any
        ) -> None:
            logger.warning(f"Database connection invalidated: {exception}")

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get database session; the caller owns commit boundaries"""
        if not self.session_factory:
            raise RuntimeError("Database not initialized")

        session = self.session_factory()
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def health_check(self) -> dict[str, Any]:
        """Database connectivity check"""
        if not self.engine:
            return {"status": "error", "message": "Database engine not initialized"}

        try:
            start_time = time.time()
            async with self.get_session() as session:
                result = await session.execute(text("SELECT 1"))
                if result.scalar() != 1:
                    return {"status": "error", "message": "Health check query failed"}

            return {
                "status": "healthy",
                "response_time_ms": round((time.time() - start_time) * 1000, 2),
                "database_url": self._mask_url(str(self.engine.url)),
            }
        except DisconnectionError as e:
            logger.error(f"Database disconnection error: {e}")
            return {"status": "error", "message": "Database disconnected"}
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            return {"status": "error", "message": str(e)}

    async def close(self) -> None:
        """Close database engine and all connections"""
        if self.engine:
            await self.engine.dispose()
            logger.info("Database engine closed")

    def _mask_url(self, url: str) -> str:
        """Mask sensitive information in database URL"""
        if "@" in url:
            parts = url.split("@")
            if len(parts) == 2:
                auth_part = parts[0]
                if ":" in auth_part:
                    protocol_user = auth_part.rsplit(":", 1)[0]
                    return f"{protocol_user}:***@{parts[1]}"
        return url


# Global database manager instance
db_manager = DatabaseManager()
