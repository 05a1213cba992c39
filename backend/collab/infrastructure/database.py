"""Database Session Manager — async connection pool, transactions, and health checks.

Invariants:
    - Every session auto-rolls-back on exception (no partial commits leak)
    - atomic() wraps exactly one invariant-preserving operation: it commits on
      success and rolls back everything on any exception, domain or infrastructure
    - Uniqueness violations inside atomic() surface as VersionConflictError
      (a concurrent writer won the race; caller retries with fresh data)
    - All other SQLAlchemy exceptions mapped to DatabaseError (core/errors.py)

Design Decisions:
    - Singleton db_manager initialized on startup: FastAPI lifespan manages lifecycle
    - expire_on_commit=False: prevents lazy-load issues in async context
    - No in-process locks: cross-request coordination is row locks, partial
      unique indexes and (PostgreSQL only) a transaction-scoped advisory lock
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.exc import (
    IntegrityError, OperationalError, DBAPIError, SQLAlchemyError,
)
from sqlalchemy import Result, Select, false, text, update

from collab.core.errors import CollabError, DatabaseError, VersionConflictError

logger = logging.getLogger(__name__)

# Key for pg_advisory_xact_lock serializing every manager-edge write
HIERARCHY_LOCK_KEY = 0x6869_6572  # "hier"


class DatabaseSessionManager:
    """Manages async database sessions with pooling, rollback, and health checks."""

    def __init__(
        self,
        database_url: str,
        pool_size: int = 20,
        max_overflow: int = 10,
        statement_timeout_ms: int = 0,
    ):
        connect_args = {}
        if database_url.startswith("postgresql+asyncpg") and statement_timeout_ms:
            connect_args["server_settings"] = {
                "statement_timeout": str(statement_timeout_ms),
            }
        self.engine = create_async_engine(
            database_url,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=True,
            pool_recycle=3600,
            connect_args=connect_args,
        )
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide session with auto-rollback on exception."""
        session = self._session_factory()
        try:
            yield session
        except IntegrityError as e:
            await session.rollback()
            logger.error(f"DB integrity error: {e}")
            raise DatabaseError("Integrity constraint violated", "commit")
        except OperationalError as e:
            await session.rollback()
            logger.error(f"DB operational error: {e}")
            raise DatabaseError("Connection or operational error", "execute")
        except DBAPIError as e:
            await session.rollback()
            logger.error(f"DB driver error: {e}")
            raise DatabaseError("Database driver error", "query")
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"SQLAlchemy error: {e}")
            raise DatabaseError("Database operation failed", "unknown")
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False


@asynccontextmanager
async def atomic(db: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
    """One transaction: commit on success, full rollback on any failure."""
    try:
        yield db
        await db.commit()
    except CollabError:
        await db.rollback()
        raise
    except IntegrityError as e:
        await db.rollback()
        logger.warning(f"Uniqueness race lost, transaction rolled back: {e.orig}")
        raise VersionConflictError(
            "concurrent modification detected, reload and retry",
        ) from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Transaction failed: {e}")
        raise DatabaseError("Transaction failed", "commit") from e
    except BaseException:
        await db.rollback()
        raise


def dialect_name(db: AsyncSession) -> str:
    return db.get_bind().dialect.name


async def execute_for_update(db: AsyncSession, stmt: Select) -> Result:
    """Run stmt holding its rows against other writers until commit.

    SQLite has no FOR UPDATE: an empty write on the selected table takes the
    database-wide writer lock instead, and the read that follows runs inside
    that write transaction.
    """
    if dialect_name(db) != "sqlite":
        return await db.execute(stmt.with_for_update())
    table = stmt.selected_columns[0].table
    await db.execute(
        update(table).where(false()).values({table.c.id: table.c.id}),
    )
    return await db.execute(stmt)


async def acquire_hierarchy_lock(db: AsyncSession) -> None:
    """Serialize hierarchy edits for the rest of the current transaction.

    PostgreSQL only; on SQLite the writer lock taken by execute_for_update
    serializes hierarchy edits.
    """
    if dialect_name(db) != "postgresql":
        return
    await db.execute(
        text("SELECT pg_advisory_xact_lock(:key)"), {"key": HIERARCHY_LOCK_KEY},
    )


# Singleton (initialized on startup)
db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs):
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    if not db_manager:
        raise RuntimeError("Database not initialized")
    async with db_manager.session() as session:
        yield session
