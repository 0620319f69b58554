"""
Database engine and session management.

Supports PostgreSQL (production) and SQLite (development) via DATABASE_URL.
Uses SQLAlchemy with connection pooling, health checks and a per-statement
time bound so a slow query fails instead of hanging the request.
"""

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session, DeclarativeBase
from sqlalchemy.pool import StaticPool

from restroom_directory.config import settings
from restroom_directory.logging_config import get_logger
from restroom_directory.exceptions import StoreConnectionError

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


def _is_sqlite(url: str) -> bool:
    """Check if the database URL is SQLite."""
    return url.startswith("sqlite")


def _is_in_memory(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


def _unicode_lower(value):
    return None if value is None else str(value).lower()


def create_db_engine(database_url: str | None = None, query_timeout_seconds: float | None = None) -> Engine:
    """
    Create a SQLAlchemy engine based on the database URL.

    Args:
        database_url: Override the URL from settings. Useful for testing.
        query_timeout_seconds: Override the per-statement time bound.

    Returns:
        SQLAlchemy Engine instance
    """
    url = database_url or settings.database.url
    timeout = query_timeout_seconds or settings.database.query_timeout_seconds
    logger.info("Creating database engine: %s", "SQLite" if _is_sqlite(url) else "PostgreSQL")

    try:
        if _is_sqlite(url):
            connect_args = {"check_same_thread": False, "timeout": timeout}
            if _is_in_memory(url):
                # One shared connection, otherwise every checkout sees an empty database
                engine = create_engine(url, connect_args=connect_args, poolclass=StaticPool, echo=False)
            else:
                engine = create_engine(url, connect_args=connect_args, echo=False)

            @event.listens_for(engine, "connect")
            def _set_sqlite_pragma(dbapi_conn, connection_record):
                cursor = dbapi_conn.cursor()
                if not _is_in_memory(url):
                    cursor.execute("PRAGMA journal_mode=WAL")
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()
                # Built-in lower() only folds ASCII; ilike compiles to lower(x) LIKE lower(y)
                dbapi_conn.create_function("lower", 1, _unicode_lower, deterministic=True)
        else:
            engine = create_engine(
                url,
                pool_size=settings.database.pool_size,
                max_overflow=settings.database.max_overflow,
                pool_timeout=timeout,
                pool_pre_ping=True,  # Health check before using connection
                connect_args={
                    "connect_timeout": max(1, int(timeout)),
                    "options": f"-c statement_timeout={int(timeout * 1000)}",
                },
                echo=False,
            )

        # Verify connection
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database connection verified successfully")

        return engine

    except Exception as e:
        raise StoreConnectionError(
            message=f"Failed to connect to database: {e}",
            details={"url": url.split("@")[-1] if "@" in url else url},  # Hide credentials
        ) from e


def create_session_factory(engine: Engine | None = None) -> sessionmaker[Session]:
    """
    Create a session factory bound to the given engine.

    Args:
        engine: SQLAlchemy engine. If None, creates one from settings.

    Returns:
        Configured sessionmaker
    """
    if engine is None:
        engine = create_db_engine()
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine | None = None) -> None:
    """
    Initialize the database: create all tables.

    Args:
        engine: SQLAlchemy engine. If None, creates one from settings.
    """
    if engine is None:
        engine = create_db_engine()

    # Import all models so they register with Base.metadata
    import restroom_directory.data.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")


def check_connection(engine: Engine) -> bool:
    """Return True when the store answers a trivial query."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning("Database health check failed: %s", e)
        return False
