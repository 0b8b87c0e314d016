"""Database configuration and session management."""

from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config.logging import get_logger
from ..config.settings import get_settings

logger = get_logger(__name__)

# Base class for all ORM models
Base = declarative_base()

_engine: Optional[Engine] = None
_eod_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None
_EodSessionLocal: Optional[sessionmaker] = None


def _configure_sqlite_for_performance(dbapi_connection, connection_record):
    """Configure SQLite for better concurrency and reliability."""
    with dbapi_connection:
        dbapi_connection.execute("PRAGMA journal_mode=WAL")
        dbapi_connection.execute("PRAGMA foreign_keys=ON")
        dbapi_connection.execute("PRAGMA synchronous=NORMAL")
        dbapi_connection.execute("PRAGMA temp_store=MEMORY")


def build_engine(database_url: str) -> Engine:
    """Create a database engine for the given URL using application settings."""
    settings = get_settings()
    is_sqlite = database_url.startswith("sqlite")

    logger.info(
        "Creating database engine",
        url_type="sqlite" if is_sqlite else "other",
        echo_sql=settings.database_echo_sql,
    )

    engine_kwargs = {
        "echo": settings.database_echo_sql,
        "pool_pre_ping": settings.database_pool_pre_ping,
        "pool_recycle": settings.database_pool_recycle,
    }

    if is_sqlite:
        engine_kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": 30,
        }
        # File databases need one connection per session; in-memory ones only have one.
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite+pysqlite://"):
            engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs.update(
            {
                "pool_size": 5,
                "max_overflow": 10,
            }
        )

    engine = create_engine(database_url, **engine_kwargs)

    if is_sqlite:
        event.listen(engine, "connect", _configure_sqlite_for_performance)

    return engine


def get_engine() -> Engine:
    """Get the application database engine, creating it if necessary."""
    global _engine

    if _engine is None:
        _engine = build_engine(get_settings().get_database_url())
        logger.info("Database engine initialized")

    return _engine


def get_eod_engine() -> Engine:
    """Get the engine holding EOD price history; the application engine unless configured."""
    global _eod_engine

    settings = get_settings()
    if not settings.has_separate_eod_database():
        return get_engine()

    if _eod_engine is None:
        _eod_engine = build_engine(settings.get_eod_database_url())
        logger.info("EOD database engine initialized")

    return _eod_engine


def _make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        expire_on_commit=False,
    )


def get_session_factory() -> sessionmaker:
    """Get the application session factory, creating it if necessary."""
    global _SessionLocal

    if _SessionLocal is None:
        _SessionLocal = _make_session_factory(get_engine())
        logger.debug("Session factory created")

    return _SessionLocal


def get_eod_session_factory() -> sessionmaker:
    """Get the session factory for EOD price reads."""
    global _EodSessionLocal

    if not get_settings().has_separate_eod_database():
        return get_session_factory()

    if _EodSessionLocal is None:
        _EodSessionLocal = _make_session_factory(get_eod_engine())
        logger.debug("EOD session factory created")

    return _EodSessionLocal


@contextmanager
def session_scope(factory: Optional[sessionmaker] = None) -> Iterator[Session]:
    """Run a block of work in one transaction, committing on success."""
    session = (factory or get_session_factory())()

    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_tables():
    """Create all database tables."""
    from .models import EodPrice

    logger.info("Creating database tables")
    Base.metadata.create_all(bind=get_engine())

    if get_settings().has_separate_eod_database():
        EodPrice.__table__.create(bind=get_eod_engine(), checkfirst=True)

    logger.info("Database tables created successfully")


def check_database_health() -> dict:
    """
    Check database connectivity.

    Returns:
        dict: Database health status
    """
    try:
        with session_scope() as session:
            health_check = session.execute(text("SELECT 1")).scalar()

        logger.debug("Database health check successful")
        return {
            "status": "healthy",
            "connectivity": health_check == 1,
            "database_url": get_settings().get_database_url().split("@")[-1],
        }

    except Exception as e:
        logger.error("Database health check failed", error=str(e), exc_info=True)
        return {
            "status": "unhealthy",
            "error": str(e),
            "connectivity": False,
        }
