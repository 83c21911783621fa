from sqlalchemy import create_engine, event
from sqlalchemy import exc as sa_exc
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from typing import Generator
from fastapi import Request
import logging

from .config import Settings

logger = logging.getLogger(__name__)

Base = declarative_base()

# Errors that mean the store could not answer right now; a retry may succeed
STORE_UNAVAILABLE_ERRORS = (
    sa_exc.OperationalError,
    sa_exc.TimeoutError,
    sa_exc.DisconnectionError,
)

def create_db_engine(settings: Settings) -> Engine:
    """Create the engine for the configured database.

    PostgreSQL gets a bounded connection pool and a statement timeout.
    SQLite gets a busy timeout and enforced foreign keys. It also opens
    every transaction with ``BEGIN IMMEDIATE`` so that writers are
    serialized: a read-then-insert inside one transaction cannot
    interleave with another one.
    """
    url = settings.get_database_url
    timeout = settings.DB_TIMEOUT_SECONDS

    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": timeout},
        )

        @event.listens_for(engine, "connect")
        def _configure_sqlite_connection(dbapi_connection, connection_record):
            # Let SQLAlchemy emit BEGIN itself
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine

    return create_engine(
        url,
        pool_size=5,
        max_overflow=10,
        pool_timeout=timeout,
        pool_recycle=1800,  # Recycle connections after 30 minutes
        pool_pre_ping=True,
        connect_args={"options": f"-c statement_timeout={timeout * 1000}"},
    )

def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Database dependency
def get_db(request: Request) -> Generator[Session, None, None]:
    """Get a database session scoped to the current request."""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()

# Database initialization
def init_db(engine: Engine):
    """Initialize database tables."""
    # Import models so they are registered on the metadata
    from .. import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info(f"Database schema ready on {engine.dialect.name}")
