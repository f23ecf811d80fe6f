"""Database connection and session management"""
import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.exc import SQLAlchemyError

from play_royalties.models.db import Base
from play_royalties.db_config import DatabaseManager

logger = logging.getLogger(__name__)

# Seconds a SQLite writer waits for the database lock
SQLITE_BUSY_TIMEOUT = 30

def _serialize_sqlite_transactions(engine: Engine) -> None:
    """
    Make every SQLite transaction take the write lock up front.

    pysqlite defers BEGIN until the first write, which lets two transactions
    read the same cooldown state. BEGIN IMMEDIATE serializes them instead.
    """
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

class Database:
    """Database connection and session manager for the ledger store"""

    def __init__(self, url: Optional[str] = None):
        """Initialize database manager state"""
        self._url = url
        self._engine = None
        self._SessionLocal = None

    def _get_connection_string(self) -> str:
        """
        Get database connection string, preferring the explicit URL.

        Raises:
            ValueError: If required settings are missing
        """
        if self._url:
            return self._url
        try:
            return DatabaseManager.initialize_from_env()
        except ValueError as e:
            logger.error(f"Failed to initialize database connection: {e}")
            raise

    @property
    def initialized(self) -> bool:
        return self._SessionLocal is not None

    def init(self) -> None:
        """
        Initialize database connection and create tables.
        """
        try:
            connection_string = self._get_connection_string()
            if connection_string.startswith("sqlite"):
                self._engine = create_engine(
                    connection_string,
                    connect_args={"timeout": SQLITE_BUSY_TIMEOUT, "check_same_thread": False}
                )
                _serialize_sqlite_transactions(self._engine)
            else:
                self._engine = create_engine(connection_string, pool_pre_ping=True)
            Base.metadata.create_all(self._engine)
            self._SessionLocal = sessionmaker(bind=self._engine, expire_on_commit=False)
            logger.info(f"Database initialized successfully ({self._engine.dialect.name})")

        except SQLAlchemyError as e:
            logger.error(f"Database initialization failed: {e}")
            raise

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Provide a transactional scope around a series of operations"""
        if not self._SessionLocal:
            raise RuntimeError("Database not initialized. Call init() first.")

        session = self._SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        """
        Clean up database connections.
        Should be called during application shutdown.
        """
        if self._engine:
            self._engine.dispose()
            self._engine = None
            self._SessionLocal = None

# Global database instance
db = Database()
