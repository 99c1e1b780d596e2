"""
Database configuration and session management
"""
from contextlib import contextmanager
from typing import Generator, Iterator, Optional
import logging

from fastapi import Request
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool

from cardops.core.exceptions import CardOpsError, StorageError

logger = logging.getLogger(__name__)

# Create Base class for models
Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Process-wide store handle.

    Built once at startup (see ``create_app``) and handed to request handlers
    through ``get_db``. Holds the engine and the session factory.
    """

    def __init__(self, url: str, echo: bool = False):
        if not url:
            raise ValueError("DATABASE_URL is not configured")
        self.url = url
        self.engine = self._create_engine(url, echo)
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine
        )

    @staticmethod
    def _create_engine(url: str, echo: bool) -> Engine:
        if url.startswith("sqlite"):
            kwargs = {"connect_args": {"check_same_thread": False}}
            if url in ("sqlite://", "sqlite:///:memory:"):
                # Single shared connection so every session sees the same in-memory DB
                kwargs["poolclass"] = StaticPool
            engine = create_engine(url, echo=echo, **kwargs)
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
            logger.info("SQLite database engine created")
            return engine

        logger.info(f"Creating database engine...")
        logger.info(f"Database URL pattern: {url[:20]}...")
        try:
            engine = create_engine(
                url,
                pool_pre_ping=True,
                pool_size=5,
                max_overflow=10,
                pool_timeout=30,
                pool_recycle=1800,  # Recycle connections after 30 min
                echo=echo,
            )
        except Exception as e:
            logger.error(f"Failed to create database engine: {e}")
            raise
        logger.info("Database engine created successfully")
        return engine

    def session(self) -> Session:
        return self.SessionLocal()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Session that is always closed; commit is left to ``transaction``"""
        db = self.session()
        try:
            yield db
        finally:
            db.close()

    def create_all(self) -> None:
        """Create tables if needed (tests and local development)"""
        # Import models so they are registered on Base.metadata
        import cardops.models  # noqa: F401

        try:
            Base.metadata.create_all(bind=self.engine)
            logger.info("Database tables initialized")
        except Exception as e:
            logger.error(f"Failed to initialize database: {e}")
            raise

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    def dispose(self) -> None:
        self.engine.dispose()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """
    Unit of work: commit on success, roll back on any failure.

    SQLAlchemy errors surface as StorageError; domain errors raised inside
    the block propagate unchanged after the rollback.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Transaction rolled back: {e}")
        raise StorageError(str(e)) from e
    except Exception:
        db.rollback()
        raise


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Dependency function to get database session.
    Use this in FastAPI route dependencies.

    Example:
        @router.get("/requests")
        def list_requests(db: Session = Depends(get_db)):
            ...
    """
    database: Optional[Database] = getattr(request.app.state, "database", None)
    if database is None:
        raise RuntimeError("Database is not initialized on app.state")
    db = database.session()
    try:
        yield db
    except CardOpsError:
        db.rollback()
        raise
    except Exception as e:
        logger.error(f"Database session error: {e}")
        db.rollback()
        raise
    finally:
        db.close()
