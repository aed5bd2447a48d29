"""Database engine and session management for the planner table store.

This module builds the SQLAlchemy engine behind the planner's tables for both
PostgreSQL and SQLite, creates the schema on first use and hands out
session factories to the store layer.
"""

import logging
import os
from typing import Generator, Tuple

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Import config to ensure dotenv is loaded
from . import config
from .models.base import Base

logger = logging.getLogger(__name__)

# Module-level engine and session factory - initialized lazily
ENGINE: Engine | None = None
SESSION_FACTORY: sessionmaker | None = None


def get_db_url() -> str:
    """Get database URL from environment variables.

    Returns:
        Database URL string. Defaults to SQLite in-memory if DATABASE_URL is not set.
    """
    return os.getenv("DATABASE_URL", "sqlite:///:memory:")


def create_engine_and_session_factory(db_url: str | None = None) -> Tuple[Engine, sessionmaker]:
    """Create SQLAlchemy engine and session factory.

    Args:
        db_url: Database URL. If None, uses get_db_url().

    Returns:
        Tuple of (engine, sessionmaker)

    Raises:
        Exception: If engine creation fails.
    """
    if db_url is None:
        db_url = get_db_url()

    try:
        if db_url.startswith("postgresql"):
            engine = create_engine(
                db_url,
                pool_size=10,
                max_overflow=20,
                pool_timeout=30,
                pool_pre_ping=True
            )
        else:
            connect_args = {"check_same_thread": False}
            if db_url == "sqlite:///:memory:":
                # A single shared connection keeps the in-memory tables alive
                engine = create_engine(
                    db_url,
                    connect_args=connect_args,
                    poolclass=StaticPool
                )
            else:
                engine = create_engine(db_url, connect_args=connect_args)

        session_factory = sessionmaker(
            bind=engine,
            autoflush=False,
            expire_on_commit=False
        )

        return engine, session_factory

    except Exception as e:
        logger.error(f"Failed to create database engine: {e}", exc_info=True)
        raise


def init_db(engine: Engine) -> None:
    """Create every planner table that does not exist yet."""
    # Registers the planner models on Base.metadata
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info(f"Planner tables ready: {sorted(Base.metadata.tables)}")


def _ensure_initialized() -> None:
    """Ensure the module-level ENGINE and SESSION_FACTORY are initialized.

    The schema is created on first initialization so a fresh database is
    immediately usable by the store.
    """
    global ENGINE, SESSION_FACTORY

    if SESSION_FACTORY is None:
        ENGINE, SESSION_FACTORY = create_engine_and_session_factory()
        init_db(ENGINE)


def _reset_db_state() -> None:
    """Dispose the current engine and force re-initialization on next access.

    Primarily used for testing.
    """
    global ENGINE, SESSION_FACTORY

    if ENGINE is not None:
        try:
            ENGINE.dispose()
        except Exception as e:
            logger.error(f"Error disposing database engine: {e}", exc_info=True)

    ENGINE = None
    SESSION_FACTORY = None


def get_session_factory() -> sessionmaker:
    """Return the lazily initialized module-level session factory."""
    _ensure_initialized()
    return SESSION_FACTORY


def get_db() -> Generator[Session, None, None]:
    """Get database session generator.

    Yields:
        SQLAlchemy Session instance.

    Ensures proper cleanup of the session even if errors occur.
    """
    db = get_session_factory()()
    try:
        yield db
    except Exception as e:
        logger.error(f"Database session error: {e}", exc_info=True)
        raise
    finally:
        db.close()


def check_db_connection() -> bool:
    """Check database connectivity.

    Returns:
        True if connection successful, False otherwise.
    """
    db_gen = None
    try:
        db_gen = get_db()
        db = next(db_gen)
        db.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection check failed: {e}", exc_info=True)
        return False
    finally:
        if db_gen is not None:
            try:
                next(db_gen)
            except StopIteration:
                pass
            except Exception as cleanup_error:
                logger.error(f"Error during database cleanup: {cleanup_error}", exc_info=True)
