"""
Database connection and session management module.

Uses SQLAlchemy for the key-value slot that holds the serialized roster.
Supports PostgreSQL and SQLite (the default for a local install).
Provides the session factory used by the persistence backend.
"""

import os
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase

# Read database URL from environment
# Fallback to a SQLite file next to the working directory
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    "sqlite:///./student_roster.db"
)


def build_engine(url: str):
    """
    Create an engine configured for the given database URL.

    SQLite does not support pool_size, max_overflow, or pool_pre_ping,
    so those are only applied to PostgreSQL.
    """
    engine_kwargs = {"echo": False}

    if url.startswith("postgresql"):
        engine_kwargs.update({
            "pool_size": 10,
            "max_overflow": 20,
            "pool_pre_ping": True,
        })
    elif url.startswith("sqlite"):
        # SQLite needs check_same_thread=False for FastAPI (multi-threaded)
        engine_kwargs["connect_args"] = {"check_same_thread": False}

    new_engine = create_engine(url, **engine_kwargs)

    if url.startswith("sqlite"):
        @event.listens_for(new_engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

    return new_engine


engine = build_engine(DATABASE_URL)

# Session factory - creates new database sessions
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


def create_tables(bind=None):
    """
    Create all database tables directly.

    There are no migrations: the only table is the key-value slot,
    whose shape never changes.
    """
    Base.metadata.create_all(bind=bind or engine)
