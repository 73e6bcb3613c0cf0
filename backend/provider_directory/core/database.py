from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from provider_directory.core.config import Settings

# Base class for all database models
Base = declarative_base()


def build_engine(settings: Settings) -> Engine:
    """
    Create the database engine - manages the connection pool.

    SQLite needs check_same_thread disabled because the test client and the
    threadpool may touch a connection from different threads. Server databases
    get a small fixed pool.
    """
    if settings.DATABASE_URL.startswith("sqlite"):
        return create_engine(
            settings.DATABASE_URL,
            connect_args={"check_same_thread": False},
        )
    return create_engine(
        settings.DATABASE_URL,
        pool_size=settings.DB_POOL_SIZE,
        pool_pre_ping=True,
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    # autocommit=False: Changes require explicit commit
    # autoflush=False: Don't auto-flush before queries
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request) -> Iterator[Session]:
    """
    Dependency for getting database session.

    The session factory is built once in create_app and stored on app.state.
    The session is closed after the request completes, even on errors.
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
