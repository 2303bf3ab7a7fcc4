# app/database.py
from sqlalchemy import event
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

from app.core.config import get_settings

settings = get_settings()

# ---------------------------------------------------------
# Relational store connection
#
# - SQLite (default): check_same_thread=False because FastAPI runs sync
#   endpoints in a worker threadpool, and foreign keys must be switched
#   on per connection.
# - Anything else: pool_pre_ping=True to drop dead pooled connections.
# ---------------------------------------------------------

db_url = settings.DATABASE_URL


def build_engine(url: str, echo: bool = False):
    """
    Create an engine for `url` with the dialect-specific options above.

    Tests call this directly with an in-memory URL.
    """
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, otherwise every session sees an empty DB
            kwargs["poolclass"] = StaticPool
        new_engine = create_engine(url, echo=echo, **kwargs)

        @event.listens_for(new_engine, "connect")
        def _enable_sqlite_fk(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return new_engine

    return create_engine(url, echo=echo, pool_pre_ping=True)


engine = build_engine(db_url, echo=settings.DB_ECHO)


def create_db_and_tables() -> None:
    """
    Create all tables defined in SQLModel metadata if they do not exist.

    This is called once on application startup.
    """
    SQLModel.metadata.create_all(engine)


def get_session():
    """
    FastAPI dependency that yields a SQLModel Session.

    Usage:

        from fastapi import Depends

        @router.get("/example")
        def example_endpoint(session: Session = Depends(get_session)):
            ...
    """
    with Session(engine) as session:
        yield session
