from contextlib import contextmanager
from pathlib import Path

from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from minuta.infrastructure import db_models  # noqa: F401  registers tables


def get_engine(database_url: str):
    """
    Creates a SQLite engine for ``database_url``.

    In-memory URLs share a single connection so every session sees the same
    database.
    """
    connect_args = {"check_same_thread": False}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            database_url, connect_args=connect_args, poolclass=StaticPool
        )
    if database_url.startswith("sqlite:///"):
        Path(database_url.removeprefix("sqlite:///")).parent.mkdir(
            parents=True, exist_ok=True
        )
    return create_engine(database_url, connect_args=connect_args)


def init_db(engine):
    SQLModel.metadata.create_all(engine)


def session_factory_for(engine):
    """Returns a callable producing session context managers bound to ``engine``."""

    @contextmanager
    def _session_factory():
        with Session(engine) as session:
            yield session

    return _session_factory
