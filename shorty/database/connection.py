"""
Database engine and session factory.

The engine is built from a URL instead of living as a module global, so the
application (and each test) owns its own connection pool.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    """Create an engine; SQLite connections are shared across threads."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Request handlers and the flush thread use the same pool
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autoflush=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Create tables for every registered model."""
    # Import models to ensure they're registered with Base
    from shorty.models import URLMapping  # noqa: F401

    Base.metadata.create_all(bind=engine)
