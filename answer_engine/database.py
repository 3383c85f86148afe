"""SQLAlchemy setup for the local answer-sheet store."""
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from answer_engine.config import DATABASE_URL


def make_engine(url: str = DATABASE_URL) -> Engine:
    """Create an engine; SQLite connections are shared with the dispatcher and ticker threads."""
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


def make_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


engine = make_engine()
SessionLocal = make_session_factory(engine)


# Base class for models
class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


def init_db(bind: Engine | None = None) -> None:
    """Create the ``storage_entries`` table if it does not exist."""
    # Import models so they register on Base.metadata
    from answer_engine.models import db as _db_models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
