"""Shared SQLAlchemy Base and session factory – imported by all models and by Alembic."""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from waterlog.config import settings

Base = declarative_base()

_engine = None
_SessionLocal = None


def init_engine(database_url=None):
    """(Re)bind the engine and session factory, e.g. to a test database."""
    global _engine, _SessionLocal
    url = database_url or settings.database_url
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    _engine = create_engine(url, pool_pre_ping=True, connect_args=connect_args)
    _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_engine)
    return _engine


def get_engine():
    if _engine is None:
        init_engine()
    return _engine


def SessionLocal():
    if _SessionLocal is None:
        init_engine()
    return _SessionLocal()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
