# coshh/db.py
from sqlalchemy import JSON, create_engine
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool

from coshh.config import get_settings


settings = get_settings()

engine_kwargs = {"echo": False, "future": True}
if settings.database_url.startswith("sqlite"):
    # Tests run against an in-memory SQLite database shared across threads
    engine_kwargs["connect_args"] = {"check_same_thread": False}
    if ":memory:" in settings.database_url or settings.database_url.endswith("://"):
        engine_kwargs["poolclass"] = StaticPool

engine = create_engine(settings.database_url, **engine_kwargs)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    future=True,
)


class Base(DeclarativeBase):
    """
    Base class for ORM models.
    """
    pass


# JSONB on PostgreSQL, plain JSON anywhere else
JSONType = JSON().with_variant(JSONB(), "postgresql")
