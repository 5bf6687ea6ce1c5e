"""
SQLAlchemy models for the document store.

Every document kind (protocol, RTSM info, roles & access, inventory defaults,
drug ordering/resupply) is stored as one row of the documents table, keyed by
kind. Saving a kind overwrites its row; there is no history.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, Integer, DateTime, JSON, create_engine
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from app.config import settings

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in development and tests)
JsonDocument = JSON().with_variant(JSONB(), "postgresql")

Base = declarative_base()


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class DocumentRecord(Base):
    """Latest stored document of one kind."""

    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    kind = Column(String(64), nullable=False, unique=True)  # protocol, rtsm-info, roles-access, ...
    body = Column(JsonDocument, nullable=False)
    version = Column(Integer, nullable=False)  # bumped on every save
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # SQLAlchemy increments version on every UPDATE and raises StaleDataError
    # if another writer bumped it first
    __mapper_args__ = {"version_id_col": version}


# =============================================================================
# DATABASE CONNECTION
# =============================================================================

_engine = None
_SessionLocal = None


def build_engine(database_url: str, echo: bool = False):
    """Create an engine suited to the database behind ``database_url``."""
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=echo, **kwargs)

    return create_engine(
        database_url,
        poolclass=QueuePool,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=300,  # Recycle connections every 5 minutes
        pool_pre_ping=True,  # Test connection before using (auto-reconnect)
        echo=echo,
    )


def get_engine():
    """Get or create the database engine for the configured URL."""
    global _engine
    if _engine is None:
        _engine = build_engine(settings.database_url, echo=settings.debug)
    return _engine


def get_session_factory():
    """Get or create session factory."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=get_engine()
        )
    return _SessionLocal


def init_schema(engine=None):
    """Initialize database schema (create tables if not exist)."""
    engine = engine or get_engine()
    Base.metadata.create_all(bind=engine)
