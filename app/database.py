"""
Database connection and session management for VibeSwipe Backend
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from app.core.config import settings


def build_engine(database_url: str, echo: bool = False):
    """Create an engine; SQLite needs cross-thread access for the scheduler"""
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url == "sqlite://":
            # One shared connection, otherwise every session sees an empty db
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=echo, **kwargs)

    return create_engine(
        database_url,
        pool_pre_ping=True,      # Test connections before using
        pool_size=10,            # Connection pool size
        max_overflow=20,         # Overflow connections allowed
        echo=echo
    )


def build_session_factory(bind):
    # Rows are handed out as detached snapshots, so keep attributes loaded
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=bind)


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG and not settings.is_sqlite)

# Session factory for creating database sessions
SessionLocal = build_session_factory(engine)

# Base class for all models
Base = declarative_base()


def init_db(bind=None):
    """Initialize database tables"""
    # Import models so every table is registered on Base.metadata
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
