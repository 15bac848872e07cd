from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

# Base class for all database models
# All models inherit from this to get SQLAlchemy ORM functionality
Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    """
    Create a database engine for the given connection string.

    The engine owns the connection pool shared by every request. It is built
    by the app factory (or a test) and passed down, never imported as a global.
    """
    if database_url.startswith("sqlite"):
        # SQLite connections are used from FastAPI's worker threads
        connect_args = {"check_same_thread": False}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            # One shared connection, otherwise every checkout sees an empty database
            return create_engine(database_url, connect_args=connect_args, poolclass=StaticPool)
        return create_engine(database_url, connect_args=connect_args)
    # pool_pre_ping drops dead connections instead of failing the next query
    return create_engine(database_url, pool_pre_ping=True)


def build_session_factory(engine: Engine) -> sessionmaker:
    """Create a session factory bound to the engine"""
    # autocommit=False: Changes require explicit commit
    # autoflush=False: Don't auto-flush before queries
    # expire_on_commit=False: Loaded attributes stay readable after commit
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Create tables for all models that inherit from Base"""
    # Importing the models registers them on Base.metadata
    from authcore.models import user  # noqa: F401

    # In production, use migrations (Alembic) instead of create_all
    Base.metadata.create_all(bind=engine)
