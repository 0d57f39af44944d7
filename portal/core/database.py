import logging
from urllib.parse import urlparse

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool

from portal.core.config import get_settings


class Base(DeclarativeBase):
    pass


settings = get_settings()
logger = logging.getLogger(__name__)

LOCAL_HOSTS = {"localhost", "127.0.0.1", "db"}


def engine_options(database_url: str) -> dict:
    """Keyword arguments for ``create_engine`` by backend.

    In-memory SQLite shares one connection so every session sees the same
    tables. Postgres uses the configured pool as given, with TCP keepalives
    and TLS for anything that is not a local host.
    """
    parsed = urlparse(database_url)
    if parsed.scheme.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if parsed.path in ("", "/", "/:memory:"):
            options["poolclass"] = StaticPool
        return options
    if not parsed.scheme.startswith("postgresql"):
        return {}

    connect_args = {"keepalives": 1, "keepalives_idle": 30}
    if parsed.hostname not in LOCAL_HOSTS:
        connect_args["sslmode"] = "require"
    return {
        "connect_args": connect_args,
        "pool_pre_ping": settings.db_pool_pre_ping,
        "pool_recycle": settings.db_pool_recycle,
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_timeout": settings.db_pool_timeout,
    }


database_url = str(settings.database_url)

engine = create_engine(database_url, **engine_options(database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
logger.debug("Database engine ready backend=%s", engine.dialect.name)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
