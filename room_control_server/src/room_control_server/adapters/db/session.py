import logging
from functools import lru_cache

from room_control_core.config.environments import get_settings
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

log = logging.getLogger(__name__)

Base = declarative_base()


def create_session_factory(database_url: str | None = None):
    """Create the session factory with current settings."""
    settings = get_settings()
    url = database_url or settings.DATABASE_URL

    log.info(f"Initializing database connection for {settings.ENVIRONMENT.value} environment")
    log.info(f"Database URL: {url}")

    engine = create_engine(url, future=True, echo=False, pool_pre_ping=True)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@lru_cache(maxsize=1)
def get_session_factory():
    return create_session_factory()
