# peerfusion/database.py
import logging
from typing import Optional

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from peerfusion.config import Settings

logger = logging.getLogger(__name__)

# SQLAlchemy Base
Base = declarative_base()


class Database:
    """
    Owns the SQLAlchemy engine and session factory for one application.
    Created at startup and disposed at shutdown.
    """

    def __init__(self, url: str, engine: Optional[Engine] = None, **engine_kwargs):
        self.url = url
        self.engine = engine or create_engine(url, **engine_kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Build the engine with the pool and timeout limits from settings"""
        kwargs = {"pool_pre_ping": True}
        if settings.DATABASE_URL.startswith("postgresql"):
            kwargs.update(
                pool_size=settings.DB_POOL_SIZE,
                pool_timeout=settings.DB_POOL_TIMEOUT,
                connect_args={"connect_timeout": settings.DB_CONNECT_TIMEOUT},
            )
        return cls(settings.DATABASE_URL, **kwargs)

    def create_all(self) -> None:
        # Register every model on Base.metadata before creating tables
        import peerfusion.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def session(self):
        return self.SessionLocal()

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Database engine disposed")


# Dependency to get DB session
def get_db(request: Request):
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
