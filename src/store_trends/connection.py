"""Database engine and session helpers."""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from store_trends.models import Base

load_dotenv()
logger = logging.getLogger(__name__)


def get_engine(database_url: Optional[str] = None) -> Engine:
    """Create an engine from `database_url` or the DATABASE_URL environment variable."""
    url = database_url or os.environ.get("DATABASE_URL")
    if not url:
        raise ValueError("DATABASE_URL environment variable is required")
    return create_engine(url, pool_pre_ping=True)


def get_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)


def create_tables(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent)."""
    Base.metadata.create_all(engine)
    logger.info("Ensured tables exist: %s", ", ".join(sorted(Base.metadata.tables)))
