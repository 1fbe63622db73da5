import logging
from typing import Tuple

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from string_registry.logging import setup_query_logging

logger = logging.getLogger("string_registry.db")

Base = declarative_base()


def create_session_factory(database_url: str) -> Tuple[Engine, sessionmaker]:
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    engine = create_engine(database_url, connect_args=connect_args)
    setup_query_logging(engine)

    # Import models so their tables are registered on Base.metadata
    from string_registry import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Connected to database: %s", engine.url.render_as_string(hide_password=True))
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    return engine, SessionLocal
