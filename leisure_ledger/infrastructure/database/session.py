"""Database engine and session factory"""

from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from leisure_ledger.config import settings
from leisure_ledger.infrastructure.database.models import Base


def build_engine(database_url: str) -> Engine:
    """Create an engine; SQLite connections may be used from the server's worker threads"""
    connect_args: Dict[str, Any] = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine = engine) -> None:
    """Create the app_state table if it does not exist"""
    Base.metadata.create_all(bind=bind)
