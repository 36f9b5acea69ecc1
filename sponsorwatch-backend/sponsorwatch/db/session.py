from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from sponsorwatch.core.settings import get_settings


def create_db_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        # Crawl workers run on pool threads
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(database_url, pool_pre_ping=True)


def make_session_factory(bind: Engine, schema: Optional[str] = None) -> sessionmaker:
    """Session factory bound to one channel's schema."""
    if schema and bind.dialect.name != "sqlite":
        bind = bind.execution_options(schema_translate_map={None: schema})
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=bind)


engine = create_db_engine(get_settings().database_url)
SessionLocal = make_session_factory(engine)
