import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .utils import resolve_sqlite_url

load_dotenv()
# Project root directory (repo root)
ROOT_DIR = Path(__file__).resolve().parents[2]


def database_url() -> str:
    """Return the configured ``DB_URL`` with relative SQLite paths made absolute."""
    return resolve_sqlite_url(os.getenv("DB_URL", "sqlite:///./dev.db"), ROOT_DIR)


DEFAULT_SQLITE_URL = database_url()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # Winner rows rely on ON DELETE CASCADE from their round.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    url = database_url or DEFAULT_SQLITE_URL
    engine = create_engine(url, echo=echo, future=True)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def get_sessionmaker(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        expire_on_commit=False,  # Keep rounds readable after commit
        future=True,
    )
