"""Engine and session factories plus the database driver shim.

``check_environment`` confirms that the DBAPI module behind a database URL
can be imported before anything tries to connect with it.
"""
from __future__ import annotations

import importlib.util

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import ArgumentError, NoSuchModuleError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from elgg.core.exceptions import DatabaseError
from elgg.core.settings import get_settings

_engine = None
_session_factory = None

# SQLAlchemy driver names whose DBAPI module is named differently
_DRIVER_MODULES = {
    "pysqlite": "sqlite3",
    "mysqldb": "MySQLdb",
}


def check_environment(database_url: str) -> None:
    """Raise ``DatabaseError`` if the driver for *database_url* is unavailable."""
    try:
        url = make_url(database_url)
        dialect = url.get_dialect()
    except (ArgumentError, NoSuchModuleError) as exc:
        raise DatabaseError(f"Unsupported database URL: {exc}") from exc

    module_name = _DRIVER_MODULES.get(dialect.driver, dialect.driver)
    if importlib.util.find_spec(module_name) is None:
        raise DatabaseError(
            f"The {module_name} module is required for this adapter but it is not installed"
        )


def create_engine_for(database_url: str) -> Engine:
    """Create an engine after checking that its driver is importable."""
    check_environment(database_url)
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, pool_pre_ping=True)


def get_engine():
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_engine_for(settings.database_url)
    return _engine


def get_session_factory():
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(
            bind=get_engine(),
            autocommit=False,
            autoflush=False,
            class_=Session,
        )
    return _session_factory
