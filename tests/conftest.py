from __future__ import annotations

import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from elgg.application import Elgg
from elgg.core.settings import Settings
from elgg.db.base import Base


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite+pysqlite:///:memory:",
        SITE_URL="http://community.example.org/",
        SITE_EMAIL="site@community.example.org",
        SETTINGS_FILE=str(tmp_path / "settings.env"),
        INSTALL_PATH=str(tmp_path / "www"),
    )


@pytest.fixture()
def db_session():
    """In-memory SQLite session with all tables created."""
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def elgg(settings: Settings) -> Elgg:
    return Elgg(settings)


@pytest.fixture()
def client(db_session: Session, elgg: Elgg, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    """TestClient with get_db overridden to use the in-memory session."""
    monkeypatch.setenv("DATABASE_URL", "sqlite+pysqlite:///:memory:")

    from elgg.core.settings import get_settings

    get_settings.cache_clear()

    from elgg.api.deps import get_db
    from elgg.api.main import app

    def _override_db():
        yield db_session

    app.state.elgg = elgg
    app.dependency_overrides[get_db] = _override_db
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
    app.dependency_overrides.clear()
    app.state.elgg = None
    get_settings.cache_clear()
    os.environ.pop("DATABASE_URL", None)
