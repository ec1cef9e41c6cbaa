"""FastAPI dependency injection: database sessions and service factories."""
from __future__ import annotations

from collections.abc import Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from elgg.application import Elgg
from elgg.db.session import get_session_factory
from elgg.entities import EntityService
from elgg.install import Installer
from elgg.notification.subscriptions import SubscriptionsService


def get_db() -> Generator[Session, None, None]:
    """Yield a SQLAlchemy session; commit on success, rollback on error."""
    db = get_session_factory()()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_elgg(request: Request) -> Elgg:
    """Return the application object built at startup."""
    return request.app.state.elgg


def get_entity_service(db: Session = Depends(get_db), elgg: Elgg = Depends(get_elgg)) -> EntityService:
    return elgg.entities(db)


def get_subscriptions(db: Session = Depends(get_db), elgg: Elgg = Depends(get_elgg)) -> SubscriptionsService:
    return elgg.subscriptions(db)


def get_installer(elgg: Elgg = Depends(get_elgg)) -> Generator[Installer, None, None]:
    installer = Installer(settings=elgg.settings)
    try:
        yield installer
    finally:
        installer.close()
