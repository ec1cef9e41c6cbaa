"""Notification subscriptions, preferences and delivery methods."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from elgg.api.deps import get_db, get_elgg, get_subscriptions
from elgg.application import Elgg
from elgg.db.models import Entity, User
from elgg.notification.handlers import get_user_notification_settings, set_user_notification_setting
from elgg.notification.subscriptions import SubscriptionsService

router = APIRouter(prefix="/notifications", tags=["notifications"])


class SubscriptionBody(BaseModel):
    user_guid: int
    method: str
    target_guid: int


class SettingsBody(BaseModel):
    methods: dict[str, bool]


@router.get("/methods", summary="Registered delivery methods")
def list_methods(elgg: Elgg = Depends(get_elgg)):
    return {"methods": elgg.notifications.methods}


@router.post("/subscriptions", summary="Subscribe a user to a target", status_code=201)
def add_subscription(
    body: SubscriptionBody,
    db: Session = Depends(get_db),
    subscriptions: SubscriptionsService = Depends(get_subscriptions),
):
    if not isinstance(db.get(Entity, body.user_guid), User):
        raise HTTPException(status_code=404, detail=f"User {body.user_guid} not found")
    if db.get(Entity, body.target_guid) is None:
        raise HTTPException(status_code=404, detail=f"Entity {body.target_guid} not found")
    if body.method not in subscriptions.methods:
        raise HTTPException(status_code=400, detail=f"Unknown notification method {body.method!r}")

    created = subscriptions.add_subscription(body.user_guid, body.method, body.target_guid)
    return {"created": created}


@router.delete("/subscriptions", summary="Unsubscribe a user from a target")
def remove_subscription(
    body: SubscriptionBody,
    subscriptions: SubscriptionsService = Depends(get_subscriptions),
):
    if not subscriptions.remove_subscription(body.user_guid, body.method, body.target_guid):
        raise HTTPException(status_code=404, detail="Subscription not found")
    return {"removed": True}


@router.get("/subscriptions/{user_guid}", summary="List a user's subscriptions")
def list_subscriptions(user_guid: int, subscriptions: SubscriptionsService = Depends(get_subscriptions)):
    return {str(target): methods for target, methods in subscriptions.get_user_subscriptions(user_guid).items()}


@router.get("/settings/{user_guid}", summary="Get a user's delivery preferences")
def get_notification_settings(user_guid: int, db: Session = Depends(get_db)):
    if not isinstance(db.get(Entity, user_guid), User):
        raise HTTPException(status_code=404, detail=f"User {user_guid} not found")
    return get_user_notification_settings(db, user_guid)


@router.put("/settings/{user_guid}", summary="Update a user's delivery preferences")
def put_notification_settings(user_guid: int, body: SettingsBody, db: Session = Depends(get_db)):
    if not isinstance(db.get(Entity, user_guid), User):
        raise HTTPException(status_code=404, detail=f"User {user_guid} not found")
    for method, enabled in body.methods.items():
        set_user_notification_setting(db, user_guid, method, enabled)
    return get_user_notification_settings(db, user_guid)
