#!/usr/bin/env python3
"""Seed demo data: users, blog posts, subscriptions and notification preferences.

Usage:
    python scripts/seed_demo.py          # uses DATABASE_URL from env / .env
    DATABASE_URL=... python scripts/seed_demo.py
"""
from __future__ import annotations

from sqlalchemy.orm import Session

from elgg.application import Elgg
from elgg.db.base import Base
from elgg.db.session import get_engine
from elgg.notification.handlers import set_user_notification_setting


def seed(session: Session, elgg: Elgg) -> None:
    """Insert demo users who follow each other's blogs by e-mail."""
    elgg.notifications.register_event("object", "blog", ["create", "publish"])
    entities = elgg.entities(session)
    subscriptions = elgg.subscriptions(session)

    demo_people = [
        # (username, name, email, language)
        ("alice", "Alice Johnson", "alice.johnson@example.com", "en"),
        ("bob", "Bob Smith", "bob.smith@example.com", "en"),
        ("carlos", "Carlos Rivera", "carlos.r@example.com", "es"),
        ("priya", "Priya Patel", "priya.patel@example.in", "en"),
    ]

    users = []
    for username, name, email, language in demo_people:
        user = entities.get_user_by_username(username)
        if user is None:
            user = entities.create_user(username, "demo-password", name, email, language=language)
        set_user_notification_setting(session, user.guid, "email", True)
        users.append(user)

    author = users[0]
    for follower in users[1:]:
        subscriptions.add_subscription(follower.guid, "email", author.guid)

    for title in ("Hello world", "Second post"):
        entities.create_object("blog", author.guid, title=title, description=f"Demo post: {title}")

    session.commit()
    print(f"Seeded {len(users)} users, {len(users) - 1} subscriptions, 2 blog posts.")


def main() -> None:
    engine = get_engine()
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        seed(session, Elgg())


if __name__ == "__main__":
    main()
