from __future__ import annotations

from elgg.db.models import ACCESS_LOGGED_IN, ACCESS_PUBLIC, Entity, User


def has_access_to_entity(entity: Entity, user: User | None) -> bool:
    """Return whether *user* may see *entity*.

    Admins and owners see everything; public entities are visible to all,
    logged-in entities to any user, private ones to the owner only.
    """
    if user is not None and (user.admin or user.guid == entity.owner_guid):
        return True
    if entity.access_id == ACCESS_PUBLIC:
        return True
    if entity.access_id == ACCESS_LOGGED_IN:
        return user is not None
    return False


def entity_url(entity: Entity, site_url: str) -> str:
    base = site_url if site_url.endswith("/") else f"{site_url}/"
    return f"{base}view/{entity.guid}"
