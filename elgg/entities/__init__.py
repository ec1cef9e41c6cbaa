from elgg.entities.access import entity_url, has_access_to_entity
from elgg.entities.service import EntityService, get_default_site

__all__ = ["EntityService", "entity_url", "get_default_site", "has_access_to_entity"]
