from elgg.api.main import app

__all__ = ["app"]
