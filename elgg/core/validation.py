from __future__ import annotations

import re
from urllib.parse import urlparse

_EMAIL = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")


def is_email_address(value: str | None) -> bool:
    return bool(value) and _EMAIL.match(value.strip()) is not None


def is_http_url(value: str | None) -> bool:
    if not value:
        return False
    parsed = urlparse(value)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def sanitise_filepath(path: str) -> str:
    """Normalise separators and guarantee exactly one trailing slash."""
    path = path.replace("\\", "/").strip()
    return path.rstrip("/") + "/"
