import logging
import logging.config
import re

REDACT_PATTERNS = [
    # user:secret@ in database and SMTP URLs
    (re.compile(r"(://[^:/@\s]+:)[^@\s]+@"), r"\1[REDACTED]@"),
    (re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}"), "[REDACTED]"),
    (re.compile(r"(?i)((?:db)?password[12]?\s*[=:]\s*)([^,\s]+)"), r"\1[REDACTED]"),
]

SECRET_KEYS = frozenset({"password", "password1", "password2", "dbpassword"})


class CredentialRedactingFilter(logging.Filter):
    """Scrub e-mail addresses, passwords and URL credentials from log records."""

    def _sanitize(self, value: object) -> object:
        if isinstance(value, dict):
            return {
                key: "[REDACTED]" if str(key).lower() in SECRET_KEYS else self._sanitize(item)
                for key, item in value.items()
            }
        if not isinstance(value, str):
            return value

        redacted = value
        for pattern, replacement in REDACT_PATTERNS:
            redacted = pattern.sub(replacement, redacted)
        return redacted

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = self._sanitize(record.msg)

        if isinstance(record.args, tuple):
            record.args = tuple(self._sanitize(item) for item in record.args)
        elif isinstance(record.args, dict):
            record.args = self._sanitize(record.args)

        return True


def setup_logging() -> None:
    from elgg.core.settings import get_settings

    settings = get_settings()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "redact": {
                    "()": "elgg.core.logging.CredentialRedactingFilter",
                }
            },
            "formatters": {
                "default": {
                    "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "filters": ["redact"],
                }
            },
            "loggers": {
                "": {
                    "handlers": ["console"],
                    "level": settings.log_level.upper(),
                },
                "uvicorn.access": {
                    "handlers": ["console"],
                    "level": "WARNING",
                    "propagate": False,
                },
            },
        }
    )
