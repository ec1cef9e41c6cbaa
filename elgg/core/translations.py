"""Message strings used by the notification pipeline and installer.

Lookups fall back to English, then to the key itself.
"""
from __future__ import annotations

DEFAULT_LANGUAGE = "en"

TRANSLATIONS: dict[str, dict[str, str]] = {
    "en": {
        "notification:subject": "Notification about %s",
        "notification:body": "View the new activity at %s",
        "install:check:python:version": "Python 3.10 or newer is required.",
        "install:check:python:success": "Your Python interpreter satisfies all requirements.",
        "install:check:module": "The %s module is required.",
        "install:check:module:recommended": "The %s module is recommended.",
        "install:check:settings_dir": "The settings directory %s must be writable to create the settings file.",
        "install:database:installed": "Database has been installed.",
        "install:settings:saved": "Site settings have been saved.",
        "install:admin:created": "Admin account has been created.",
        "install:dbdriver": "Database driver",
        "install:dbuser": "Database username",
        "install:dbpassword": "Database password",
        "install:dbname": "Database name",
        "install:dbhost": "Database host",
        "install:dbport": "Database port",
        "install:sitename": "Site name",
        "install:siteemail": "Site email address",
        "install:wwwroot": "Site URL",
        "install:path": "Install directory",
        "install:dataroot": "Data directory",
        "install:language": "Default language",
        "install:siteaccess": "Default site access",
        "install:displayname": "Display name",
        "install:email": "Email address",
        "install:username": "Username",
        "install:password1": "Password",
        "install:password2": "Password again",
    },
    "es": {
        "notification:subject": "Notificación sobre %s",
        "notification:body": "Vea la nueva actividad en %s",
    },
}


def echo(key: str, args: tuple | list = (), language: str | None = None) -> str:
    """Return the translated string for *key* formatted with *args*."""
    table = TRANSLATIONS.get(language or DEFAULT_LANGUAGE, {})
    template = table.get(key) or TRANSLATIONS[DEFAULT_LANGUAGE].get(key) or key
    if args:
        return template % tuple(args)
    return template
