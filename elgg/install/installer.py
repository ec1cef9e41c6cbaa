"""Installer controller.

Steps run in order::

    welcome -> requirements -> database -> settings -> admin -> complete

``run(step, params)`` with ``params=None`` only describes the step (form
defaults, requirements report).  With a dict it performs the step's
action.  A requested step is clamped to the furthest step the current
installation state allows, so an interrupted install resumes where it
stopped.
"""
from __future__ import annotations

import logging
import os
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dotenv import dotenv_values, set_key
from sqlalchemy import inspect, text
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from elgg.core.exceptions import DatabaseError, InstallationError
from elgg.core.settings import Settings, get_settings
from elgg.core.translations import TRANSLATIONS, echo
from elgg.core.validation import is_email_address, is_http_url, sanitise_filepath
from elgg.db.base import Base
from elgg.db.models import ACCESS_LOGGED_IN, ACCESS_PRIVATE, ACCESS_PUBLIC
from elgg.db.repositories import UserRepository
from elgg.db.session import create_engine_for
from elgg.entities.service import EntityService, get_default_site
from elgg.events import EventRegistry
from elgg.install.requirements import check_requirements

logger = logging.getLogger(__name__)

STEPS: tuple[str, ...] = ("welcome", "requirements", "database", "settings", "admin", "complete")

MIN_PASSWORD_LENGTH = 6
MIN_USERNAME_LENGTH = 4


@dataclass
class StepResult:
    step: str
    ok: bool
    next_step: str | None
    errors: list[str] = field(default_factory=list)
    messages: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)


class Installer:
    def __init__(
        self,
        settings: Settings | None = None,
        settings_file: str | Path | None = None,
        install_path: str | Path | None = None,
        events: EventRegistry | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.settings_file = Path(settings_file or self.settings.settings_file)
        self.install_path = Path(install_path or self.settings.install_path).resolve()
        self.events = events or EventRegistry()
        self._engine: Engine | None = None

    # -- step management ----------------------------------------------------

    @staticmethod
    def next_step(step: str) -> str | None:
        index = STEPS.index(step)
        return STEPS[index + 1] if index + 1 < len(STEPS) else None

    def run(self, step: str, params: dict[str, Any] | None = None) -> StepResult:
        if step not in STEPS:
            raise InstallationError(f"{step} is an unknown installation step.")

        resumed = self.resume_step(step)
        if resumed != step:
            logger.info("Resuming install at %s instead of %s", resumed, step)
            step = resumed

        controllers = {
            "welcome": self._welcome,
            "requirements": self._requirements,
            "database": self._database,
            "settings": self._site_settings,
            "admin": self._admin,
            "complete": self._complete,
        }
        return controllers[step](params)

    def resume_step(self, step: str) -> str:
        """Clamp *step* to the furthest step the install state allows."""
        reached = self.progress()
        if reached == "complete":
            return "complete"
        if STEPS.index(step) > STEPS.index(reached):
            return reached
        return step

    def progress(self) -> str:
        if not self.settings_file.exists():
            return "database"
        try:
            engine = self._get_engine()
            if not inspect(engine).has_table("entities"):
                return "database"
            with self._session() as db:
                if get_default_site(db) is None:
                    return "settings"
                if UserRepository(db).count_admins() == 0:
                    return "admin"
        except (DatabaseError, SQLAlchemyError) as exc:
            logger.warning("Could not inspect install state: %s", exc)
            return "database"
        return "complete"

    # -- controllers --------------------------------------------------------

    def _welcome(self, params: dict | None) -> StepResult:
        return StepResult("welcome", True, self.next_step("welcome"))

    def _requirements(self, params: dict | None) -> StepResult:
        report = check_requirements(self.settings_file)
        return StepResult(
            "requirements",
            report.num_failures == 0,
            self.next_step("requirements"),
            data=report.to_dict(),
        )

    def _complete(self, params: dict | None) -> StepResult:
        return StepResult("complete", True, None, data={"site_url": self._setting("SITE_URL")})

    def _database(self, params: dict | None) -> StepResult:
        result = StepResult("database", False, self.next_step("database"), data={"variables": self.database_defaults()})

        # A hand-written settings file counts as a submitted form
        if params is None and not self.settings_file.exists():
            return result

        if not self.settings_file.exists():
            values = {**self.database_defaults(), **(params or {})}
            errors = self.validate_database_vars(values)
            if errors:
                result.errors = errors
                return result
            url = self.build_database_url(values)
            errors = self.check_database_settings(url)
            if errors:
                result.errors = errors
                return result
            errors = self.create_settings_file({"DATABASE_URL": url})
            if errors:
                result.errors = errors
                return result

        errors = self.install_database()
        if errors:
            result.errors = errors
            result.data["failure"] = True
            return result

        result.ok = True
        result.messages.append(echo("install:database:installed"))
        return result

    def _site_settings(self, params: dict | None) -> StepResult:
        result = StepResult("settings", False, self.next_step("settings"), data={"variables": self.settings_defaults()})
        if params is None:
            return result

        values = {**self.settings_defaults(), **params}
        errors = self.validate_settings_vars(values)
        if not errors:
            errors = self.save_site_settings(values)
        if errors:
            result.errors = errors
            return result

        result.ok = True
        result.messages.append(echo("install:settings:saved"))
        return result

    def _admin(self, params: dict | None) -> StepResult:
        result = StepResult("admin", False, self.next_step("admin"), data={"variables": self.admin_defaults()})
        if params is None:
            return result

        values = {**self.admin_defaults(), **params}
        errors = self.validate_admin_vars(values)
        if not errors:
            errors = self.create_admin_account(values)
        if errors:
            result.errors = errors
            return result

        result.ok = True
        result.messages.append(echo("install:admin:created"))
        return result

    # -- database -----------------------------------------------------------

    @staticmethod
    def database_defaults() -> dict[str, Any]:
        return {
            "dbdriver": "postgresql+psycopg",
            "dbuser": "",
            "dbpassword": "",
            "dbname": "",
            "dbhost": "localhost",
            "dbport": None,
        }

    @staticmethod
    def validate_database_vars(values: dict[str, Any]) -> list[str]:
        required = ["dbdriver", "dbname"]
        if not str(values.get("dbdriver", "")).startswith("sqlite"):
            required += ["dbuser", "dbpassword", "dbhost"]
        errors = _missing_fields(values, required) or _non_text_fields(values, required)
        if errors:
            return errors
        port = values.get("dbport")
        if port not in (None, "") and _as_int(port) is None:
            return [f"{echo('install:dbport')} must be a number"]
        return []

    @staticmethod
    def build_database_url(values: dict[str, Any]) -> str:
        driver = values["dbdriver"]
        if driver.startswith("sqlite"):
            url = URL.create(driver, database=values["dbname"])
        else:
            url = URL.create(
                driver,
                username=values["dbuser"],
                password=values["dbpassword"],
                host=values["dbhost"],
                port=int(values["dbport"]) if values.get("dbport") else None,
                database=values["dbname"],
            )
        return url.render_as_string(hide_password=False)

    @staticmethod
    def check_database_settings(database_url: str) -> list[str]:
        try:
            engine = create_engine_for(database_url)
        except DatabaseError as exc:
            return [str(exc)]

        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
                version = engine.dialect.server_version_info
                if engine.dialect.name == "mysql" and version and version[0] < 5:
                    return [f"MySQL must be 5.0 or above. Your server is using {'.'.join(map(str, version))}."]
        except SQLAlchemyError as exc:
            logger.warning("Database connection check failed: %s", exc.__class__.__name__)
            return ["Unable to connect to the database with these settings."]
        finally:
            engine.dispose()
        return []

    def create_settings_file(self, values: dict[str, str]) -> list[str]:
        try:
            self.settings_file.touch(exist_ok=True)
            for key, value in values.items():
                set_key(str(self.settings_file), key, value, quote_mode="never")
        except OSError:
            return [f"Unable to write {self.settings_file}"]
        logger.info("Wrote settings file %s", self.settings_file)
        return []

    def install_database(self) -> list[str]:
        try:
            engine = self._get_engine()
            Base.metadata.create_all(bind=engine)
        except (DatabaseError, SQLAlchemyError) as exc:
            return [str(exc)]
        return []

    # -- site settings ------------------------------------------------------

    def settings_defaults(self) -> dict[str, Any]:
        return {
            "sitename": "New Elgg site",
            "siteemail": "",
            "wwwroot": self.settings.site_url,
            "path": str(self.install_path),
            "dataroot": "",
            "language": self.settings.default_language,
            "siteaccess": ACCESS_PUBLIC,
        }

    @staticmethod
    def validate_settings_vars(values: dict[str, Any]) -> list[str]:
        errors = _missing_fields(values, ["sitename", "wwwroot", "path", "dataroot", "language", "siteaccess"]) or _non_text_fields(
            values, ["sitename", "siteemail", "wwwroot", "path", "dataroot", "language"]
        )
        if errors:
            return errors

        dataroot = Path(values["dataroot"])
        if not dataroot.is_dir() or not os.access(dataroot, os.W_OK):
            return [f"Your data directory {values['dataroot']} is not writable by the web server."]

        if dataroot.resolve().is_relative_to(Path(values["path"]).resolve()):
            return [f"Your data directory {values['dataroot']} must be outside of your install path for security."]

        if values.get("siteemail") and not is_email_address(values["siteemail"]):
            return [f"{values['siteemail']} is not a valid email address."]

        if not is_http_url(values["wwwroot"]):
            return [f"{values['wwwroot']} is not a valid URL."]

        if values["language"] not in TRANSLATIONS:
            return [f"{values['language']} is not an installed language."]

        if _as_int(values["siteaccess"]) not in {ACCESS_PRIVATE, ACCESS_LOGGED_IN, ACCESS_PUBLIC}:
            return [f"{values['siteaccess']} is not a valid access level."]

        return []

    def save_site_settings(self, values: dict[str, Any]) -> list[str]:
        path = sanitise_filepath(str(values["path"]))
        dataroot = sanitise_filepath(str(values["dataroot"]))
        wwwroot = sanitise_filepath(str(values["wwwroot"]))

        try:
            with self._session() as db:
                entities = EntityService(db, self.events)
                site = entities.create_site(values["sitename"], wwwroot, values.get("siteemail") or None)
                entities.set_config("installed", int(time.time()))
                entities.set_config("path", path)
                entities.set_config("dataroot", dataroot)
                entities.set_config("default_site", site.guid)
                entities.set_config("version", self.settings.app_version)
                entities.set_config("language", values["language"])
                entities.set_config("default_access", int(values["siteaccess"]))
                entities.set_config("allow_registration", True)
                entities.set_config("walled_garden", False)
                db.commit()
        except (DatabaseError, SQLAlchemyError):
            logger.exception("Unable to create the site")
            return ["Unable to create the site."]

        errors = self.create_settings_file({"SITE_URL": wwwroot})
        if values.get("siteemail"):
            errors += self.create_settings_file({"SITE_EMAIL": values["siteemail"]})
        return errors

    # -- admin account ------------------------------------------------------

    @staticmethod
    def admin_defaults() -> dict[str, Any]:
        return {"displayname": "", "email": "", "username": "", "password1": "", "password2": ""}

    @staticmethod
    def validate_admin_vars(values: dict[str, Any]) -> list[str]:
        fields = ["displayname", "email", "username", "password1", "password2"]
        errors = _missing_fields(values, fields) or _non_text_fields(values, fields)
        if errors:
            return errors

        if values["password1"] != values["password2"]:
            return ["Your passwords must match."]
        if len(values["password1"]) < MIN_PASSWORD_LENGTH:
            return [f"Password must be at least {MIN_PASSWORD_LENGTH} characters."]
        if len(values["username"].strip()) < MIN_USERNAME_LENGTH:
            return [f"Username must be at least {MIN_USERNAME_LENGTH} characters."]
        if not is_email_address(values["email"]):
            return [f"{values['email']} is not a valid email address."]
        return []

    def create_admin_account(self, values: dict[str, Any]) -> list[str]:
        try:
            with self._session() as db:
                entities = EntityService(db, self.events)
                site = entities.get_site()
                entities.create_user(
                    values["username"].strip(),
                    values["password1"],
                    values["displayname"],
                    values["email"],
                    admin=True,
                    language=entities.get_config("language", self.settings.default_language),
                    site_guid=site.guid if site is not None else 0,
                )
                db.commit()
        except ValueError as exc:
            return [str(exc)]
        except (DatabaseError, SQLAlchemyError):
            logger.exception("Unable to create an admin account")
            return ["Unable to create an admin account."]
        return []

    # -- plumbing -----------------------------------------------------------

    def _setting(self, key: str) -> str | None:
        if not self.settings_file.exists():
            return None
        return dotenv_values(self.settings_file).get(key)

    def _get_engine(self) -> Engine:
        if self._engine is None:
            database_url = self._setting("DATABASE_URL")
            if not database_url:
                raise DatabaseError(f"{self.settings_file} does not define DATABASE_URL")
            self._engine = create_engine_for(database_url)
        return self._engine

    @contextmanager
    def _session(self) -> Iterator[Session]:
        factory = sessionmaker(bind=self._get_engine(), autocommit=False, autoflush=False)
        with factory() as db:
            yield db

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None


def _missing_fields(values: dict[str, Any], required: list[str]) -> list[str]:
    for name in required:
        value = values.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            return [f"{echo(f'install:{name}')} is required"]
    return []


def _non_text_fields(values: dict[str, Any], names: list[str]) -> list[str]:
    for name in names:
        value = values.get(name)
        if value is not None and not isinstance(value, str):
            return [f"{echo(f'install:{name}')} must be text"]
    return []


def _as_int(value: Any) -> int | None:
    """Form value as an integer, or ``None`` when it is not one."""
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
