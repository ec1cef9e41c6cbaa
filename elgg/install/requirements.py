"""Environment checks run by the installer's ``requirements`` step."""
from __future__ import annotations

import importlib.util
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from elgg.core.translations import echo

MIN_PYTHON = (3, 10)
REQUIRED_MODULES = ("sqlalchemy", "pydantic", "fastapi", "werkzeug")
RECOMMENDED_MODULES = ("httpx",)

Severity = Literal["failure", "warning", "info"]


@dataclass
class Check:
    severity: Severity
    message: str


@dataclass
class RequirementsReport:
    checks: dict[str, list[Check]] = field(default_factory=dict)

    @property
    def num_failures(self) -> int:
        return sum(
            1 for checks in self.checks.values() for check in checks if check.severity == "failure"
        )

    def to_dict(self) -> dict:
        return {
            "report": {
                category: [{"severity": c.severity, "message": c.message} for c in checks]
                for category, checks in self.checks.items()
            },
            "num_failures": self.num_failures,
        }


def _check_python(version_info=None) -> list[Check]:
    version_info = version_info or sys.version_info
    checks: list[Check] = []
    if tuple(version_info[:2]) < MIN_PYTHON:
        checks.append(Check("failure", echo("install:check:python:version")))

    for module in REQUIRED_MODULES:
        if importlib.util.find_spec(module) is None:
            checks.append(Check("failure", echo("install:check:module", [module])))
    for module in RECOMMENDED_MODULES:
        if importlib.util.find_spec(module) is None:
            checks.append(Check("warning", echo("install:check:module:recommended", [module])))

    if not checks:
        checks.append(Check("info", echo("install:check:python:success")))
    return checks


def _check_settings_dir(settings_file: Path) -> list[Check]:
    directory = settings_file.resolve().parent
    if os.access(directory, os.W_OK):
        return []
    return [Check("failure", echo("install:check:settings_dir", [str(directory)]))]


def check_requirements(settings_file: Path, version_info=None) -> RequirementsReport:
    report = RequirementsReport()
    report.checks["python"] = _check_python(version_info)

    # Only an installer that still has to write the settings file needs the directory
    if not settings_file.exists():
        settings_checks = _check_settings_dir(settings_file)
        if settings_checks:
            report.checks["settings"] = settings_checks
    return report
