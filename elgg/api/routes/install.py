"""Installer routes: GET describes a step, POST submits it."""
from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from elgg.api.deps import get_installer
from elgg.core.exceptions import InstallationError
from elgg.install import Installer

router = APIRouter(prefix="/install", tags=["install"])


@router.get("/{step}", summary="Describe an installation step")
def describe_step(step: str, installer: Installer = Depends(get_installer)):
    try:
        result = installer.run(step)
    except InstallationError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return asdict(result)


@router.post("/{step}", summary="Submit an installation step")
def submit_step(
    step: str,
    params: dict[str, Any] | None = Body(default=None),
    installer: Installer = Depends(get_installer),
):
    try:
        result = installer.run(step, params or {})
    except InstallationError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return asdict(result)
