"""Periodic jobs.

An external scheduler hits ``/cron/<period>`` (or runs
``scripts/run_cron.py``); handlers registered for hook ``cron``,
``<period>`` receive ``{"time": <epoch seconds>, "db": <Session>}``.
"""
from __future__ import annotations

import logging
import time

from sqlalchemy.orm import Session

from elgg.events import HookRegistry

logger = logging.getLogger(__name__)

CRON_PERIODS: tuple[str, ...] = (
    "minute",
    "fiveminute",
    "fifteenmin",
    "halfhour",
    "hourly",
    "daily",
    "weekly",
    "monthly",
    "yearly",
    "reboot",
)


def run_cron(hooks: HookRegistry, period: str, db: Session, now: float | None = None):
    """Trigger the cron hook for *period* and return the hook's value."""
    if period not in CRON_PERIODS:
        raise ValueError(f"Unknown cron period {period!r}; must be one of {list(CRON_PERIODS)}")

    now = time.time() if now is None else now
    logger.info("Running %s cron", period)
    return hooks.trigger("cron", period, {"time": now, "db": db}, None)
