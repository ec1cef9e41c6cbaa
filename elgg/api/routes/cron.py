"""GET /cron/{period}: run periodic jobs."""
from __future__ import annotations

import time

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from elgg.api.deps import get_db, get_elgg
from elgg.application import Elgg
from elgg.cron import CRON_PERIODS, run_cron

router = APIRouter(prefix="/cron", tags=["cron"])


@router.get("/{period}", summary="Trigger the cron hook for a period")
def trigger_cron(period: str, db: Session = Depends(get_db), elgg: Elgg = Depends(get_elgg)):
    if period not in CRON_PERIODS:
        raise HTTPException(status_code=404, detail=f"Unknown cron period: {period!r}")
    started = time.time()
    run_cron(elgg.hooks, period, db, now=started)
    return {"period": period, "started": started, "completed": time.time()}
