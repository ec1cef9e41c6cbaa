#!/usr/bin/env python3
"""Run one cron period from a system scheduler.

Usage:
    python scripts/run_cron.py minute
"""
from __future__ import annotations

import argparse
import sys

from elgg.application import Elgg
from elgg.core.logging import setup_logging
from elgg.cron import CRON_PERIODS, run_cron
from elgg.db.session import get_session_factory


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Trigger the cron hook for a period.")
    parser.add_argument("period", choices=CRON_PERIODS)
    args = parser.parse_args(argv)

    setup_logging()
    elgg = Elgg()
    with get_session_factory()() as session:
        run_cron(elgg.hooks, args.period, session)
        session.commit()
    return 0


if __name__ == "__main__":
    sys.exit(main())
