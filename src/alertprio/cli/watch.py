"""
Periodic refresh loop: upload a file once, then re-process a drifted copy on an interval
"""
from __future__ import annotations

import argparse
import logging
import random
import sys
import time
from pathlib import Path
from typing import Callable, List

from alertprio import config
from alertprio.cli.process import build_session
from alertprio.core.scoring import PolicyError
from alertprio.io.tabular import ParseError, load_batch
from alertprio.logs import setup_json_logging
from alertprio.session import AlertSession

logger = logging.getLogger(__name__)


def run_cycles(
    session: AlertSession,
    cycles: int,
    interval_seconds: float,
    rng: random.Random,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Run `cycles` refreshes (0 means until interrupted); returns the number completed."""
    done = 0
    while cycles <= 0 or done < cycles:
        if done:
            sleep(interval_seconds)
        result = session.refresh(rng=rng)
        done += 1
        if result is None:
            continue
        logger.info(
            "refresh_cycle",
            extra={
                "cycle": done,
                "after_cleaning": result.report.after_cleaning,
                "new": len(result.new_alerts),
                "blocked": len(result.blocked_ips),
            },
        )
    return done


def main(argv: List[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Periodically refresh and re-prioritize an alert batch")
    p.add_argument("--input", type=Path, required=True, help="CSV or JSONL alert file")
    p.add_argument("--scoring", type=Path, default=None, help="Scoring policy YAML")
    p.add_argument("--interval", type=float, default=config.REFRESH_INTERVAL_SEC, help="Seconds between refreshes")
    p.add_argument("--cycles", type=int, default=0, help="Number of refreshes (0 = run until interrupted)")
    p.add_argument("--seed", type=int, default=None, help="Seed for refresh simulation")
    args = p.parse_args(argv)

    setup_json_logging(config.LOG_LEVEL)

    try:
        session = build_session(args.scoring)
        raw = load_batch(args.input)
    except (ParseError, PolicyError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    session.upload(raw, file_name=args.input.name)
    logger.info(f"Starting periodic refresh (interval: {args.interval}s)")
    try:
        run_cycles(session, args.cycles, args.interval, random.Random(args.seed))
    except KeyboardInterrupt:
        logger.info("Stopped periodic refresh")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
