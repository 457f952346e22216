"""
Run one commander discovery from CLI.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import time
from dataclasses import asdict

from apscheduler.schedulers.background import BackgroundScheduler

from app.scheduler.jobs import build_runtime, register_discovery_job


def main() -> int:
    parser = argparse.ArgumentParser(description="Discover top commanders and schedule decklist scrapes.")
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Keep the scheduler running so staggered decklist jobs execute.",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").strip().upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    scheduler = BackgroundScheduler(timezone="UTC")
    runtime = build_runtime(scheduler=scheduler)
    scheduler.start(paused=True)
    try:
        summary = runtime.discovery_job.run()
        print(json.dumps(asdict(summary), indent=2))
        if not args.serve:
            return 0

        register_discovery_job(runtime)
        scheduler.resume()
        while True:
            time.sleep(60)
    except KeyboardInterrupt:
        return 0
    finally:
        scheduler.shutdown(wait=False)


if __name__ == "__main__":
    raise SystemExit(main())
