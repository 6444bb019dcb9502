"""
Background worker for scheduled alert scans.

Usage:
    python -m workhub.worker

Runs the delay alert scan every ALERT_SCAN_INTERVAL_SECONDS (hourly by
default). Run it as a separate process next to the API.
"""

import asyncio
import logging

from workhub.core.config import settings
from workhub.core.structured_logging import build_log_context, configure_logging
from workhub.db.session import SessionLocal
from workhub.services import alert_service

configure_logging()
logger = logging.getLogger(__name__)


def run_scan_once() -> int:
    db = SessionLocal()
    try:
        return alert_service.generate_delay_alerts(db)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


async def worker_loop() -> None:
    logger.info(
        "Alert worker started, scanning every %ss", settings.ALERT_SCAN_INTERVAL_SECONDS
    )
    while True:
        try:
            created = await asyncio.to_thread(run_scan_once)
            logger.info("Scan finished: created=%s", created)
        except Exception:
            # A failed scan must not stop the schedule
            logger.exception(
                "Alert scan failed",
                extra=build_log_context(route="worker", method="background"),
            )
        await asyncio.sleep(settings.ALERT_SCAN_INTERVAL_SECONDS)


def main() -> None:
    """Entry point for the worker."""
    try:
        asyncio.run(worker_loop())
    except KeyboardInterrupt:
        logger.info("Worker shutting down")


if __name__ == "__main__":
    main()
