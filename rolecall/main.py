"""
RoleCall Scheduler Process - Main Entry Point

This module runs the long-lived scheduler process with:
- Configuration check (Redis is required)
- Database schema initialization
- Startup pass: stale run sweep, profile schedules, immediate scrapes
- APScheduler loop for recurring scrapes and maintenance jobs
- Optional Prometheus metrics endpoint

Architecture:
    Scheduler process (python -m rolecall)
    ├── ScrapeScheduler ──enqueue──▶ "scrape" queue
    │
    Celery workers
    ├── scrape_board  ──enqueue──▶ "triage" queue
    └── triage_listing

Shutdown on SIGTERM/SIGINT stops the scheduler and closes queue connections.
"""

import asyncio
import logging
import signal
import sys
from dataclasses import dataclass
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from rolecall.celery import celery_app
from rolecall.config import Settings, get_settings, require_redis_url
from rolecall.database import init_db
from rolecall.errors import ConfigurationError
from rolecall.metrics import start_metrics_server
from rolecall.queues import Queues, build_queues
from rolecall.scheduler import ScrapeScheduler

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class Pipeline:
    queues: Queues
    scheduler: ScrapeScheduler

    def close(self) -> None:
        self.scheduler.shutdown()
        self.queues.close()


def create_pipeline(settings: Optional[Settings] = None) -> Pipeline:
    """Build the queue handles and the scheduler that feeds them."""
    settings = settings or get_settings()
    queues = build_queues(celery_app)
    scheduler = ScrapeScheduler(
        AsyncIOScheduler(timezone=settings.scheduler_timezone),
        queues.scrape,
        settings=settings,
    )
    return Pipeline(queues=queues, scheduler=scheduler)


def expose_scheduler_metrics(settings: Settings) -> Optional[int]:
    return start_metrics_server(settings.scheduler_metrics_port)


async def serve(pipeline: Pipeline, settings: Settings) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, stop.set)

    pipeline.scheduler.start()
    expose_scheduler_metrics(settings)
    logger.info("Ready: scheduler running, waiting for shutdown signal")

    await stop.wait()
    logger.info("Shutting down...")
    pipeline.close()


def run() -> int:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)

    try:
        require_redis_url(settings)
    except ConfigurationError as e:
        logger.error(str(e))
        return 1

    init_db()
    pipeline = create_pipeline(settings)

    pipeline.scheduler.sweep_stale_runs()
    pipeline.scheduler.initialize_from_db()

    asyncio.run(serve(pipeline, settings))
    return 0


if __name__ == "__main__":
    sys.exit(run())
