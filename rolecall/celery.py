"""
Celery Application Configuration

Configures Celery for the two-stage pipeline with:
- Redis as message broker and result backend
- Two queues: "scrape" (board crawls) and "triage" (AI classification)
- Thread pool workers (both stages are I/O bound)
- Late acknowledgement so a lost worker's job is redelivered

Usage:
    # Scrape workers: low concurrency, rate limited per task.
    # The 6/min limit on scrape_board is enforced per worker process, so run
    # exactly ONE scrape worker to keep the pace global across the fleet.
    celery -A rolecall.celery worker -Q scrape -c 2 --loglevel=info

    # Triage workers: bounded-cost API calls, more parallelism
    celery -A rolecall.celery worker -Q triage -c 5 --loglevel=info

    # Scheduler (recurring scrapes, janitor)
    python -m rolecall
"""

import logging
from typing import Optional

from celery import Celery
from celery.signals import worker_init, worker_ready

from rolecall.config import get_settings, require_redis_url
from rolecall.constants import SCRAPE_QUEUE, TRIAGE_QUEUE
from rolecall.metrics import start_metrics_server

logger = logging.getLogger(__name__)

settings = get_settings()

# Create Celery app
celery_app = Celery(
    "rolecall",
    broker=settings.redis_url or None,
    backend=settings.redis_url or None,
)

# Configure Celery
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Worker settings
    worker_pool="threads",
    worker_prefetch_multiplier=1,  # Fair task distribution
    worker_concurrency=2,  # Overridden per queue with -c

    # Result settings
    result_expires=3600,
    task_track_started=True,

    # Retry settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    # Rate limiting
    worker_disable_rate_limits=False,

    # Task routing
    task_routes={
        "rolecall.tasks.scrape.scrape_board": {"queue": SCRAPE_QUEUE},
        "rolecall.tasks.triage.triage_listing": {"queue": TRIAGE_QUEUE},
    },
    task_default_queue=SCRAPE_QUEUE,
)

# Autodiscover tasks
celery_app.autodiscover_tasks(["rolecall"])


@worker_init.connect
def check_configuration(**kwargs) -> None:
    """Refuse to start a worker without a queue backend."""
    require_redis_url(get_settings())


@worker_ready.connect
def expose_metrics(**kwargs) -> Optional[int]:
    """Bind this worker's metrics endpoint; sibling workers take the next free port."""
    settings = get_settings()
    return start_metrics_server(
        settings.worker_metrics_port, span=settings.worker_metrics_port_span
    )
