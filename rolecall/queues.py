"""
Queue handles for the scrape → triage pipeline.

A JobQueue binds a Celery app to one named queue and the task that
consumes it. Handles are built explicitly (build_queues) and passed to the
code that enqueues work, instead of importing task objects as globals.
"""

import logging
from dataclasses import dataclass
from typing import Union

from celery import Celery

from rolecall.constants import SCRAPE_QUEUE, TRIAGE_QUEUE
from rolecall.schemas import ScrapeJobPayload, TriageJobPayload

logger = logging.getLogger(__name__)

SCRAPE_TASK = "rolecall.tasks.scrape.scrape_board"
TRIAGE_TASK = "rolecall.tasks.triage.triage_listing"

Payload = Union[ScrapeJobPayload, TriageJobPayload]


class JobQueue:
    def __init__(self, app: Celery, name: str, task_name: str):
        self.app = app
        self.name = name
        self.task_name = task_name

    def enqueue(self, payload: Payload) -> str:
        """Send one job to this queue. Returns the Celery task id."""
        result = self.app.send_task(
            self.task_name,
            args=[payload.to_message()],
            queue=self.name,
        )
        logger.debug(f"[{self.name}] Enqueued {payload.to_message()} as {result.id}")
        return result.id

    def close(self) -> None:
        """Release the app's pooled broker connections."""
        self.app.close()

    def __repr__(self) -> str:
        return f"<JobQueue(name='{self.name}', task='{self.task_name}')>"


@dataclass
class Queues:
    scrape: JobQueue
    triage: JobQueue

    def close(self) -> None:
        # Both handles share one app, so one close releases everything
        self.scrape.close()


def scrape_queue_for(app: Celery) -> JobQueue:
    return JobQueue(app, SCRAPE_QUEUE, SCRAPE_TASK)


def triage_queue_for(app: Celery) -> JobQueue:
    return JobQueue(app, TRIAGE_QUEUE, TRIAGE_TASK)


def build_queues(app: Celery) -> Queues:
    return Queues(scrape=scrape_queue_for(app), triage=triage_queue_for(app))
