"""
Celery Task Modules

Background tasks for the pipeline:
- scrape.py: board crawl, dedup/upsert, triage fan-out
- triage.py: AI classification and user job creation
"""

from rolecall.tasks.scrape import scrape_board
from rolecall.tasks.triage import triage_listing

__all__ = [
    "scrape_board",
    "triage_listing",
]
