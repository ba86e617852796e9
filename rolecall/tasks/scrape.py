"""
Scrape Stage - one Celery task per (search profile, board) pair

Flow per job:
    1. Resolve the search profile (missing → configuration error)
    2. Open a ScrapeRun (status=running)
    3. Resolve the board's scraper (missing → run failed, configuration error)
    4. Crawl the board, upserting every listing as it arrives
    5. Enqueue one triage job per genuinely new listing
    6. Seal the ScrapeRun once: completed with counts, or failed with the error
    7. Stamp the profile's last_scraped_at

Queue policy:
    - Rate limited to one job start per 10 seconds per worker
    - 3 attempts with exponential backoff (5s, 10s)
    - Configuration errors are never retried
"""

import asyncio
import logging
import time
from typing import Callable, Dict, Optional

from pydantic import ValidationError

from rolecall.celery import celery_app
from rolecall.constants import RUN_COMPLETED, RUN_FAILED
from rolecall.database import get_db_session
from rolecall.errors import ConfigurationError, PayloadError, ScrapeConfigurationError
from rolecall.metrics import record_listing, record_task, record_task_failure
from rolecall.models import SearchProfile
from rolecall.queries.profiles import get_profile, mark_profile_scraped
from rolecall.queries.scrape_runs import complete_scrape_run, create_scrape_run
from rolecall.queues import SCRAPE_TASK, JobQueue, triage_queue_for
from rolecall.schemas import ScrapeJobPayload, ScrapeParams, TriageJobPayload
from rolecall.services.dedup import upsert_listing
from rolecall.services.scrapers import BaseScraper, get_scraper

logger = logging.getLogger(__name__)

SCRAPE_MAX_RETRIES = 2
SCRAPE_BACKOFF_SECONDS = 5

ScraperLookup = Callable[[str], Optional[BaseScraper]]


# ==================== Helper Functions ====================

def build_scrape_params(profile: SearchProfile) -> ScrapeParams:
    return ScrapeParams(
        keywords=list(profile.keywords or []),
        location=profile.location,
        radius_km=profile.radius_km,
    )


async def scrape_into_store(
    session,
    scraper: BaseScraper,
    params: ScrapeParams,
    profile_id: str,
    user_id: str,
    triage_queue: JobQueue,
    stats: Dict[str, int],
) -> None:
    """
    Drain the scraper, upserting each listing before triage is enqueued.

    Each upsert commits on its own, so a triage job never references a
    listing that is not yet visible to the triage worker.
    """
    # The crawl is strictly sequential, so the blocking commits and broker
    # sends below only ever hold up this one scrape.
    async for raw in scraper.scrape(params):
        stats["jobs_found"] += 1
        result = upsert_listing(session, raw)
        record_listing(scraper.board, result.outcome)

        if not result.is_new:
            stats["jobs_updated"] += 1
            continue

        stats["jobs_new"] += 1
        triage_queue.enqueue(
            TriageJobPayload(
                job_listing_id=result.listing.id,
                profile_id=profile_id,
                user_id=user_id,
            )
        )


def process_scrape_job(
    session,
    payload: ScrapeJobPayload,
    triage_queue: JobQueue,
    scraper_lookup: ScraperLookup = get_scraper,
) -> Dict[str, int]:
    """
    Run one board scrape for one search profile.

    Args:
        session: Open database session
        payload: Validated scrape job payload
        triage_queue: Queue receiving one job per new listing
        scraper_lookup: board → scraper resolver

    Returns:
        Dict with jobs_found, jobs_new and jobs_updated

    Raises:
        ScrapeConfigurationError: Unknown profile, unscrapeable profile or
            unregistered board (not worth retrying)
        Exception: Anything that aborted the crawl, after the run is sealed
    """
    board = payload.board
    logger.info(f"[scrape] Starting {board} for profile {payload.profile_id}")

    profile = get_profile(session, payload.profile_id)
    if profile is None:
        raise ScrapeConfigurationError(f"Search profile {payload.profile_id} not found")
    profile_id, user_id = profile.id, profile.user_id

    run = create_scrape_run(session, board=board, search_profile_id=profile_id)
    run_id = run.id

    scraper = scraper_lookup(board)
    if scraper is None:
        message = f"No scraper registered for board: {board}"
        complete_scrape_run(session, run_id, RUN_FAILED, error_message=message)
        raise ScrapeConfigurationError(message)

    try:
        params = build_scrape_params(profile)
    except ValidationError as e:
        message = f"Search profile {profile_id} cannot be scraped: {e.errors()[0]['msg']}"
        complete_scrape_run(session, run_id, RUN_FAILED, error_message=message)
        raise ScrapeConfigurationError(message) from e

    stats = {"jobs_found": 0, "jobs_new": 0, "jobs_updated": 0}
    try:
        asyncio.run(
            scrape_into_store(session, scraper, params, profile_id, user_id, triage_queue, stats)
        )
    except Exception as e:
        session.rollback()
        complete_scrape_run(
            session, run_id, RUN_FAILED, error_message=str(e) or type(e).__name__, **stats
        )
        raise

    complete_scrape_run(session, run_id, RUN_COMPLETED, **stats)
    mark_profile_scraped(session, profile_id)

    logger.info(
        f"[scrape] {board}: found={stats['jobs_found']}, "
        f"new={stats['jobs_new']}, updated={stats['jobs_updated']}"
    )
    return stats


# ==================== Celery Tasks ====================

@celery_app.task(
    bind=True,
    name=SCRAPE_TASK,
    rate_limit="6/m",
    max_retries=SCRAPE_MAX_RETRIES,
)
def scrape_board(self, payload: dict) -> Dict[str, int]:
    """
    Scrape one board for one search profile.

    Args:
        payload: {"profileId": str, "board": str}

    Returns:
        Dict with scrape statistics
    """
    start_time = time.time()
    session = None

    try:
        try:
            job = ScrapeJobPayload.model_validate(payload)
        except ValidationError as e:
            raise PayloadError(f"Invalid scrape payload {payload!r}: {e}") from e

        session = get_db_session()
        return process_scrape_job(session, job, triage_queue_for(self.app))

    except ConfigurationError as exc:
        record_task_failure("scrape_board")
        logger.error(f"[scrape] Job {self.request.id} failed permanently: {exc}")
        raise

    except Exception as exc:
        record_task_failure("scrape_board")
        countdown = SCRAPE_BACKOFF_SECONDS * (2 ** self.request.retries)
        logger.error(f"[scrape] Job {self.request.id} failed: {exc}")
        raise self.retry(exc=exc, countdown=countdown)

    finally:
        if session is not None:
            session.close()
        record_task("scrape_board", time.time() - start_time)
