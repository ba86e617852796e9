"""
Triage Stage - AI classification of one new listing for one user

Flow per job:
    1. Resolve listing and search profile (either missing → silent skip)
    2. Skip if the user already has this listing (retries, duplicates)
    3. Classify with the AI triage service
    4. recommended → status "recommended", anything else → "backlog"
    5. Insert the UserJob unless one already exists

Queue policy:
    - 2 attempts with exponential backoff (3s)
    - Malformed model output never fails the job (neutral fallback)
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from pydantic import ValidationError

from rolecall.celery import celery_app
from rolecall.database import get_db_session, utcnow
from rolecall.errors import ConfigurationError, PayloadError
from rolecall.metrics import record_task, record_task_failure, record_triage
from rolecall.queries.listings import create_user_job, get_listing, user_job_exists
from rolecall.queries.profiles import get_profile
from rolecall.queues import TRIAGE_TASK
from rolecall.schemas import TriageInput, TriageJobPayload, TriageResult
from rolecall.services.triage import (
    build_triage_input,
    classify_listing,
    status_for_recommendation,
)

logger = logging.getLogger(__name__)

TRIAGE_MAX_RETRIES = 1
TRIAGE_BACKOFF_SECONDS = 3

Classifier = Callable[[TriageInput], Awaitable[TriageResult]]


# ==================== Helper Functions ====================

def process_triage_job(
    session,
    payload: TriageJobPayload,
    classifier: Classifier = classify_listing,
) -> Optional[bool]:
    """
    Triage one listing for one user.

    Returns:
        True if a UserJob was created, False if one already existed,
        None if the listing or profile no longer exists
    """
    logger.info(f"[triage] Evaluating job {payload.job_listing_id} for user {payload.user_id}")

    listing = get_listing(session, payload.job_listing_id)
    profile = get_profile(session, payload.profile_id)
    if listing is None or profile is None:
        logger.warning(
            f"[triage] Missing listing {payload.job_listing_id} or "
            f"profile {payload.profile_id}, skipping"
        )
        return None

    if user_job_exists(session, payload.user_id, listing.id):
        logger.info(f"[triage] Job {listing.id} already triaged for user {payload.user_id}")
        return False

    result = asyncio.run(classifier(build_triage_input(listing, profile)))
    status = status_for_recommendation(result.recommendation)

    created = create_user_job(
        session,
        user_id=payload.user_id,
        job_listing_id=listing.id,
        search_profile_id=profile.id,
        status=status,
        ai_score=result.score,
        ai_recommendation=result.recommendation,
        ai_reasoning=result.reasoning,
        ai_triaged_at=utcnow(),
    )
    record_triage(result.recommendation)

    logger.info(
        f"[triage] Job {listing.title} @ {listing.company}: "
        f"score={result.score}, status={status}"
    )
    return created


# ==================== Celery Tasks ====================

@celery_app.task(bind=True, name=TRIAGE_TASK, max_retries=TRIAGE_MAX_RETRIES)
def triage_listing(self, payload: dict) -> Optional[bool]:
    """
    Classify a newly scraped listing for the profile owner.

    Args:
        payload: {"jobListingId": str, "profileId": str, "userId": str}
    """
    start_time = time.time()
    session = None

    try:
        try:
            job = TriageJobPayload.model_validate(payload)
        except ValidationError as e:
            raise PayloadError(f"Invalid triage payload {payload!r}: {e}") from e

        session = get_db_session()
        return process_triage_job(session, job)

    except ConfigurationError as exc:
        record_task_failure("triage_listing")
        logger.error(f"[triage] Job {self.request.id} failed permanently: {exc}")
        raise

    except Exception as exc:
        record_task_failure("triage_listing")
        countdown = TRIAGE_BACKOFF_SECONDS * (2 ** self.request.retries)
        logger.error(f"[triage] Job {self.request.id} failed: {exc}")
        raise self.retry(exc=exc, countdown=countdown)

    finally:
        if session is not None:
            session.close()
        record_task("triage_listing", time.time() - start_time)
