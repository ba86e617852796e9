"""
Listing Deduplication - idempotent upsert of scraped listings

Order of checks for each scraped listing:
    1. Content fingerprint (title|company|description prefix) matches any
       existing listing, on any board → duplicate, existing row untouched
    2. (source_board, external_id) or source_url already stored
       → touch updated_at only, not new
    3. Otherwise insert → new (the caller enqueues triage)

The fingerprint check must come first: it is the only thing that catches
the same posting on two boards, where URLs and external ids differ.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rolecall.database import utcnow
from rolecall.models import JobListing
from rolecall.queries.listings import (
    find_by_board_external_id,
    find_by_content_hash,
    find_by_source_url,
)
from rolecall.schemas import RawListing
from rolecall.services.normalize import generate_content_hash

logger = logging.getLogger(__name__)

OUTCOME_NEW = "new"
OUTCOME_DUPLICATE = "duplicate"
OUTCOME_UPDATED = "updated"


@dataclass
class UpsertResult:
    listing: JobListing
    is_new: bool
    outcome: str


def _find_by_keys(session: Session, raw: RawListing) -> Optional[JobListing]:
    existing = find_by_board_external_id(session, raw.source_board, raw.external_id)
    if existing is None:
        existing = find_by_source_url(session, raw.source_url)
    return existing


def _touch(session: Session, listing: JobListing) -> None:
    listing.updated_at = utcnow()
    session.commit()


def upsert_listing(session: Session, raw: RawListing) -> UpsertResult:
    """
    Store a scraped listing unless it is already known.

    Args:
        session: Open database session
        raw: Listing as produced by a scraper

    Returns:
        UpsertResult with the stored (or existing) listing and is_new flag
    """
    content_hash = generate_content_hash(raw.title, raw.company, raw.description)

    duplicate = find_by_content_hash(session, content_hash)
    if duplicate is not None:
        return UpsertResult(listing=duplicate, is_new=False, outcome=OUTCOME_DUPLICATE)

    existing = _find_by_keys(session, raw)
    if existing is not None:
        _touch(session, existing)
        return UpsertResult(listing=existing, is_new=False, outcome=OUTCOME_UPDATED)

    listing = JobListing(
        external_id=raw.external_id,
        source_board=raw.source_board,
        source_url=raw.source_url,
        title=raw.title,
        company=raw.company,
        description=raw.description,
        location_raw=raw.location_raw,
        salary_display=raw.salary_display,
        salary_min=raw.salary_min,
        salary_max=raw.salary_max,
        salary_type=raw.salary_type,
        employment_type=raw.employment_type,
        category=raw.category,
        date_posted=raw.date_posted,
        expires_at=raw.expires_at,
        content_hash=content_hash,
    )
    session.add(listing)
    try:
        session.commit()
    except IntegrityError:
        # A concurrent scrape inserted the same board id or URL first
        session.rollback()
        existing = _find_by_keys(session, raw)
        if existing is None:
            raise
        logger.info(
            f"[{raw.source_board}] Listing {raw.external_id} inserted concurrently, "
            "treating as update"
        )
        _touch(session, existing)
        return UpsertResult(listing=existing, is_new=False, outcome=OUTCOME_UPDATED)

    return UpsertResult(listing=listing, is_new=True, outcome=OUTCOME_NEW)
