import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rolecall.models import JobListing, UserJob

logger = logging.getLogger(__name__)


def get_listing(session: Session, listing_id: str) -> Optional[JobListing]:
    return session.get(JobListing, listing_id)


def find_by_content_hash(session: Session, content_hash: str) -> Optional[JobListing]:
    result = session.execute(
        select(JobListing).where(JobListing.content_hash == content_hash).limit(1)
    )
    return result.scalar_one_or_none()


def find_by_board_external_id(
    session: Session, source_board: str, external_id: str
) -> Optional[JobListing]:
    result = session.execute(
        select(JobListing).where(
            JobListing.source_board == source_board,
            JobListing.external_id == external_id,
        )
    )
    return result.scalar_one_or_none()


def find_by_source_url(session: Session, source_url: str) -> Optional[JobListing]:
    result = session.execute(
        select(JobListing).where(JobListing.source_url == source_url)
    )
    return result.scalar_one_or_none()


def user_job_exists(session: Session, user_id: str, job_listing_id: str) -> bool:
    result = session.execute(
        select(UserJob.id).where(
            UserJob.user_id == user_id,
            UserJob.job_listing_id == job_listing_id,
        )
    )
    return result.first() is not None


def create_user_job(session: Session, **fields) -> bool:
    """
    Insert a user job unless one exists for (user_id, job_listing_id).

    Returns:
        True if a row was created, False if the pair was already present
    """
    if user_job_exists(session, fields["user_id"], fields["job_listing_id"]):
        return False

    session.add(UserJob(**fields))
    try:
        session.commit()
    except IntegrityError:
        # Lost a race with another triage attempt for the same pair
        session.rollback()
        logger.info(
            f"User job for user={fields['user_id']} "
            f"listing={fields['job_listing_id']} already exists"
        )
        return False
    return True
