from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from rolecall.database import utcnow
from rolecall.models import SearchProfile


def get_profile(session: Session, profile_id: str) -> Optional[SearchProfile]:
    return session.get(SearchProfile, profile_id)


def get_active_profiles(session: Session) -> List[SearchProfile]:
    """All active search profiles, oldest first (for the scheduler)."""
    result = session.execute(
        select(SearchProfile)
        .where(SearchProfile.is_active.is_(True))
        .order_by(SearchProfile.created_at)
    )
    return list(result.scalars().all())


def mark_profile_scraped(session: Session, profile_id: str) -> None:
    session.execute(
        update(SearchProfile)
        .where(SearchProfile.id == profile_id)
        .values(last_scraped_at=utcnow())
    )
    session.commit()
