from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from rolecall.constants import RUN_COMPLETED, RUN_FAILED, RUN_RUNNING
from rolecall.database import as_utc, utcnow
from rolecall.models import ScrapeRun

ABANDONED_RUN_MESSAGE = "Scrape run abandoned: worker stopped before sealing the run"


def create_scrape_run(session: Session, board: str, search_profile_id: str) -> ScrapeRun:
    run = ScrapeRun(
        board=board,
        search_profile_id=search_profile_id,
        status=RUN_RUNNING,
        started_at=utcnow(),
    )
    session.add(run)
    session.commit()
    return run


def complete_scrape_run(
    session: Session,
    run_id: str,
    status: str,
    jobs_found: int = 0,
    jobs_new: int = 0,
    jobs_updated: int = 0,
    error_message: Optional[str] = None,
) -> Optional[ScrapeRun]:
    """
    Seal a running scrape run with its final status and counts.

    A run that is no longer running (already sealed, or reaped by the
    janitor) is left untouched.
    """
    if status not in (RUN_COMPLETED, RUN_FAILED):
        raise ValueError(f"Invalid terminal status: {status}")

    run = session.get(ScrapeRun, run_id)
    if run is None or run.status != RUN_RUNNING:
        return run

    completed_at = utcnow()
    run.status = status
    run.jobs_found = jobs_found
    run.jobs_new = jobs_new
    run.jobs_updated = jobs_updated
    run.error_message = error_message
    run.completed_at = completed_at
    if run.started_at is not None:
        elapsed = completed_at - as_utc(run.started_at)
        run.duration_ms = int(elapsed.total_seconds() * 1000)
    session.commit()
    return run


def reap_stale_scrape_runs(session: Session, started_before: datetime) -> int:
    """
    Fail every run still marked running that started before the cutoff.

    Returns:
        Number of runs sealed as failed
    """
    result = session.execute(
        select(ScrapeRun).where(
            ScrapeRun.status == RUN_RUNNING,
            ScrapeRun.started_at < started_before,
        )
    )
    stale = list(result.scalars().all())
    now = utcnow()
    for run in stale:
        run.status = RUN_FAILED
        run.error_message = ABANDONED_RUN_MESSAGE
        run.completed_at = now
        run.duration_ms = int((now - as_utc(run.started_at)).total_seconds() * 1000)
    if stale:
        session.commit()
    return len(stale)


def get_recent_scrape_runs(
    session: Session, limit: int = 20, board: Optional[str] = None
) -> List[ScrapeRun]:
    query = select(ScrapeRun)
    if board:
        query = query.where(ScrapeRun.board == board)
    query = query.order_by(ScrapeRun.started_at.desc()).limit(limit)
    return list(session.execute(query).scalars().all())
