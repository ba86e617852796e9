"""
Scrape Scheduler - recurring scrape jobs per (search profile, board)

This module turns search profiles into recurring scrape jobs using APScheduler.

Schedule Registration:
    1. Each active profile gets one cron job per board, keyed
       "scrape:{profile_id}:{board}"
    2. Registration is remove-then-add, so re-registering never duplicates
    3. Profiles that have never been scraped get one immediate scrape per board
    4. A periodic sync re-reads profiles so activation toggles, board changes
       and interval edits take effect without a restart

Interval → Cron Mapping (fires at 06:00 for daily or slower):
    - <= 6h:  every 6 hours
    - <= 12h: every 12 hours
    - <= 24h: daily
    - <= 48h: every 2nd day
    - <= 72h: every 3rd day
    - longer: weekly on Mondays

The scheduler only enqueues; the scrape itself runs on a Celery worker.
A janitor job fails scrape runs left "running" by a worker that died.
"""

import logging
from dataclasses import asdict, dataclass
from datetime import timedelta
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple

from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from rolecall.config import Settings, get_settings
from rolecall.database import get_db_session, utcnow
from rolecall.metrics import record_stale_runs
from rolecall.models import SearchProfile
from rolecall.queries.profiles import get_active_profiles
from rolecall.queries.scrape_runs import reap_stale_scrape_runs
from rolecall.queues import JobQueue
from rolecall.schemas import ScrapeJobPayload
from rolecall.services.scrapers import ScraperRegistry, scraper_registry

logger = logging.getLogger(__name__)

SYNC_JOB_ID = "maintenance:sync-profiles"
SWEEP_JOB_ID = "maintenance:sweep-scrape-runs"


@dataclass(frozen=True)
class CronSchedule:
    minute: str = "0"
    hour: str = "*"
    day: str = "*"
    day_of_week: str = "*"

    def trigger(self, timezone: str = "UTC") -> CronTrigger:
        return CronTrigger(timezone=timezone, **asdict(self))

    def __str__(self) -> str:
        return f"{self.minute} {self.hour} {self.day} * {self.day_of_week}"


def interval_hours_to_cron(hours: int) -> CronSchedule:
    """Map a profile's scrape interval onto a cron schedule."""
    if hours <= 6:
        return CronSchedule(hour="*/6")
    if hours <= 12:
        return CronSchedule(hour="*/12")
    if hours <= 24:
        return CronSchedule(hour="6")
    if hours <= 48:
        return CronSchedule(hour="6", day="*/2")
    if hours <= 72:
        return CronSchedule(hour="6", day="*/3")
    return CronSchedule(hour="6", day_of_week="mon")


def schedule_key(profile_id: str, board: str) -> str:
    return f"scrape:{profile_id}:{board}"


Registration = Tuple[FrozenSet[str], int]


class ScrapeScheduler:
    """Keeps one APScheduler cron job per (active profile, board)."""

    def __init__(
        self,
        scheduler: BaseScheduler,
        scrape_queue: JobQueue,
        session_factory: Callable = get_db_session,
        settings: Optional[Settings] = None,
        registry: ScraperRegistry = scraper_registry,
    ):
        self.scheduler = scheduler
        self.scrape_queue = scrape_queue
        self.session_factory = session_factory
        self.settings = settings or get_settings()
        self.registry = registry
        self._registered: Dict[str, Registration] = {}

    # ==================== Scrape jobs ====================

    def enqueue_scrape(self, profile_id: str, board: str) -> str:
        task_id = self.scrape_queue.enqueue(
            ScrapeJobPayload(profile_id=profile_id, board=board)
        )
        logger.info(f"[scheduler] Enqueued scrape {board} for profile {profile_id}")
        return task_id

    def schedule_profile(self, profile_id: str, boards: Iterable[str], interval_hours: int) -> None:
        """
        Register one recurring scrape per board for a profile.

        Existing jobs for the same keys are replaced, and boards that were
        registered before but are no longer listed are removed.
        """
        boards = frozenset(boards)
        cron = interval_hours_to_cron(interval_hours)

        previous = self._registered.get(profile_id)
        if previous is not None:
            for board in previous[0] - boards:
                self._remove(schedule_key(profile_id, board))

        for board in sorted(boards):
            key = schedule_key(profile_id, board)
            self._remove(key)
            self.scheduler.add_job(
                self.enqueue_scrape,
                trigger=cron.trigger(self.settings.scheduler_timezone),
                id=key,
                name=key,
                args=[profile_id, board],
                coalesce=True,
                max_instances=1,
            )
            logger.info(f"[scheduler] Scheduled {key} ({cron})")

        self._registered[profile_id] = (boards, interval_hours)

    def unschedule_profile(self, profile_id: str) -> None:
        registration = self._registered.pop(profile_id, None)
        if registration is None:
            return
        for board in registration[0]:
            self._remove(schedule_key(profile_id, board))
        logger.info(f"[scheduler] Unscheduled profile {profile_id}")

    def scheduled_keys(self) -> List[str]:
        return sorted(
            schedule_key(profile_id, board)
            for profile_id, (boards, _) in self._registered.items()
            for board in boards
        )

    def _remove(self, key: str) -> None:
        if self.scheduler.get_job(key) is not None:
            self.scheduler.remove_job(key)

    # ==================== Reconciliation ====================

    def initialize(self, profiles: Iterable[SearchProfile]) -> int:
        """
        Register every active profile and kick off never-scraped ones.

        Returns:
            Number of immediate scrape jobs enqueued
        """
        immediate = self.sync(profiles)
        logger.info(
            f"[scheduler] Initialized {len(self._registered)} profile(s), "
            f"{immediate} immediate scrape(s)"
        )
        return immediate

    def sync(self, profiles: Iterable[SearchProfile]) -> int:
        """
        Reconcile registered schedules with the current active profiles.

        Inactive or deleted profiles are unscheduled, as are profiles left with
        no boards once boards without a registered scraper are dropped. Profiles
        whose boards or interval changed are re-registered. Newly registered
        profiles without a last_scraped_at get one immediate scrape per board.

        Returns:
            Number of immediate scrape jobs enqueued
        """
        active = {}
        for profile in profiles:
            if not profile.is_active:
                continue
            boards = frozenset(b for b in profile.boards or () if b in self.registry)
            for board in sorted(set(profile.boards or ()) - boards):
                logger.warning(f"[scheduler] Profile {profile.id}: no scraper for board {board!r}")
            if not boards:
                logger.warning(f"[scheduler] Profile {profile.id} has no scrapable boards, skipping")
                continue
            active[profile.id] = (profile, boards)

        for profile_id in set(self._registered) - set(active):
            self.unschedule_profile(profile_id)

        immediate = 0
        for profile_id, (profile, boards) in active.items():
            registration = (boards, profile.scrape_interval_hours)
            previous = self._registered.get(profile_id)
            if previous == registration:
                continue

            self.schedule_profile(profile_id, boards, profile.scrape_interval_hours)
            if previous is None and profile.last_scraped_at is None:
                for board in sorted(registration[0]):
                    self.enqueue_scrape(profile_id, board)
                    immediate += 1

        return immediate

    def _load_active_profiles(self) -> List[SearchProfile]:
        session = self.session_factory()
        try:
            return get_active_profiles(session)
        finally:
            session.close()

    def initialize_from_db(self) -> int:
        return self.initialize(self._load_active_profiles())

    def refresh(self) -> int:
        """Periodic job: re-read profiles from the database and sync."""
        return self.sync(self._load_active_profiles())

    # ==================== Janitor ====================

    def sweep_stale_runs(self) -> int:
        """Fail scrape runs that have been running longer than the timeout."""
        cutoff = utcnow() - timedelta(minutes=self.settings.scrape_run_timeout_minutes)
        session = self.session_factory()
        try:
            reaped = reap_stale_scrape_runs(session, started_before=cutoff)
        finally:
            session.close()

        record_stale_runs(reaped)
        if reaped:
            logger.warning(f"[scheduler] Marked {reaped} stale scrape run(s) as failed")
        return reaped

    # ==================== Lifecycle ====================

    def start(self) -> None:
        """Add the maintenance jobs and start the underlying scheduler."""
        self.scheduler.add_job(
            self.refresh,
            trigger=IntervalTrigger(minutes=self.settings.schedule_sync_minutes),
            id=SYNC_JOB_ID,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        self.scheduler.add_job(
            self.sweep_stale_runs,
            trigger=IntervalTrigger(minutes=self.settings.scrape_run_sweep_minutes),
            id=SWEEP_JOB_ID,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        self.scheduler.start()
        logger.info(
            f"[scheduler] Started: {len(self.scheduled_keys())} scrape schedule(s), "
            f"profile sync every {self.settings.schedule_sync_minutes} min"
        )

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("[scheduler] Stopped")
