"""
Tests for the scrape scheduler

Tests cover:
- Interval → cron mapping
- Idempotent (remove-then-add) registration per (profile, board)
- Startup initialization and immediate scrapes for never-scraped profiles
- Periodic sync with profile changes
- Stale scrape run janitor
"""

from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from rolecall.config import Settings
from rolecall.database import utcnow
from rolecall.models import ScrapeRun
from rolecall.queries.scrape_runs import ABANDONED_RUN_MESSAGE, create_scrape_run
from rolecall.schemas import ScrapeJobPayload
from rolecall.scheduler import (
    SWEEP_JOB_ID,
    SYNC_JOB_ID,
    ScrapeScheduler,
    interval_hours_to_cron,
    schedule_key,
)


def profile(profile_id="p-1", boards=("smartjobs", "seek"), interval=48, active=True, scraped=True):
    return SimpleNamespace(
        id=profile_id,
        boards=list(boards),
        scrape_interval_hours=interval,
        is_active=active,
        last_scraped_at=utcnow() if scraped else None,
    )


@pytest.fixture
def scrape_queue():
    return MagicMock()


@pytest.fixture
def scheduler(scrape_queue, session_factory):
    return ScrapeScheduler(
        BackgroundScheduler(timezone="UTC"),
        scrape_queue,
        session_factory=session_factory,
        settings=Settings(_env_file=None),
    )


def job_ids(scheduler: ScrapeScheduler):
    return sorted(job.id for job in scheduler.scheduler.get_jobs())


def enqueued(scrape_queue):
    return [call.args[0] for call in scrape_queue.enqueue.call_args_list]


class TestIntervalToCron:
    @pytest.mark.parametrize(
        "hours,expected",
        [
            (1, "0 */6 * * *"),
            (6, "0 */6 * * *"),
            (7, "0 */12 * * *"),
            (12, "0 */12 * * *"),
            (24, "0 6 * * *"),
            (36, "0 6 */2 * *"),
            (48, "0 6 */2 * *"),
            (72, "0 6 */3 * *"),
            (73, "0 6 * * mon"),
            (168, "0 6 * * mon"),
        ],
    )
    def test_mapping(self, hours, expected):
        assert str(interval_hours_to_cron(hours)) == expected

    def test_builds_cron_trigger(self):
        trigger = interval_hours_to_cron(48).trigger("Australia/Brisbane")
        assert isinstance(trigger, CronTrigger)
        assert "day='*/2'" in str(trigger)
        assert str(trigger.timezone) == "Australia/Brisbane"


class TestScheduleProfile:
    def test_one_job_per_board(self, scheduler):
        scheduler.schedule_profile("p-1", ["smartjobs", "seek"], 48)

        assert job_ids(scheduler) == ["scrape:p-1:seek", "scrape:p-1:smartjobs"]
        job = scheduler.scheduler.get_job(schedule_key("p-1", "seek"))
        assert job.args == ("p-1", "seek")

    def test_reregistration_replaces_instead_of_duplicating(self, scheduler):
        scheduler.schedule_profile("p-1", ["smartjobs"], 48)
        scheduler.schedule_profile("p-1", ["smartjobs"], 6)

        assert job_ids(scheduler) == ["scrape:p-1:smartjobs"]
        trigger = scheduler.scheduler.get_job("scrape:p-1:smartjobs").trigger
        assert "hour='*/6'" in str(trigger)

    def test_dropped_board_is_unscheduled(self, scheduler):
        scheduler.schedule_profile("p-1", ["smartjobs", "seek"], 48)
        scheduler.schedule_profile("p-1", ["seek"], 48)

        assert job_ids(scheduler) == ["scrape:p-1:seek"]

    def test_unschedule_profile(self, scheduler):
        scheduler.schedule_profile("p-1", ["smartjobs", "seek"], 48)
        scheduler.schedule_profile("p-2", ["jora"], 24)

        scheduler.unschedule_profile("p-1")

        assert job_ids(scheduler) == ["scrape:p-2:jora"]
        assert scheduler.scheduled_keys() == ["scrape:p-2:jora"]

    def test_unschedule_unknown_profile_is_noop(self, scheduler):
        scheduler.unschedule_profile("missing")
        assert job_ids(scheduler) == []

    def test_scheduled_job_enqueues_scrape(self, scheduler, scrape_queue):
        scheduler.schedule_profile("p-1", ["seek"], 48)
        job = scheduler.scheduler.get_job("scrape:p-1:seek")

        job.func(*job.args)

        assert enqueued(scrape_queue) == [ScrapeJobPayload(profile_id="p-1", board="seek")]


class TestInitialize:
    def test_never_scraped_profile_gets_immediate_scrapes(self, scheduler, scrape_queue):
        immediate = scheduler.initialize([profile(scraped=False)])

        assert immediate == 2
        assert job_ids(scheduler) == ["scrape:p-1:seek", "scrape:p-1:smartjobs"]
        assert enqueued(scrape_queue) == [
            ScrapeJobPayload(profile_id="p-1", board="seek"),
            ScrapeJobPayload(profile_id="p-1", board="smartjobs"),
        ]

    def test_previously_scraped_profile_waits_for_schedule(self, scheduler, scrape_queue):
        assert scheduler.initialize([profile()]) == 0
        scrape_queue.enqueue.assert_not_called()
        assert len(job_ids(scheduler)) == 2

    def test_inactive_and_boardless_profiles_are_ignored(self, scheduler):
        scheduler.initialize(
            [profile("p-1", active=False), profile("p-2", boards=[])]
        )
        assert job_ids(scheduler) == []

    def test_unregistered_board_is_skipped(self, scheduler, scrape_queue):
        immediate = scheduler.initialize([profile(boards=["seek", "linkedin"], scraped=False)])

        assert immediate == 1
        assert job_ids(scheduler) == ["scrape:p-1:seek"]
        assert enqueued(scrape_queue) == [ScrapeJobPayload(profile_id="p-1", board="seek")]

    def test_profile_with_only_unregistered_boards_is_ignored(self, scheduler, scrape_queue):
        assert scheduler.initialize([profile(boards=["linkedin"], scraped=False)]) == 0
        assert job_ids(scheduler) == []
        scrape_queue.enqueue.assert_not_called()

    def test_initialize_from_db(self, scheduler, scrape_queue, make_profile):
        stored = make_profile(boards=["smartjobs"])
        make_profile(boards=["seek"], is_active=False)

        assert scheduler.initialize_from_db() == 1
        assert job_ids(scheduler) == [f"scrape:{stored.id}:smartjobs"]


class TestSync:
    def test_deactivated_profile_is_removed(self, scheduler):
        scheduler.initialize([profile("p-1"), profile("p-2", boards=["jora"])])

        scheduler.sync([profile("p-1"), profile("p-2", boards=["jora"], active=False)])

        assert job_ids(scheduler) == ["scrape:p-1:seek", "scrape:p-1:smartjobs"]

    def test_deleted_profile_is_removed(self, scheduler):
        scheduler.initialize([profile("p-1")])

        scheduler.sync([])

        assert job_ids(scheduler) == []

    def test_board_change_is_applied(self, scheduler):
        scheduler.initialize([profile("p-1")])

        scheduler.sync([profile("p-1", boards=["ethical-jobs"])])

        assert job_ids(scheduler) == ["scrape:p-1:ethical-jobs"]

    def test_unchanged_profile_is_not_reregistered(self, scheduler):
        scheduler.initialize([profile("p-1")])
        scheduler.scheduler.add_job = MagicMock()

        scheduler.sync([profile("p-1")])

        scheduler.scheduler.add_job.assert_not_called()

    def test_new_profile_gets_immediate_scrapes(self, scheduler, scrape_queue):
        scheduler.initialize([profile("p-1")])

        immediate = scheduler.sync([profile("p-1"), profile("p-2", boards=["jora"], scraped=False)])

        assert immediate == 1
        assert enqueued(scrape_queue) == [ScrapeJobPayload(profile_id="p-2", board="jora")]

    def test_interval_change_does_not_rescrape_immediately(self, scheduler, scrape_queue):
        scheduler.initialize([profile("p-1", scraped=False)])
        scrape_queue.reset_mock()

        scheduler.sync([profile("p-1", interval=6, scraped=False)])

        scrape_queue.enqueue.assert_not_called()
        trigger = scheduler.scheduler.get_job("scrape:p-1:seek").trigger
        assert "hour='*/6'" in str(trigger)

    def test_refresh_reads_profiles_from_db(self, scheduler, make_profile, db_session):
        stored = make_profile(boards=["smartjobs"])
        scheduler.initialize_from_db()

        stored.is_active = False
        db_session.commit()
        scheduler.refresh()

        assert job_ids(scheduler) == []


class TestSweepStaleRuns:
    def test_fails_runs_past_timeout(self, scheduler, db_session, make_profile):
        owner = make_profile()
        stale = create_scrape_run(db_session, board="seek", search_profile_id=owner.id)
        stale.started_at = utcnow() - timedelta(hours=3)
        db_session.commit()
        fresh = create_scrape_run(db_session, board="jora", search_profile_id=owner.id)

        assert scheduler.sweep_stale_runs() == 1

        db_session.expire_all()
        stale_row = db_session.get(ScrapeRun, stale.id)
        assert stale_row.status == "failed"
        assert stale_row.error_message == ABANDONED_RUN_MESSAGE
        assert db_session.get(ScrapeRun, fresh.id).status == "running"

    def test_nothing_to_sweep(self, scheduler):
        assert scheduler.sweep_stale_runs() == 0


class TestLifecycle:
    def test_start_adds_maintenance_jobs(self, scheduler):
        scheduler.schedule_profile("p-1", ["seek"], 48)
        scheduler.start()
        try:
            assert scheduler.scheduler.running
            assert scheduler.scheduler.get_job(SYNC_JOB_ID) is not None
            assert scheduler.scheduler.get_job(SWEEP_JOB_ID) is not None
        finally:
            scheduler.shutdown()

        assert not scheduler.scheduler.running

    def test_shutdown_before_start_is_safe(self, scheduler):
        scheduler.shutdown()
