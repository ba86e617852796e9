"""Tests for the scheduler process wiring."""

from unittest.mock import MagicMock, patch

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from rolecall.config import Settings
from rolecall.constants import SCRAPE_QUEUE, TRIAGE_QUEUE
from rolecall.main import Pipeline, create_pipeline, run


def test_create_pipeline_wires_scheduler_to_scrape_queue():
    pipeline = create_pipeline(Settings(_env_file=None, scheduler_timezone="Australia/Brisbane"))

    assert pipeline.queues.scrape.name == SCRAPE_QUEUE
    assert pipeline.queues.triage.name == TRIAGE_QUEUE
    assert pipeline.scheduler.scrape_queue is pipeline.queues.scrape
    assert isinstance(pipeline.scheduler.scheduler, AsyncIOScheduler)
    assert str(pipeline.scheduler.scheduler.timezone) == "Australia/Brisbane"


def test_pipeline_close_stops_scheduler_and_queues():
    pipeline = Pipeline(queues=MagicMock(), scheduler=MagicMock())

    pipeline.close()

    pipeline.scheduler.shutdown.assert_called_once()
    pipeline.queues.close.assert_called_once()


def test_run_refuses_to_start_without_redis():
    settings = Settings(_env_file=None, redis_url="")
    with patch("rolecall.main.get_settings", return_value=settings), \
         patch("rolecall.main.init_db") as mock_init_db, \
         patch("rolecall.main.create_pipeline") as mock_create:
        assert run() == 1

    mock_init_db.assert_not_called()
    mock_create.assert_not_called()


def test_run_initializes_before_serving():
    settings = Settings(_env_file=None, redis_url="redis://localhost:6379/15")
    pipeline = MagicMock()
    with patch("rolecall.main.get_settings", return_value=settings), \
         patch("rolecall.main.init_db") as mock_init_db, \
         patch("rolecall.main.create_pipeline", return_value=pipeline), \
         patch("rolecall.main.serve", new=MagicMock(return_value=None)) as mock_serve, \
         patch("rolecall.main.asyncio.run") as mock_asyncio_run:
        assert run() == 0

    mock_init_db.assert_called_once()
    pipeline.scheduler.sweep_stale_runs.assert_called_once()
    pipeline.scheduler.initialize_from_db.assert_called_once()
    mock_serve.assert_called_once_with(pipeline, settings)
    mock_asyncio_run.assert_called_once()
