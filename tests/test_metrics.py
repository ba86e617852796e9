"""
Tests for the Prometheus endpoint wiring

Tests cover:
- Scheduler and worker roles sharing one configuration
- Sibling workers moving to the next free port
- Disabled and exhausted port ranges
"""

from unittest.mock import patch

import pytest

from rolecall.celery import expose_metrics
from rolecall.config import Settings
from rolecall.main import expose_scheduler_metrics
from rolecall.metrics import start_metrics_server


class FakeHttpServers:
    """Stands in for start_http_server; one process per port, like a real bind."""

    def __init__(self, busy=()):
        self.bound = set(busy)

    def __call__(self, port):
        if port in self.bound:
            raise OSError(98, "Address already in use")
        self.bound.add(port)


@pytest.fixture
def servers():
    fake = FakeHttpServers()
    with patch("rolecall.metrics.start_http_server", side_effect=fake):
        yield fake


def settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestRolesOnOneConfig:
    def test_scheduler_and_workers_bind_distinct_ports(self, servers):
        config = settings(scheduler_metrics_port=9100, worker_metrics_port=9101)

        with patch("rolecall.celery.get_settings", return_value=config):
            ports = [expose_scheduler_metrics(config), expose_metrics(), expose_metrics()]

        assert ports == [9100, 9101, 9102]
        assert servers.bound == {9100, 9101, 9102}

    def test_worker_steps_past_port_shared_with_scheduler(self, servers):
        config = settings(scheduler_metrics_port=9100, worker_metrics_port=9100)

        with patch("rolecall.celery.get_settings", return_value=config):
            assert expose_scheduler_metrics(config) == 9100
            assert expose_metrics() == 9101

    def test_disabled_by_default(self, servers):
        config = settings()

        with patch("rolecall.celery.get_settings", return_value=config):
            assert expose_scheduler_metrics(config) is None
            assert expose_metrics() is None

        assert servers.bound == set()


class TestStartMetricsServer:
    def test_zero_port_disables(self, servers):
        assert start_metrics_server(0, span=4) is None

    def test_single_port_in_use_does_not_raise(self):
        with patch("rolecall.metrics.start_http_server",
                   side_effect=FakeHttpServers(busy={9100})):
            assert start_metrics_server(9100) is None

    def test_exhausted_range_logs_and_continues(self, caplog):
        with patch("rolecall.metrics.start_http_server",
                   side_effect=FakeHttpServers(busy={9101, 9102})):
            assert start_metrics_server(9101, span=2) is None

        assert "No free metrics port in 9101-9102" in caplog.text
