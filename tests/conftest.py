"""
Pytest configuration for the pipeline monitor test suite.

Fixtures wire the monitoring service to the in-memory fakes from
``tests.fakes``:
- Unit tests: No external dependencies
- Integration tests: FastAPI TestClient over the fakes, SQLite for the repository
"""

import os

# Set testing environment variables before importing anything else
os.environ["TESTING"] = "1"

from datetime import datetime, timedelta, timezone

import pytest

from src.core.config import MonitoringConfig
from src.monitoring.service import MonitoringService
from tests.fakes import FakeContentStore, FakeMetricsSource, make_record


@pytest.fixture
def monitoring_config():
    return MonitoringConfig(restart_delay_seconds=0.0)


@pytest.fixture
def fake_source():
    return FakeMetricsSource()


@pytest.fixture
def fake_store():
    now = datetime.now(timezone.utc)
    return FakeContentStore(
        [
            make_record(now - timedelta(hours=1), "blog_post", "approved", 0.9, 1000.0, "c-1"),
            make_record(now - timedelta(hours=2), "social_post", "rejected", 0.5, 3000.0, "c-2"),
            make_record(now - timedelta(hours=3), None, "approved", None, None, "c-3"),
        ]
    )


@pytest.fixture
def monitoring_service(fake_source, fake_store, monitoring_config):
    return MonitoringService(fake_source, fake_store, monitoring_config)
