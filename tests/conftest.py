"""Shared fixtures: in-memory database and model factories."""

import os
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

# Settings are read at import time, so configure them before importing rolecall
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("OPENAI_API_KEY", "test-key")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import rolecall.models  # noqa: F401
from rolecall.database import Base
from rolecall.models import JobListing, SearchProfile
from rolecall.schemas import RawListing
from rolecall.services.normalize import generate_content_hash


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_profile(db_session):
    """Create and persist a search profile."""

    def _make(**overrides) -> SearchProfile:
        fields = {
            "user_id": "user-1",
            "name": "Admin roles",
            "keywords": ["administration officer", "receptionist"],
            "location": "Sunshine Coast QLD",
            "radius_km": 20,
            "boards": ["smartjobs"],
            "qualifications": "Cert IV in Business Administration",
            "preferences": "Part-time, close to home",
            "salary_min": 55000,
            "is_active": True,
            "scrape_interval_hours": 48,
        }
        fields.update(overrides)
        profile = SearchProfile(**fields)
        db_session.add(profile)
        db_session.commit()
        return profile

    return _make


def raw_listing(**overrides) -> RawListing:
    fields = {
        "external_id": "1001",
        "source_board": "smartjobs",
        "source_url": "https://smartjobs.qld.gov.au/jobs/QLD-1001",
        "title": "Administration Officer",
        "company": "Department of Education",
        "description": "Provide administrative support to a busy regional office.",
        "location_raw": "Maroochydore QLD",
        "salary_display": "$55,000 - $65,000",
        "salary_min": 55000,
        "salary_max": 65000,
        "salary_type": "annual",
    }
    fields.update(overrides)
    return RawListing(**fields)


@pytest.fixture
def make_listing(db_session):
    """Create and persist a job listing with its fingerprint."""

    def _make(**overrides) -> JobListing:
        raw = raw_listing(**overrides)
        listing = JobListing(
            **raw.model_dump(),
            content_hash=generate_content_hash(raw.title, raw.company, raw.description),
        )
        db_session.add(listing)
        db_session.commit()
        return listing

    return _make


def completion(content):
    """Minimal stand-in for an OpenAI chat completion response."""
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def mock_client(content=None, side_effect=None):
    client = MagicMock()
    if side_effect is not None:
        client.chat.completions.create = AsyncMock(side_effect=side_effect)
    else:
        client.chat.completions.create = AsyncMock(return_value=completion(content))
    return client
