"""
Tests for listing deduplication

Tests cover:
- New listings are inserted with their fingerprint
- Cross-board duplicates are detected by fingerprint and left untouched
- Key matches (board + external id, or URL) only touch updated_at
- A concurrent insert of the same key is treated as an update
"""

from datetime import datetime, timezone
from unittest.mock import patch

from sqlalchemy import func, select

from rolecall.database import as_utc
from rolecall.models import JobListing
from rolecall.services.dedup import (
    OUTCOME_DUPLICATE,
    OUTCOME_NEW,
    OUTCOME_UPDATED,
    _find_by_keys,
    upsert_listing,
)
from rolecall.services.normalize import generate_content_hash
from tests.conftest import raw_listing

LONG_AGO = datetime(2020, 1, 1, tzinfo=timezone.utc)


def count_listings(session) -> int:
    return session.execute(select(func.count(JobListing.id))).scalar_one()


class TestUpsertListing:
    def test_inserts_new_listing(self, db_session):
        raw = raw_listing()

        result = upsert_listing(db_session, raw)

        assert result.is_new is True
        assert result.outcome == OUTCOME_NEW
        assert result.listing.id is not None
        assert result.listing.content_hash == generate_content_hash(
            raw.title, raw.company, raw.description
        )
        assert result.listing.salary_min == 55000
        assert count_listings(db_session) == 1

    def test_same_posting_on_another_board_is_duplicate(self, db_session, make_listing):
        original = make_listing()
        original.updated_at = LONG_AGO
        db_session.commit()

        result = upsert_listing(
            db_session,
            raw_listing(
                source_board="seek",
                external_id="88123456",
                source_url="https://www.seek.com.au/job/88123456",
                title="ADMINISTRATION   officer",
            ),
        )

        assert result.is_new is False
        assert result.outcome == OUTCOME_DUPLICATE
        assert result.listing.id == original.id
        assert as_utc(result.listing.updated_at) == LONG_AGO
        assert count_listings(db_session) == 1

    def test_identical_rescrape_is_duplicate(self, db_session, make_listing):
        make_listing()

        result = upsert_listing(db_session, raw_listing())

        assert result.outcome == OUTCOME_DUPLICATE
        assert count_listings(db_session) == 1

    def test_same_board_id_with_edited_content_touches_only(self, db_session, make_listing):
        original = make_listing()
        original.updated_at = LONG_AGO
        db_session.commit()

        result = upsert_listing(
            db_session,
            raw_listing(title="Administration Officer (Temporary)", description="Edited ad"),
        )

        assert result.is_new is False
        assert result.outcome == OUTCOME_UPDATED
        assert result.listing.id == original.id
        assert result.listing.title == "Administration Officer"
        assert as_utc(result.listing.updated_at) > LONG_AGO
        assert count_listings(db_session) == 1

    def test_same_url_with_new_external_id_touches_only(self, db_session, make_listing):
        original = make_listing()

        result = upsert_listing(
            db_session,
            raw_listing(external_id="other-id", description="Reworded description"),
        )

        assert result.outcome == OUTCOME_UPDATED
        assert result.listing.id == original.id
        assert count_listings(db_session) == 1

    def test_different_postings_are_both_inserted(self, db_session):
        first = upsert_listing(db_session, raw_listing())
        second = upsert_listing(
            db_session,
            raw_listing(
                external_id="1002",
                source_url="https://smartjobs.qld.gov.au/jobs/QLD-1002",
                title="Receptionist",
            ),
        )

        assert first.is_new and second.is_new
        assert first.listing.id != second.listing.id
        assert count_listings(db_session) == 2

    def test_concurrent_insert_is_treated_as_update(self, db_session, make_listing):
        # Same board id already stored under different content; the key
        # lookup misses once, as it would if another worker won the race
        existing = make_listing(description="Written by the other worker")
        raw = raw_listing()

        with patch(
            "rolecall.services.dedup._find_by_keys",
            side_effect=[None, existing],
        ):
            result = upsert_listing(db_session, raw)

        assert result.is_new is False
        assert result.outcome == OUTCOME_UPDATED
        assert result.listing.id == existing.id
        assert count_listings(db_session) == 1


class TestFindByKeys:
    def test_falls_back_to_url(self, db_session, make_listing):
        listing = make_listing()

        found = _find_by_keys(db_session, raw_listing(external_id="unknown"))

        assert found.id == listing.id

    def test_returns_none_when_unknown(self, db_session, make_listing):
        make_listing()

        found = _find_by_keys(
            db_session,
            raw_listing(external_id="x", source_url="https://example.com/x"),
        )

        assert found is None
