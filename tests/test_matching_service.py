"""
Tests for the match writer: upserts, triggers, retries, and batch behaviour.

Runs against the SQLite test database set up in conftest.py.
"""

import json

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from app.core.exceptions import MatchWriteError, RecordNotFoundError
from app.db.postgres import get_db_session
from app.services.matching_service import MatchingService, RescoreSummary, format_match

from conftest import count_matches


@pytest.fixture
def service():
    return MatchingService()


def _db_down():
    return OperationalError("INSERT INTO matches", {}, Exception("database is unavailable"))


@pytest.mark.unit
class TestUpsert:

    def test_scoring_twice_keeps_one_row(self, service, make_organizer, make_sponsor, make_event):
        event_id = make_event(make_organizer())
        sponsor_id = make_sponsor()

        first = service.score_pair(event_id, sponsor_id)
        second = service.score_pair(event_id, sponsor_id)

        assert first == second
        assert count_matches(event_id, sponsor_id) == 1

    def test_rescoring_stores_latest_score(self, service, make_organizer, make_sponsor, make_event):
        event_id = make_event(make_organizer())
        sponsor_id = make_sponsor()
        before = service.score_pair(event_id, sponsor_id)

        with get_db_session() as db:
            db.execute(
                text("UPDATE sponsors SET preferred_event_types = 'sports' WHERE sponsor_id = :id"),
                {"id": sponsor_id}
            )
        after = service.score_pair(event_id, sponsor_id)

        stored = service.get_match(event_id, sponsor_id)
        assert after.score < before.score
        assert stored["match_score"] == after.score
        assert count_matches(event_id, sponsor_id) == 1

    def test_stored_row_carries_breakdown_and_quality(self, service, make_organizer, make_sponsor, make_event):
        event_id = make_event(make_organizer())
        sponsor_id = make_sponsor()
        result = service.score_pair(event_id, sponsor_id)

        stored = service.get_match(event_id, sponsor_id)

        assert stored["is_featured"] is result.is_featured
        assert stored["match_quality"] == result.quality
        assert set(stored["score_breakdown"]) == set(result.breakdown)

    def test_missing_records_raise(self, service, make_organizer, make_sponsor, make_event):
        sponsor_id = make_sponsor()
        event_id = make_event(make_organizer())

        with pytest.raises(RecordNotFoundError):
            service.score_pair(9999, sponsor_id)
        with pytest.raises(RecordNotFoundError):
            service.score_pair(event_id, 9999)


@pytest.mark.unit
class TestRetries:

    def test_transient_failure_is_retried(self, service, monkeypatch, make_organizer, make_sponsor, make_event):
        event_id = make_event(make_organizer())
        sponsor_id = make_sponsor()
        real_write = service._write_match
        calls = {"n": 0}

        def flaky_write(*args):
            calls["n"] += 1
            if calls["n"] == 1:
                raise _db_down()
            return real_write(*args)

        monkeypatch.setattr(service, "_write_match", flaky_write)
        service.score_pair(event_id, sponsor_id)

        assert calls["n"] == 2
        assert count_matches(event_id, sponsor_id) == 1

    def test_persistent_failure_raises_after_all_attempts(self, service, monkeypatch, make_organizer, make_sponsor, make_event):
        event_id = make_event(make_organizer())
        sponsor_id = make_sponsor()
        calls = {"n": 0}

        def broken_write(*args):
            calls["n"] += 1
            raise _db_down()

        monkeypatch.setattr(service, "_write_match", broken_write)

        with pytest.raises(MatchWriteError) as exc:
            service.score_pair(event_id, sponsor_id)

        assert calls["n"] == service.settings.match_write_attempts
        assert exc.value.event_id == event_id
        assert count_matches() == 0

    def test_batch_continues_past_a_failing_pair(self, service, monkeypatch, make_organizer, make_sponsor, make_event):
        event_id = make_event(make_organizer())
        good = make_sponsor(company_name="Good Co")
        bad = make_sponsor(company_name="Bad Co")
        real_write = service._write_match

        def write(eid, sid, result):
            if sid == bad:
                raise _db_down()
            return real_write(eid, sid, result)

        monkeypatch.setattr(service, "_write_match", write)
        summary = service.rescore_event(event_id)

        assert summary.scored == 1
        assert summary.failed == 1
        assert count_matches(event_id, good) == 1
        assert count_matches(event_id, bad) == 0


@pytest.mark.unit
class TestTriggers:

    def test_unpublished_event_is_not_matched(self, service, make_organizer, make_sponsor, make_event):
        make_sponsor()
        event_id = make_event(make_organizer(), status="draft")

        summary = service.rescore_event(event_id)

        assert summary == RescoreSummary()
        assert count_matches() == 0

    def test_incomplete_sponsors_are_skipped(self, service, make_organizer, make_sponsor, make_event):
        complete = make_sponsor(profile_completion=100)
        incomplete = make_sponsor(profile_completion=30)
        event_id = make_event(make_organizer())

        summary = service.rescore_event(event_id)

        assert summary.scored == 1
        assert count_matches(sponsor_id=complete) == 1
        assert count_matches(sponsor_id=incomplete) == 0

    def test_rescore_sponsor_requires_completion(self, service, make_organizer, make_sponsor, make_event):
        make_event(make_organizer())
        sponsor_id = make_sponsor(profile_completion=10)

        assert service.rescore_sponsor(sponsor_id).scored == 0
        assert count_matches() == 0

    def test_rescore_sponsor_covers_published_events_only(self, service, make_organizer, make_sponsor, make_event):
        organizer = make_organizer()
        published = make_event(organizer, title="Published")
        make_event(organizer, title="Draft", status="draft")
        make_event(organizer, title="Cancelled", status="cancelled")
        sponsor_id = make_sponsor()

        summary = service.rescore_sponsor(sponsor_id)

        assert summary.scored == 1
        assert count_matches(event_id=published) == 1

    def test_rescore_all_is_idempotent(self, service, make_organizer, make_sponsor, make_event):
        organizer = make_organizer()
        for title in ("Hackathon", "Career Fair", "Robotics Expo"):
            make_event(organizer, title=title)
        for name in ("Acme", "Globex"):
            make_sponsor(company_name=name)

        first = service.rescore_all()
        second = service.rescore_all()

        assert first.scored == second.scored == 6
        assert first.featured == second.featured
        assert count_matches() == 6

    def test_dry_run_writes_nothing(self, service, make_organizer, make_sponsor, make_event):
        make_event(make_organizer())
        make_sponsor()

        summary = service.rescore_all(dry_run=True)

        assert summary.scored == 1
        assert count_matches() == 0


@pytest.mark.unit
class TestListings:

    def test_sponsor_matches_sorted_and_filtered(self, service, make_organizer, make_sponsor, make_event):
        organizer = make_organizer()
        strong = make_event(organizer, title="Hackathon")
        weak = make_event(
            organizer, title="Chess Night", category="culture", description="Board games evening",
            expected_audience=20, sponsorship_needs=("venue",)
        )
        sponsor_id = make_sponsor()
        service.rescore_sponsor(sponsor_id)

        matches = service.get_sponsor_matches(sponsor_id)
        scores = [m["match_score"] for m in matches]

        assert [m["event_id"] for m in matches] == [strong, weak]
        assert scores == sorted(scores, reverse=True)

        floor = scores[0]
        assert [m["event_id"] for m in service.get_sponsor_matches(sponsor_id, min_score=floor)] == [strong]

    def test_featured_only_filter(self, service, make_organizer, make_sponsor, make_event):
        event_id = make_event(make_organizer())
        sponsor_id = make_sponsor()
        result = service.score_pair(event_id, sponsor_id)

        featured = service.get_sponsor_matches(sponsor_id, featured_only=True)

        assert len(featured) == (1 if result.is_featured else 0)

    def test_cancelled_event_matches_hidden(self, service, make_organizer, make_sponsor, make_event):
        organizer = make_organizer()
        event_id = make_event(organizer)
        sponsor_id = make_sponsor()
        service.score_pair(event_id, sponsor_id)

        with get_db_session() as db:
            db.execute(text("UPDATE events SET status = 'cancelled' WHERE event_id = :id"), {"id": event_id})

        assert service.get_sponsor_matches(sponsor_id) == []
        assert service.get_organizer_matches(organizer) == []
        assert count_matches() == 1

    def test_incomplete_sponsor_matches_hidden(self, service, make_organizer, make_sponsor, make_event):
        organizer = make_organizer()
        event_id = make_event(organizer)
        sponsor_id = make_sponsor()
        service.score_pair(event_id, sponsor_id)

        with get_db_session() as db:
            db.execute(text("UPDATE sponsors SET profile_completion = 20 WHERE sponsor_id = :id"), {"id": sponsor_id})

        assert service.get_sponsor_matches(sponsor_id) == []
        assert service.get_organizer_matches(organizer) == []
        assert service.rescore_sponsor(sponsor_id) == RescoreSummary()
        assert count_matches(event_id, sponsor_id) == 1

    def test_format_match_parses_breakdown(self):
        row = {
            "match_id": 1, "match_score": 85, "is_featured": 1,
            "score_breakdown": json.dumps({"audience_fit": 1.0, "industry_affinity": None}),
        }

        formatted = format_match(row)

        assert formatted["is_featured"] is True
        assert formatted["match_quality"] == "excellent"
        assert formatted["score_breakdown"] == {"audience_fit": 1.0, "industry_affinity": None}
