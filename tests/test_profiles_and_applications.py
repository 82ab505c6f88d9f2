"""
Unit tests for sponsor profile completion, application transitions and tags.
"""

import pytest
from sqlalchemy import text

from app.core.exceptions import InvalidTransitionError
from app.db.postgres import get_db_session
from app.services import application_service
from app.services.application_service import ApplicationService, check_transition
from app.services.profile_service import compute_sponsor_completion
from app.services.tags import SPONSORSHIP_TYPES, join_tags, partition_tags, split_tags


@pytest.mark.unit
class TestSponsorCompletion:

    def test_empty_profile(self):
        assert compute_sponsor_completion({}) == 0

    def test_full_profile(self):
        sponsor = {
            "company_name": "Acme",
            "industry": "technology",
            "description": "Cloud tools",
            "website": "https://acme.example.com",
            "preferred_event_types": ["tech"],
            "sponsorship_offerings": ["swag"],
            "target_audience_max": 500,
        }
        assert compute_sponsor_completion(sponsor) == 100

    def test_blank_strings_and_empty_lists_do_not_count(self):
        sponsor = {
            "company_name": "Acme",
            "description": "   ",
            "preferred_event_types": [],
            "target_audience_min": 0,
        }
        # company_name and target_audience (0 is a real bound)
        assert compute_sponsor_completion(sponsor) == round(100 * 2 / 7)


@pytest.mark.unit
class TestApplicationTransitions:

    @pytest.mark.parametrize("decision", ["accepted", "declined"])
    def test_pending_can_be_decided(self, decision):
        check_transition("pending", decision)

    @pytest.mark.parametrize("current,requested", [
        ("accepted", "declined"),
        ("declined", "accepted"),
        ("accepted", "accepted"),
        ("pending", "pending"),
    ])
    def test_other_transitions_rejected(self, current, requested):
        with pytest.raises(InvalidTransitionError):
            check_transition(current, requested)


@pytest.mark.unit
class TestTags:

    def test_join_normalizes_and_dedupes(self):
        assert join_tags(["Swag", " monetary", "swag", ""]) == "monetary,swag"

    def test_split_handles_empty(self):
        assert split_tags(None) == []
        assert split_tags("") == []
        assert split_tags("venue,,media") == ["media", "venue"]

    def test_partition(self):
        known, unknown = partition_tags(["media", "yachts", " "], SPONSORSHIP_TYPES)

        assert known == frozenset({"media"})
        assert unknown == frozenset({"yachts"})


@pytest.mark.unit
class TestRespondGuard:

    @pytest.fixture
    def pending_application(self, make_organizer, make_sponsor, make_event):
        organizer_id = make_organizer()
        event_id = make_event(organizer_id)
        sponsor_id = make_sponsor()
        application = ApplicationService().apply(event_id, sponsor_id, "We can cover prizes")
        return organizer_id, application["application_id"]

    def test_decision_applies_once(self, pending_application):
        organizer_id, application_id = pending_application
        service = ApplicationService()

        decided = service.respond(application_id, organizer_id, "accepted")

        assert decided["status"] == "accepted"
        with pytest.raises(InvalidTransitionError):
            service.respond(application_id, organizer_id, "declined")

    def test_concurrent_decision_does_not_overwrite(self, monkeypatch, pending_application):
        organizer_id, application_id = pending_application

        def decided_elsewhere(current, requested):
            check_transition(current, requested)
            # Another organizer request accepts between our read and our write
            with get_db_session() as db:
                db.execute(
                    text("UPDATE applications SET status = 'accepted' WHERE application_id = :id"),
                    {"id": application_id}
                )

        monkeypatch.setattr(application_service, "check_transition", decided_elsewhere)

        with pytest.raises(InvalidTransitionError) as exc:
            ApplicationService().respond(application_id, organizer_id, "declined")

        assert exc.value.current == "accepted"
        assert ApplicationService().get(application_id)["status"] == "accepted"
