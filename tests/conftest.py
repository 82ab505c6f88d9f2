"""
Shared fixtures for the test suite.

Handles:
- Pointing the app at a throwaway SQLite database (before any app import)
- Schema creation once per session, table cleanup between tests
- Factory fixtures for organizers, sponsors, events, and admins
- A FastAPI TestClient plus header helpers for acting as a profile
"""

import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="sponsormatch-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["MATCH_WRITE_BACKOFF_SECONDS"] = "0"
os.environ["MATCH_WRITE_BACKOFF_MAX_SECONDS"] = "0"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text

from app.db.postgres import get_db_session, init_schema
from app.db.tables import metadata
from app.services.tags import join_tags


@pytest.fixture(scope="session", autouse=True)
def _schema():
    init_schema()
    yield


@pytest.fixture(autouse=True)
def clean_db():
    """Empty every table after each test (children first)."""
    yield
    with get_db_session() as db:
        for table in reversed(metadata.sorted_tables):
            db.execute(text(f"DELETE FROM {table.name}"))


@pytest.fixture
def client():
    from app.main import app
    with TestClient(app) as c:
        yield c


def as_profile(profile_id: int) -> dict:
    return {"X-Profile-Id": str(profile_id)}


# ---------------------------------------------------------------------------
# Direct database seeding (service-level tests)
# ---------------------------------------------------------------------------

def _insert(sql: str, params: dict) -> int:
    with get_db_session() as db:
        return db.execute(text(sql), params).fetchone()[0]


@pytest.fixture
def make_organizer():
    counter = {"n": 0}

    def _make(university: str = "State University") -> int:
        counter["n"] += 1
        profile_id = _insert(
            "INSERT INTO profiles (email, full_name, role) VALUES (:email, :name, 'organizer') RETURNING profile_id",
            {"email": f"organizer{counter['n']}@uni.edu", "name": f"Organizer {counter['n']}"}
        )
        with get_db_session() as db:
            db.execute(
                text("INSERT INTO organizers (organizer_id, organization_name, university) VALUES (:id, :org, :uni)"),
                {"id": profile_id, "org": "Student Tech Club", "uni": university}
            )
        return profile_id

    return _make


@pytest.fixture
def make_admin():
    def _make(email: str = "ops@sponsormatch.example") -> int:
        return _insert(
            "INSERT INTO profiles (email, full_name, role) VALUES (:email, 'Ops', 'admin') RETURNING profile_id",
            {"email": email}
        )

    return _make


@pytest.fixture
def make_sponsor():
    counter = {"n": 0}

    def _make(
        company_name: str = "Acme Corp",
        industry: str = "technology",
        description: str = "Cloud software tools for developers and student hackers",
        preferred_event_types=("tech",),
        sponsorship_offerings=("monetary", "swag"),
        target_audience_min=100,
        target_audience_max=1000,
        profile_completion: int = 100,
    ) -> int:
        counter["n"] += 1
        profile_id = _insert(
            "INSERT INTO profiles (email, full_name, role) VALUES (:email, :name, 'sponsor') RETURNING profile_id",
            {"email": f"sponsor{counter['n']}@corp.com", "name": f"Sponsor {counter['n']}"}
        )
        with get_db_session() as db:
            db.execute(
                text("""
                    INSERT INTO sponsors (sponsor_id, company_name, industry, description,
                        preferred_event_types, sponsorship_offerings, target_audience_min,
                        target_audience_max, profile_completion)
                    VALUES (:id, :company_name, :industry, :description, :prefs, :offerings,
                        :low, :high, :completion)
                """),
                {
                    "id": profile_id, "company_name": company_name, "industry": industry,
                    "description": description, "prefs": join_tags(preferred_event_types),
                    "offerings": join_tags(sponsorship_offerings), "low": target_audience_min,
                    "high": target_audience_max, "completion": profile_completion
                }
            )
        return profile_id

    return _make


@pytest.fixture
def make_event():
    def _make(
        organizer_id: int,
        title: str = "Spring Hackathon",
        category: str = "tech",
        description: str = "Weekend hackathon where student developers build software tools",
        expected_audience: int = 400,
        sponsorship_needs=("monetary", "swag"),
        status: str = "published",
    ) -> int:
        return _insert(
            """
                INSERT INTO events (organizer_id, title, description, category, event_date,
                    is_online, expected_audience, sponsorship_needs, status)
                VALUES (:oid, :title, :description, :category, '2026-11-20', FALSE,
                    :audience, :needs, :status)
                RETURNING event_id
            """,
            {
                "oid": organizer_id, "title": title, "description": description,
                "category": category, "audience": expected_audience,
                "needs": join_tags(sponsorship_needs), "status": status
            }
        )

    return _make


def count_matches(event_id: int = None, sponsor_id: int = None) -> int:
    sql = "SELECT COUNT(*) FROM matches WHERE 1 = 1"
    params = {}
    if event_id is not None:
        sql += " AND event_id = :eid"
        params["eid"] = event_id
    if sponsor_id is not None:
        sql += " AND sponsor_id = :sid"
        params["sid"] = sponsor_id
    with get_db_session() as db:
        return db.execute(text(sql), params).fetchone()[0]
