"""
Database schema.

Declared with SQLAlchemy Core so the same definitions create the tables on
PostgreSQL (production) and SQLite (tests). Queries elsewhere stay raw SQL.

Tag sets (sponsorship needs, preferred event types, offerings) are stored as
comma-separated lowercase text; see app.services.tags.
"""

from sqlalchemy import (
    MetaData, Table, Column, Integer, String, Text, Boolean, Date, DateTime,
    ForeignKey, UniqueConstraint, CheckConstraint, Index, func
)

metadata = MetaData()


profiles = Table(
    "profiles", metadata,
    Column("profile_id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("full_name", String(100)),
    Column("role", String(20), nullable=False),
    Column("avatar_url", String(500)),
    Column("created_at", DateTime, server_default=func.now(), nullable=False),
    Column("updated_at", DateTime, server_default=func.now(), nullable=False),
    CheckConstraint("role IN ('organizer', 'sponsor', 'admin')", name="ck_profiles_role"),
)

organizers = Table(
    "organizers", metadata,
    Column("organizer_id", Integer, ForeignKey("profiles.profile_id", ondelete="CASCADE"), primary_key=True),
    Column("organization_name", String(200)),
    Column("university", String(200)),
    Column("position", String(100)),
    Column("phone", String(30)),
    Column("created_at", DateTime, server_default=func.now(), nullable=False),
    Column("updated_at", DateTime, server_default=func.now(), nullable=False),
)

sponsors = Table(
    "sponsors", metadata,
    Column("sponsor_id", Integer, ForeignKey("profiles.profile_id", ondelete="CASCADE"), primary_key=True),
    Column("company_name", String(200), nullable=False),
    Column("industry", String(50)),
    Column("description", Text),
    Column("website", String(500)),
    Column("preferred_event_types", Text, nullable=False, server_default=""),
    Column("sponsorship_offerings", Text, nullable=False, server_default=""),
    Column("target_audience_min", Integer),
    Column("target_audience_max", Integer),
    Column("profile_completion", Integer, nullable=False, server_default="0"),
    Column("created_at", DateTime, server_default=func.now(), nullable=False),
    Column("updated_at", DateTime, server_default=func.now(), nullable=False),
)

events = Table(
    "events", metadata,
    Column("event_id", Integer, primary_key=True, autoincrement=True),
    Column("organizer_id", Integer, ForeignKey("organizers.organizer_id", ondelete="CASCADE"), nullable=False),
    Column("title", String(200), nullable=False),
    Column("description", Text),
    Column("category", String(50), nullable=False),
    Column("event_date", Date),
    Column("location", String(200)),
    Column("is_online", Boolean, nullable=False, server_default="0"),
    Column("expected_audience", Integer, nullable=False, server_default="0"),
    Column("sponsorship_needs", Text, nullable=False, server_default=""),
    Column("status", String(20), nullable=False, server_default="draft"),
    Column("created_at", DateTime, server_default=func.now(), nullable=False),
    Column("updated_at", DateTime, server_default=func.now(), nullable=False),
    CheckConstraint("status IN ('draft', 'published', 'cancelled')", name="ck_events_status"),
    Index("ix_events_organizer", "organizer_id"),
    Index("ix_events_status", "status"),
)

matches = Table(
    "matches", metadata,
    Column("match_id", Integer, primary_key=True, autoincrement=True),
    Column("event_id", Integer, ForeignKey("events.event_id", ondelete="CASCADE"), nullable=False),
    Column("sponsor_id", Integer, ForeignKey("sponsors.sponsor_id", ondelete="CASCADE"), nullable=False),
    Column("match_score", Integer, nullable=False),
    Column("is_featured", Boolean, nullable=False, server_default="0"),
    Column("score_breakdown", Text),
    Column("created_at", DateTime, server_default=func.now(), nullable=False),
    Column("updated_at", DateTime, server_default=func.now(), nullable=False),
    UniqueConstraint("event_id", "sponsor_id", name="uq_matches_event_sponsor"),
    CheckConstraint("match_score >= 0 AND match_score <= 100", name="ck_matches_score_range"),
)

applications = Table(
    "applications", metadata,
    Column("application_id", Integer, primary_key=True, autoincrement=True),
    Column("event_id", Integer, ForeignKey("events.event_id", ondelete="CASCADE"), nullable=False),
    Column("sponsor_id", Integer, ForeignKey("sponsors.sponsor_id", ondelete="CASCADE"), nullable=False),
    Column("status", String(20), nullable=False, server_default="pending"),
    Column("proposal_message", Text, nullable=False),
    Column("response_message", Text),
    Column("created_at", DateTime, server_default=func.now(), nullable=False),
    Column("updated_at", DateTime, server_default=func.now(), nullable=False),
    UniqueConstraint("event_id", "sponsor_id", name="uq_applications_event_sponsor"),
    CheckConstraint("status IN ('pending', 'accepted', 'declined')", name="ck_applications_status"),
)

bookmarks = Table(
    "bookmarks", metadata,
    Column("bookmark_id", Integer, primary_key=True, autoincrement=True),
    Column("sponsor_id", Integer, ForeignKey("sponsors.sponsor_id", ondelete="CASCADE"), nullable=False),
    Column("event_id", Integer, ForeignKey("events.event_id", ondelete="CASCADE"), nullable=False),
    Column("created_at", DateTime, server_default=func.now(), nullable=False),
    UniqueConstraint("sponsor_id", "event_id", name="uq_bookmarks_sponsor_event"),
)
