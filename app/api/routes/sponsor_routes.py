"""
Sponsor Routes

POST /sponsors/profile - Create sponsor details
GET /sponsors/profile - Get own details
PUT /sponsors/profile - Update details (refreshes matches once complete enough)
GET /sponsors/matches - Get matched events, best first
GET /sponsors/applications - Get applications sent
GET /sponsors/bookmarks - Get bookmarked events
POST /sponsors/bookmarks/{event_id} - Toggle a bookmark
GET /sponsors/stats - Dashboard counters
"""

import logging
from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy import text
from typing import List, Optional

from app.db.postgres import get_db_session, execute_raw_sql
from app.core.config import get_settings
from app.core.identity import get_current_profile, get_current_sponsor
from app.core.exceptions import MatchWriteError
from app.services.application_service import get_application_service
from app.services.matching_service import get_matching_service
from app.services.profile_service import compute_sponsor_completion
from app.services.scoring_service import EXCELLENT_BAND
from app.services.tags import join_tags, split_tags
from app.schemas.schemas import (
    SponsorCreate, SponsorUpdate, SponsorResponse, MatchListResponse, MatchResponse,
    ApplicationResponse, ApplicationStatus, BookmarkResponse, BookmarkToggleResponse,
    SponsorStatsResponse
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sponsors", tags=["Sponsors"])

SPONSOR_SQL = """
    SELECT s.sponsor_id, p.email, s.company_name, s.industry, s.description, s.website,
           s.preferred_event_types, s.sponsorship_offerings, s.target_audience_min,
           s.target_audience_max, s.profile_completion, s.created_at
    FROM sponsors s JOIN profiles p ON s.sponsor_id = p.profile_id
    WHERE s.sponsor_id = :id
"""

SPONSOR_FIELDS = [
    "company_name", "industry", "description", "website", "preferred_event_types",
    "sponsorship_offerings", "target_audience_min", "target_audience_max"
]


def _trigger_sponsor_matching(sponsor_id: int, completion: int) -> None:
    if completion < get_settings().sponsor_completion_threshold:
        return
    try:
        get_matching_service().rescore_sponsor(sponsor_id)
    except MatchWriteError as e:
        logger.error("Matching for sponsor %s failed: %s", sponsor_id, e)


def _sponsor_values(data) -> dict:
    """Column values from a create/update payload (only fields that were sent)."""
    values = {}
    for field in SPONSOR_FIELDS:
        value = getattr(data, field)
        if value is None:
            continue
        if field in ("preferred_event_types", "sponsorship_offerings"):
            value = join_tags(value)
        elif field == "industry":
            value = value.value
        values[field] = value
    return values


def _completion_of(values: dict) -> int:
    merged = dict(values)
    for field in ("preferred_event_types", "sponsorship_offerings"):
        merged[field] = split_tags(merged.get(field))
    return compute_sponsor_completion(merged)


@router.post("/profile", response_model=SponsorResponse, status_code=201)
async def create_profile(data: SponsorCreate, profile: dict = Depends(get_current_profile)):
    """Create sponsor details. Profile must be registered as sponsor."""
    if profile["role"] != "sponsor":
        raise HTTPException(status_code=403, detail="Only sponsor accounts can create sponsor profiles")

    values = _sponsor_values(data)
    values.setdefault("preferred_event_types", "")
    values.setdefault("sponsorship_offerings", "")
    completion = _completion_of(values)

    with get_db_session() as db:
        result = db.execute(
            text("SELECT sponsor_id FROM sponsors WHERE sponsor_id = :id"),
            {"id": profile["profile_id"]}
        )
        if result.fetchone():
            raise HTTPException(status_code=400, detail="Profile already exists")

        columns = ["sponsor_id", "profile_completion"] + list(values)
        params = {"sponsor_id": profile["profile_id"], "profile_completion": completion, **values}
        db.execute(
            text(f"INSERT INTO sponsors ({', '.join(columns)}) VALUES ({', '.join(':' + c for c in columns)})"),
            params
        )

    _trigger_sponsor_matching(profile["profile_id"], completion)
    return _sponsor_response(profile["profile_id"])


def _sponsor_response(sponsor_id: int) -> SponsorResponse:
    row = dict(execute_raw_sql(SPONSOR_SQL, {"id": sponsor_id})[0])
    row["preferred_event_types"] = split_tags(row["preferred_event_types"])
    row["sponsorship_offerings"] = split_tags(row["sponsorship_offerings"])
    return SponsorResponse(**row)


@router.get("/profile", response_model=SponsorResponse)
async def get_profile(sponsor: dict = Depends(get_current_sponsor)):
    """Get current sponsor's details."""
    return _sponsor_response(sponsor["sponsor_id"])


@router.put("/profile", response_model=SponsorResponse)
async def update_profile(data: SponsorUpdate, sponsor: dict = Depends(get_current_sponsor)):
    """
    Update sponsor details.

    Recomputes profile completion; once it reaches the matching threshold the
    sponsor is (re)scored against every published event.
    """
    values = _sponsor_values(data)
    if not values:
        raise HTTPException(status_code=400, detail="No fields to update")

    current = execute_raw_sql("SELECT * FROM sponsors WHERE sponsor_id = :id", {"id": sponsor["sponsor_id"]})[0]
    merged = {field: current[field] for field in SPONSOR_FIELDS}
    merged.update(values)

    low, high = merged["target_audience_min"], merged["target_audience_max"]
    if low is not None and high is not None and low > high:
        raise HTTPException(status_code=400, detail="target_audience_min must not exceed target_audience_max")

    completion = _completion_of(merged)
    updates = [f"{field} = :{field}" for field in values]
    params = {"id": sponsor["sponsor_id"], "profile_completion": completion, **values}

    with get_db_session() as db:
        db.execute(
            text(f"""
                UPDATE sponsors SET {', '.join(updates)}, profile_completion = :profile_completion,
                    updated_at = CURRENT_TIMESTAMP
                WHERE sponsor_id = :id
            """),
            params
        )

    _trigger_sponsor_matching(sponsor["sponsor_id"], completion)
    return _sponsor_response(sponsor["sponsor_id"])


@router.get("/matches", response_model=MatchListResponse)
async def get_sponsor_matches(
    featured_only: bool = Query(False),
    min_score: int = Query(0, ge=0, le=100),
    sponsor: dict = Depends(get_current_sponsor)
):
    """Published events matched to this sponsor, best first."""
    service = get_matching_service()
    rows = service.get_sponsor_matches(sponsor["sponsor_id"], featured_only=featured_only, min_score=min_score)
    matches = [MatchResponse(**m) for m in rows]
    return MatchListResponse(matches=matches, total=len(matches))


@router.get("/applications", response_model=List[ApplicationResponse])
async def get_applications(
    status: Optional[ApplicationStatus] = Query(None),
    sponsor: dict = Depends(get_current_sponsor)
):
    """Applications this sponsor has sent, newest first."""
    service = get_application_service()
    rows = service.list_for_sponsor(sponsor["sponsor_id"], status.value if status else None)
    return [ApplicationResponse(**r) for r in rows]


@router.get("/bookmarks", response_model=List[BookmarkResponse])
async def get_bookmarks(sponsor: dict = Depends(get_current_sponsor)):
    """Bookmarked events, newest first."""
    results = execute_raw_sql(
        """
            SELECT b.bookmark_id, b.event_id, e.title AS event_title, e.category AS event_category,
                   e.expected_audience, o.university, b.created_at
            FROM bookmarks b
            JOIN events e ON b.event_id = e.event_id
            JOIN organizers o ON e.organizer_id = o.organizer_id
            WHERE b.sponsor_id = :sid
            ORDER BY b.created_at DESC, b.bookmark_id DESC
        """,
        {"sid": sponsor["sponsor_id"]}
    )
    return [BookmarkResponse(**r) for r in results]


@router.post("/bookmarks/{event_id}", response_model=BookmarkToggleResponse)
async def toggle_bookmark(event_id: int, sponsor: dict = Depends(get_current_sponsor)):
    """Bookmark an event, or remove the bookmark if it already exists."""
    with get_db_session() as db:
        result = db.execute(
            text("SELECT bookmark_id FROM bookmarks WHERE sponsor_id = :sid AND event_id = :eid"),
            {"sid": sponsor["sponsor_id"], "eid": event_id}
        )
        existing = result.fetchone()

        if existing:
            db.execute(text("DELETE FROM bookmarks WHERE bookmark_id = :id"), {"id": existing[0]})
            return BookmarkToggleResponse(bookmarked=False, message="Event removed from your bookmarks")

        result = db.execute(text("SELECT event_id FROM events WHERE event_id = :eid"), {"eid": event_id})
        if not result.fetchone():
            raise HTTPException(status_code=404, detail="Event not found")

        db.execute(
            text("INSERT INTO bookmarks (sponsor_id, event_id) VALUES (:sid, :eid)"),
            {"sid": sponsor["sponsor_id"], "eid": event_id}
        )

    return BookmarkToggleResponse(bookmarked=True, message="Event added to your bookmarks")


@router.get("/stats", response_model=SponsorStatsResponse)
async def get_stats(sponsor: dict = Depends(get_current_sponsor)):
    """Counters for the sponsor dashboard header cards."""
    params = {
        "sid": sponsor["sponsor_id"],
        "excellent": EXCELLENT_BAND,
        "threshold": get_settings().sponsor_completion_threshold
    }

    events = execute_raw_sql(
        """
            SELECT COUNT(*) AS published_events,
                   COALESCE(SUM(CASE WHEN category = 'tech' THEN 1 ELSE 0 END), 0) AS tech_events
            FROM events WHERE status = 'published'
        """
    )[0]
    matches = execute_raw_sql(
        """
            SELECT COUNT(*) AS total_matches,
                   COALESCE(SUM(CASE WHEN m.match_score >= :excellent THEN 1 ELSE 0 END), 0) AS excellent_matches,
                   COALESCE(SUM(CASE WHEN m.is_featured = TRUE THEN 1 ELSE 0 END), 0) AS featured_matches
            FROM matches m
            JOIN events e ON m.event_id = e.event_id
            JOIN sponsors s ON m.sponsor_id = s.sponsor_id
            WHERE m.sponsor_id = :sid AND e.status = 'published' AND s.profile_completion >= :threshold
        """,
        params
    )[0]
    applications = execute_raw_sql(
        """
            SELECT COUNT(*) AS total_applications,
                   COALESCE(SUM(CASE WHEN status = 'pending' THEN 1 ELSE 0 END), 0) AS pending_applications
            FROM applications WHERE sponsor_id = :sid
        """,
        params
    )[0]
    bookmarks = execute_raw_sql(
        "SELECT COUNT(*) AS bookmarks FROM bookmarks WHERE sponsor_id = :sid",
        params
    )[0]

    return SponsorStatsResponse(
        published_events=int(events["published_events"]),
        tech_events=int(events["tech_events"]),
        total_matches=int(matches["total_matches"]),
        excellent_matches=int(matches["excellent_matches"]),
        featured_matches=int(matches["featured_matches"]),
        total_applications=int(applications["total_applications"]),
        pending_applications=int(applications["pending_applications"]),
        bookmarks=int(bookmarks["bookmarks"])
    )
