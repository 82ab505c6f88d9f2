"""
Organizer Routes

POST /organizers/profile - Create organizer details
GET /organizers/profile - Get own details
PUT /organizers/profile - Update details
GET /organizers/events - Get organizer's events (all statuses)
GET /organizers/matches - Get sponsor matches for published events
GET /organizers/applications - Get applications received
PUT /organizers/applications/{id}/respond - Accept or decline an application
GET /organizers/stats - Dashboard counters
"""

from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy import text
from typing import List, Optional

from app.db.postgres import get_db_session, execute_raw_sql
from app.core.config import get_settings
from app.core.identity import get_current_profile, get_current_organizer
from app.core.exceptions import InvalidTransitionError, RecordNotFoundError
from app.services.application_service import get_application_service
from app.services.matching_service import get_matching_service
from app.api.routes.event_routes import EVENT_SQL, event_response
from app.schemas.schemas import (
    OrganizerCreate, OrganizerUpdate, OrganizerResponse, EventResponse, EventStatus,
    MatchListResponse, MatchResponse, ApplicationResponse, ApplicationResponseUpdate,
    ApplicationStatus, OrganizerStatsResponse, MessageResponse
)

router = APIRouter(prefix="/organizers", tags=["Organizers"])

# Organizer dashboard counts matches at or above this as high quality
HIGH_QUALITY_SCORE = 70


ORGANIZER_FIELDS = ["organization_name", "university", "position", "phone"]


def _clean(value: Optional[str]) -> Optional[str]:
    return value.strip() if value else None


@router.post("/profile", response_model=MessageResponse, status_code=201)
async def create_profile(data: OrganizerCreate, profile: dict = Depends(get_current_profile)):
    """Create organizer details. Profile must be registered as organizer."""
    if profile["role"] != "organizer":
        raise HTTPException(status_code=403, detail="Only organizer accounts can create organizer profiles")

    with get_db_session() as db:
        result = db.execute(
            text("SELECT organizer_id FROM organizers WHERE organizer_id = :id"),
            {"id": profile["profile_id"]}
        )
        if result.fetchone():
            raise HTTPException(status_code=400, detail="Profile already exists")

        db.execute(
            text("""
                INSERT INTO organizers (organizer_id, organization_name, university, position, phone)
                VALUES (:id, :organization_name, :university, :position, :phone)
            """),
            {"id": profile["profile_id"], **{f: _clean(getattr(data, f)) for f in ORGANIZER_FIELDS}}
        )

    return MessageResponse(message="Organizer profile created successfully")


@router.get("/profile", response_model=OrganizerResponse)
async def get_profile(organizer: dict = Depends(get_current_organizer)):
    """Get current organizer's details."""
    results = execute_raw_sql(
        """
            SELECT o.organizer_id, p.email, p.full_name, o.organization_name, o.university,
                   o.position, o.phone, o.created_at
            FROM organizers o JOIN profiles p ON o.organizer_id = p.profile_id
            WHERE o.organizer_id = :id
        """,
        {"id": organizer["organizer_id"]}
    )
    return OrganizerResponse(**results[0])


@router.put("/profile", response_model=MessageResponse)
async def update_profile(data: OrganizerUpdate, organizer: dict = Depends(get_current_organizer)):
    """Update organizer details."""
    updates = []
    params = {"id": organizer["organizer_id"]}

    for field in ORGANIZER_FIELDS:
        value = getattr(data, field)
        if value:
            updates.append(f"{field} = :{field}")
            params[field] = value.strip()

    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    with get_db_session() as db:
        db.execute(
            text(f"UPDATE organizers SET {', '.join(updates)}, updated_at = CURRENT_TIMESTAMP WHERE organizer_id = :id"),
            params
        )

    return MessageResponse(message="Profile updated successfully")


@router.get("/events", response_model=List[EventResponse])
async def get_organizer_events(
    status: Optional[EventStatus] = Query(None),
    organizer: dict = Depends(get_current_organizer)
):
    """Get all events created by this organizer, newest first."""
    sql = EVENT_SQL + " WHERE e.organizer_id = :oid"
    params = {"oid": organizer["organizer_id"]}

    if status:
        sql += " AND e.status = :status"
        params["status"] = status.value

    sql += " ORDER BY e.created_at DESC, e.event_id DESC"
    return [event_response(r) for r in execute_raw_sql(sql, params)]


@router.get("/matches", response_model=MatchListResponse)
async def get_organizer_matches(organizer: dict = Depends(get_current_organizer)):
    """Sponsors matched to this organizer's published events, best first."""
    service = get_matching_service()
    matches = [MatchResponse(**m) for m in service.get_organizer_matches(organizer["organizer_id"])]
    return MatchListResponse(matches=matches, total=len(matches))


@router.get("/applications", response_model=List[ApplicationResponse])
async def get_applications(
    status: Optional[ApplicationStatus] = Query(None),
    organizer: dict = Depends(get_current_organizer)
):
    """Get all sponsorship applications for this organizer's events."""
    service = get_application_service()
    rows = service.list_for_organizer(organizer["organizer_id"], status.value if status else None)
    return [ApplicationResponse(**r) for r in rows]


@router.put("/applications/{application_id}/respond", response_model=ApplicationResponse)
async def respond_to_application(
    application_id: int,
    update: ApplicationResponseUpdate,
    organizer: dict = Depends(get_current_organizer)
):
    """Accept or decline a pending application. Decisions are final."""
    service = get_application_service()
    try:
        row = service.respond(
            application_id,
            organizer["organizer_id"],
            update.status.value,
            update.response_message
        )
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Application not found or access denied")
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return ApplicationResponse(**row)


@router.get("/stats", response_model=OrganizerStatsResponse)
async def get_stats(organizer: dict = Depends(get_current_organizer)):
    """Counters for the organizer dashboard header cards."""
    params = {
        "oid": organizer["organizer_id"],
        "high": HIGH_QUALITY_SCORE,
        "threshold": get_settings().sponsor_completion_threshold
    }

    events = execute_raw_sql(
        """
            SELECT COUNT(*) AS total_events,
                   COALESCE(SUM(CASE WHEN status = 'published' THEN 1 ELSE 0 END), 0) AS published_events,
                   COALESCE(SUM(expected_audience), 0) AS total_expected_audience
            FROM events WHERE organizer_id = :oid
        """,
        params
    )[0]
    matches = execute_raw_sql(
        """
            SELECT COUNT(*) AS total_matches,
                   COALESCE(SUM(CASE WHEN m.match_score >= :high THEN 1 ELSE 0 END), 0) AS high_quality_matches
            FROM matches m
            JOIN events e ON m.event_id = e.event_id
            JOIN sponsors s ON m.sponsor_id = s.sponsor_id
            WHERE e.organizer_id = :oid AND e.status = 'published' AND s.profile_completion >= :threshold
        """,
        params
    )[0]
    applications = execute_raw_sql(
        """
            SELECT COUNT(*) AS total_applications,
                   COALESCE(SUM(CASE WHEN a.status = 'pending' THEN 1 ELSE 0 END), 0) AS pending_applications
            FROM applications a JOIN events e ON a.event_id = e.event_id
            WHERE e.organizer_id = :oid
        """,
        params
    )[0]

    return OrganizerStatsResponse(
        total_events=int(events["total_events"]),
        published_events=int(events["published_events"]),
        total_matches=int(matches["total_matches"]),
        high_quality_matches=int(matches["high_quality_matches"]),
        total_applications=int(applications["total_applications"]),
        pending_applications=int(applications["pending_applications"]),
        total_expected_audience=int(events["total_expected_audience"])
    )
