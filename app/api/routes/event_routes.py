"""
Event Routes

POST /events - Create event (organizer only)
GET /events - List published events with filters
GET /events/{event_id} - Get event details
PUT /events/{event_id} - Update event (owner only); publishing triggers matching
DELETE /events/{event_id} - Delete event (owner only)
POST /events/{event_id}/apply - Express interest (sponsor only)
"""

import logging
from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy import text
from typing import Optional

from app.db.postgres import get_db_session, execute_raw_sql
from app.core.identity import get_current_organizer, get_current_sponsor
from app.core.exceptions import (
    DuplicateRecordError, EventNotOpenError, MatchWriteError, RecordNotFoundError
)
from app.services.application_service import get_application_service
from app.services.matching_service import get_matching_service
from app.services.tags import join_tags, split_tags
from app.schemas.schemas import (
    EventCreate, EventUpdate, EventResponse, EventListResponse,
    ApplicationCreate, ApplicationResponse, MessageResponse, EventCategory
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["Events"])

EVENT_SQL = """
    SELECT e.event_id, e.organizer_id, o.organization_name, o.university, e.title,
           e.description, e.category, e.event_date, e.location, e.is_online,
           e.expected_audience, e.sponsorship_needs, e.status, e.created_at, e.updated_at
    FROM events e
    JOIN organizers o ON e.organizer_id = o.organizer_id
"""


def event_response(row: dict) -> EventResponse:
    data = dict(row)
    data["sponsorship_needs"] = split_tags(row["sponsorship_needs"])
    data["is_online"] = bool(row["is_online"])
    data["expected_audience"] = row["expected_audience"] or 0
    return EventResponse(**data)


def _trigger_event_matching(event_id: int) -> None:
    """Score a freshly published event; write failures never fail the request."""
    try:
        get_matching_service().rescore_event(event_id)
    except MatchWriteError as e:
        logger.error("Matching for event %s failed: %s", event_id, e)


@router.post("", response_model=EventResponse, status_code=201)
async def create_event(event: EventCreate, organizer: dict = Depends(get_current_organizer)):
    """Create a new event. Online events get 'Online' as their location."""
    with get_db_session() as db:
        result = db.execute(
            text("""
                INSERT INTO events (organizer_id, title, description, category, event_date, location,
                    is_online, expected_audience, sponsorship_needs, status)
                VALUES (:organizer_id, :title, :description, :category, :event_date, :location,
                    :is_online, :expected_audience, :needs, :status)
                RETURNING event_id
            """),
            {
                "organizer_id": organizer["organizer_id"], "title": event.title,
                "description": event.description, "category": event.category.value,
                "event_date": event.event_date.isoformat(),
                "location": "Online" if event.is_online else event.location,
                "is_online": event.is_online, "expected_audience": event.expected_audience,
                "needs": join_tags(event.sponsorship_needs), "status": event.status.value
            }
        )
        event_id = result.fetchone()[0]

    if event.status.value == "published":
        _trigger_event_matching(event_id)

    return event_response(execute_raw_sql(EVENT_SQL + " WHERE e.event_id = :id", {"id": event_id})[0])


@router.get("", response_model=EventListResponse)
async def list_events(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=50),
    search: Optional[str] = Query(None, description="Search in title, description, university"),
    category: Optional[EventCategory] = Query(None)
):
    """List published events, newest first."""
    sql = EVENT_SQL + " WHERE e.status = 'published'"
    params = {}

    if search:
        sql += """ AND (LOWER(e.title) LIKE :search
                   OR LOWER(COALESCE(e.description, '')) LIKE :search
                   OR LOWER(COALESCE(o.university, '')) LIKE :search)"""
        params["search"] = f"%{search.lower()}%"
    if category:
        sql += " AND e.category = :category"
        params["category"] = category.value

    total = len(execute_raw_sql(sql, params))

    # Paginate
    offset = (page - 1) * page_size
    sql += f" ORDER BY e.created_at DESC, e.event_id DESC LIMIT {page_size} OFFSET {offset}"
    results = execute_raw_sql(sql, params)

    return EventListResponse(
        events=[event_response(r) for r in results],
        total=total, page=page, page_size=page_size
    )


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(event_id: int):
    """Get details of a specific event."""
    results = execute_raw_sql(EVENT_SQL + " WHERE e.event_id = :id", {"id": event_id})
    if not results:
        raise HTTPException(status_code=404, detail="Event not found")
    return event_response(results[0])


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(event_id: int, update: EventUpdate, organizer: dict = Depends(get_current_organizer)):
    """Update an event. Only the owning organizer can update."""
    with get_db_session() as db:
        result = db.execute(
            text("SELECT status, is_online FROM events WHERE event_id = :eid AND organizer_id = :oid"),
            {"eid": event_id, "oid": organizer["organizer_id"]}
        )
        row = result.fetchone()
        if not row:
            raise HTTPException(status_code=404, detail="Event not found or access denied")
        previous_status = row[0]

        updates = []
        params = {"eid": event_id}

        for field in ["title", "description", "location", "is_online", "expected_audience"]:
            value = getattr(update, field, None)
            if value is not None:
                updates.append(f"{field} = :{field}")
                params[field] = value

        if update.is_online:
            updates = [u for u in updates if not u.startswith("location")]
            updates.append("location = :location")
            params["location"] = "Online"
        elif update.is_online is False and row[1] and update.location is None:
            # Going offline without a new venue: drop the "Online" placeholder
            updates.append("location = :location")
            params["location"] = None
        if update.category:
            updates.append("category = :category")
            params["category"] = update.category.value
        if update.event_date:
            updates.append("event_date = :event_date")
            params["event_date"] = update.event_date.isoformat()
        if update.sponsorship_needs is not None:
            updates.append("sponsorship_needs = :needs")
            params["needs"] = join_tags(update.sponsorship_needs)
        if update.status:
            updates.append("status = :status")
            params["status"] = update.status.value

        if not updates:
            raise HTTPException(status_code=400, detail="No fields to update")

        db.execute(
            text(f"UPDATE events SET {', '.join(updates)}, updated_at = CURRENT_TIMESTAMP WHERE event_id = :eid"),
            params
        )

    new_status = update.status.value if update.status else previous_status
    # Publishing scores the event; edits to a published event refresh its scores
    if new_status == "published":
        _trigger_event_matching(event_id)

    return event_response(execute_raw_sql(EVENT_SQL + " WHERE e.event_id = :id", {"id": event_id})[0])


@router.delete("/{event_id}", response_model=MessageResponse)
async def delete_event(event_id: int, organizer: dict = Depends(get_current_organizer)):
    """Delete an event along with its matches, applications, and bookmarks."""
    with get_db_session() as db:
        result = db.execute(
            text("SELECT event_id FROM events WHERE event_id = :eid AND organizer_id = :oid"),
            {"eid": event_id, "oid": organizer["organizer_id"]}
        )
        if not result.fetchone():
            raise HTTPException(status_code=404, detail="Event not found or access denied")

        for table in ("matches", "applications", "bookmarks"):
            db.execute(text(f"DELETE FROM {table} WHERE event_id = :eid"), {"eid": event_id})
        db.execute(text("DELETE FROM events WHERE event_id = :eid"), {"eid": event_id})

    return MessageResponse(message="Event deleted successfully")


@router.post("/{event_id}/apply", response_model=ApplicationResponse, status_code=201)
async def apply_to_event(event_id: int, application: ApplicationCreate, sponsor: dict = Depends(get_current_sponsor)):
    """Send a sponsorship proposal. Sponsors only. Cannot apply twice to the same event."""
    service = get_application_service()
    try:
        row = service.apply(event_id, sponsor["sponsor_id"], application.proposal_message)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Event not found")
    except EventNotOpenError:
        raise HTTPException(status_code=400, detail="Event is not accepting applications")
    except DuplicateRecordError:
        raise HTTPException(status_code=400, detail="Already applied to this event")

    return ApplicationResponse(**row)
