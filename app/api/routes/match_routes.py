"""
Match Routes

POST /matches/rescore - Rescore every published event against eligible sponsors (admin only)
POST /matches/events/{event_id}/rescore - Rescore one event (admin only)
GET /matches/events/{event_id}/sponsors/{sponsor_id} - Get one match (its sponsor, the event's organizer, or an admin)

Match rows are written only by the matching service; there is no endpoint to
create or edit a score directly.
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.exceptions import RecordNotFoundError
from app.core.identity import get_current_admin, get_current_profile
from app.services.matching_service import get_matching_service
from app.schemas.schemas import MatchResponse, RescoreResponse

router = APIRouter(prefix="/matches", tags=["Matches"])


def can_view_match(profile: dict, match: dict) -> bool:
    if profile["role"] == "admin":
        return True
    if profile["role"] == "sponsor":
        return profile["profile_id"] == match["sponsor_id"]
    if profile["role"] == "organizer":
        return profile["profile_id"] == match["organizer_id"]
    return False


@router.post("/rescore", response_model=RescoreResponse)
async def rescore_all(
    dry_run: bool = Query(False, description="Score without writing"),
    admin: dict = Depends(get_current_admin)
):
    """
    Rescore all published events.

    Idempotent: each (event, sponsor) pair keeps exactly one match row,
    holding the latest score.
    """
    summary = get_matching_service().rescore_all(dry_run=dry_run)
    return RescoreResponse(**summary.as_dict())


@router.post("/events/{event_id}/rescore", response_model=RescoreResponse)
async def rescore_event(
    event_id: int,
    dry_run: bool = Query(False),
    admin: dict = Depends(get_current_admin)
):
    """Rescore one event against every eligible sponsor. Unpublished events score nothing."""
    try:
        summary = get_matching_service().rescore_event(event_id, dry_run=dry_run)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Event not found")
    return RescoreResponse(**summary.as_dict())


@router.get("/events/{event_id}/sponsors/{sponsor_id}", response_model=MatchResponse)
async def get_match(event_id: int, sponsor_id: int, profile: dict = Depends(get_current_profile)):
    """Get the stored match for one pair."""
    match = get_matching_service().get_match(event_id, sponsor_id)
    if not match:
        raise HTTPException(status_code=404, detail="Match not found")
    if not can_view_match(profile, match):
        raise HTTPException(status_code=403, detail="Not allowed to view this match")
    return MatchResponse(**match)
