"""
Caller identity - FastAPI dependencies for role-scoped routes.

Authentication happens upstream (the gateway / managed auth provider); it
forwards the authenticated profile id in the X-Profile-Id header. These
dependencies resolve that id to a profile and enforce roles.
"""

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import text

from app.db.postgres import get_db_session


async def get_current_profile(x_profile_id: int = Header(..., description="Authenticated profile id")) -> dict:
    """
    FastAPI dependency - Get the calling profile.

    Usage:
        @router.get("/me")
        async def route(profile: dict = Depends(get_current_profile)):
            return profile
    """
    with get_db_session() as db:
        result = db.execute(
            text("SELECT profile_id, email, full_name, role FROM profiles WHERE profile_id = :id"),
            {"id": x_profile_id}
        )
        row = result.fetchone()

    if not row:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown profile")

    return {"profile_id": row[0], "email": row[1], "full_name": row[2], "role": row[3]}


async def get_current_organizer(profile: dict = Depends(get_current_profile)) -> dict:
    """Dependency - Require organizer role and an organizer record."""
    if profile["role"] != "organizer":
        raise HTTPException(status_code=403, detail="Organizers only")

    with get_db_session() as db:
        result = db.execute(
            text("SELECT organizer_id FROM organizers WHERE organizer_id = :id"),
            {"id": profile["profile_id"]}
        )
        row = result.fetchone()

    if not row:
        raise HTTPException(status_code=404, detail="Organizer profile not found. Create profile first.")

    profile["organizer_id"] = row[0]
    return profile


async def get_current_sponsor(profile: dict = Depends(get_current_profile)) -> dict:
    """Dependency - Require sponsor role and a sponsor record."""
    if profile["role"] != "sponsor":
        raise HTTPException(status_code=403, detail="Sponsors only")

    with get_db_session() as db:
        result = db.execute(
            text("SELECT sponsor_id FROM sponsors WHERE sponsor_id = :id"),
            {"id": profile["profile_id"]}
        )
        row = result.fetchone()

    if not row:
        raise HTTPException(status_code=404, detail="Sponsor profile not found. Create profile first.")

    profile["sponsor_id"] = row[0]
    return profile


async def get_current_admin(profile: dict = Depends(get_current_profile)) -> dict:
    """Dependency - Require admin role (batch rescoring, any match)."""
    if profile["role"] != "admin":
        raise HTTPException(status_code=403, detail="Admins only")
    return profile
