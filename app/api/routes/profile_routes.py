"""
Profile Routes

POST /profiles - Register a profile (organizer or sponsor)
GET /profiles/me - Get own profile
PUT /profiles/me - Update own profile
"""

from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy import text

from app.db.postgres import get_db_session, execute_raw_sql
from app.core.identity import get_current_profile
from app.schemas.schemas import ProfileCreate, ProfileUpdate, ProfileResponse

router = APIRouter(prefix="/profiles", tags=["Profiles"])

PROFILE_SQL = """
    SELECT profile_id, email, full_name, role, avatar_url, created_at, updated_at
    FROM profiles WHERE profile_id = :id
"""


@router.post("", response_model=ProfileResponse, status_code=201)
async def create_profile(data: ProfileCreate):
    """Register a new profile. Email must be unique."""
    with get_db_session() as db:
        result = db.execute(
            text("SELECT profile_id FROM profiles WHERE LOWER(email) = LOWER(:email)"),
            {"email": data.email}
        )
        if result.fetchone():
            raise HTTPException(status_code=400, detail="Email already registered")

        result = db.execute(
            text("""
                INSERT INTO profiles (email, full_name, role, avatar_url)
                VALUES (:email, :full_name, :role, :avatar_url)
                RETURNING profile_id
            """),
            {
                "email": data.email.lower(),
                "full_name": data.full_name,
                "role": data.role.value,
                "avatar_url": data.avatar_url
            }
        )
        profile_id = result.fetchone()[0]

    return ProfileResponse(**execute_raw_sql(PROFILE_SQL, {"id": profile_id})[0])


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(profile: dict = Depends(get_current_profile)):
    """Get the calling profile."""
    return ProfileResponse(**execute_raw_sql(PROFILE_SQL, {"id": profile["profile_id"]})[0])


@router.put("/me", response_model=ProfileResponse)
async def update_my_profile(data: ProfileUpdate, profile: dict = Depends(get_current_profile)):
    """Update name and avatar."""
    updates = []
    params = {"id": profile["profile_id"]}

    for field in ["full_name", "avatar_url"]:
        value = getattr(data, field)
        if value is not None:
            updates.append(f"{field} = :{field}")
            params[field] = value

    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    with get_db_session() as db:
        db.execute(
            text(f"UPDATE profiles SET {', '.join(updates)}, updated_at = CURRENT_TIMESTAMP WHERE profile_id = :id"),
            params
        )

    return ProfileResponse(**execute_raw_sql(PROFILE_SQL, {"id": profile["profile_id"]})[0])
