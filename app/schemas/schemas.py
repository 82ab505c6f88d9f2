"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional, List
from datetime import date, datetime
from enum import Enum


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    organizer = "organizer"
    sponsor = "sponsor"
    admin = "admin"


class EventCategory(str, Enum):
    tech = "tech"
    culture = "culture"
    sports = "sports"
    workshop = "workshop"
    seminar = "seminar"
    conference = "conference"
    other = "other"


class EventStatus(str, Enum):
    draft = "draft"
    published = "published"
    cancelled = "cancelled"


class Industry(str, Enum):
    technology = "technology"
    finance = "finance"
    healthcare = "healthcare"
    education = "education"
    retail = "retail"
    other = "other"


class SponsorshipType(str, Enum):
    monetary = "monetary"
    product = "product"
    swag = "swag"
    media = "media"
    venue = "venue"


class ApplicationStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    declined = "declined"


class ApplicationDecision(str, Enum):
    accepted = "accepted"
    declined = "declined"


class MatchQuality(str, Enum):
    excellent = "excellent"
    good = "good"
    fair = "fair"


# ============================================================
# PROFILE SCHEMAS
# ============================================================

class ProfileCreate(BaseModel):
    email: EmailStr
    full_name: Optional[str] = Field(None, max_length=100)
    role: UserRole
    avatar_url: Optional[str] = None

    @field_validator("role")
    @classmethod
    def no_self_service_admin(cls, v: UserRole) -> UserRole:
        # Admins are provisioned with scripts/create_admin.py
        if v == UserRole.admin:
            raise ValueError("Admin profiles cannot be self-registered")
        return v

class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=100)
    avatar_url: Optional[str] = None

class ProfileResponse(BaseModel):
    profile_id: int
    email: str
    full_name: Optional[str] = None
    role: str
    avatar_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# ============================================================
# ORGANIZER SCHEMAS
# ============================================================

class OrganizerCreate(BaseModel):
    organization_name: Optional[str] = Field(None, max_length=200)
    university: Optional[str] = Field(None, max_length=200)
    position: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)

class OrganizerUpdate(BaseModel):
    organization_name: Optional[str] = Field(None, max_length=200)
    university: Optional[str] = Field(None, max_length=200)
    position: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)

class OrganizerResponse(BaseModel):
    organizer_id: int
    email: str
    full_name: Optional[str] = None
    organization_name: Optional[str] = None
    university: Optional[str] = None
    position: Optional[str] = None
    phone: Optional[str] = None
    created_at: datetime


# ============================================================
# SPONSOR SCHEMAS
# ============================================================

class _AudienceRange(BaseModel):
    target_audience_min: Optional[int] = Field(None, ge=0)
    target_audience_max: Optional[int] = Field(None, ge=0)

    @model_validator(mode="after")
    def check_range(self):
        low, high = self.target_audience_min, self.target_audience_max
        if low is not None and high is not None and low > high:
            raise ValueError("target_audience_min must not exceed target_audience_max")
        return self

class SponsorCreate(_AudienceRange):
    company_name: str = Field(..., min_length=2, max_length=200)
    industry: Optional[Industry] = None
    description: Optional[str] = None
    website: Optional[str] = None
    preferred_event_types: List[EventCategory] = []
    sponsorship_offerings: List[SponsorshipType] = []

class SponsorUpdate(_AudienceRange):
    company_name: Optional[str] = Field(None, min_length=2, max_length=200)
    industry: Optional[Industry] = None
    description: Optional[str] = None
    website: Optional[str] = None
    preferred_event_types: Optional[List[EventCategory]] = None
    sponsorship_offerings: Optional[List[SponsorshipType]] = None

class SponsorResponse(BaseModel):
    sponsor_id: int
    email: str
    company_name: str
    industry: Optional[str] = None
    description: Optional[str] = None
    website: Optional[str] = None
    preferred_event_types: List[str] = []
    sponsorship_offerings: List[str] = []
    target_audience_min: Optional[int] = None
    target_audience_max: Optional[int] = None
    profile_completion: int
    created_at: datetime


# ============================================================
# EVENT SCHEMAS
# ============================================================

class EventCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = None
    category: EventCategory
    event_date: date
    location: Optional[str] = Field(None, max_length=200)
    is_online: bool = False
    expected_audience: int = Field(0, ge=0)
    sponsorship_needs: List[SponsorshipType] = []
    status: EventStatus = EventStatus.draft

class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = None
    category: Optional[EventCategory] = None
    event_date: Optional[date] = None
    location: Optional[str] = Field(None, max_length=200)
    is_online: Optional[bool] = None
    expected_audience: Optional[int] = Field(None, ge=0)
    sponsorship_needs: Optional[List[SponsorshipType]] = None
    status: Optional[EventStatus] = None

class EventResponse(BaseModel):
    event_id: int
    organizer_id: int
    organization_name: Optional[str] = None
    university: Optional[str] = None
    title: str
    description: Optional[str] = None
    category: str
    event_date: Optional[date] = None
    location: Optional[str] = None
    is_online: bool
    expected_audience: int
    sponsorship_needs: List[str] = []
    status: str
    created_at: datetime
    updated_at: datetime

class EventListResponse(BaseModel):
    events: List[EventResponse]
    total: int
    page: int
    page_size: int


# ============================================================
# MATCH SCHEMAS
# ============================================================

class MatchResponse(BaseModel):
    match_id: int
    event_id: int
    organizer_id: int
    event_title: str
    event_category: str
    expected_audience: int
    sponsor_id: int
    company_name: str
    industry: Optional[str] = None
    match_score: int
    match_quality: MatchQuality
    is_featured: bool
    score_breakdown: dict = {}
    created_at: datetime
    updated_at: datetime

class MatchListResponse(BaseModel):
    matches: List[MatchResponse]
    total: int

class RescoreResponse(BaseModel):
    scored: int
    featured: int
    failed: int


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class ApplicationCreate(BaseModel):
    proposal_message: str

    @field_validator("proposal_message")
    @classmethod
    def proposal_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please provide a message explaining your interest")
        return v

class ApplicationResponseUpdate(BaseModel):
    status: ApplicationDecision
    response_message: Optional[str] = None

class ApplicationResponse(BaseModel):
    application_id: int
    event_id: int
    event_title: str
    sponsor_id: int
    company_name: str
    industry: Optional[str] = None
    status: str
    proposal_message: str
    response_message: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# ============================================================
# BOOKMARK SCHEMAS
# ============================================================

class BookmarkResponse(BaseModel):
    bookmark_id: int
    event_id: int
    event_title: str
    event_category: str
    expected_audience: int
    university: Optional[str] = None
    created_at: datetime

class BookmarkToggleResponse(BaseModel):
    bookmarked: bool
    message: str


# ============================================================
# DASHBOARD STATS SCHEMAS
# ============================================================

class OrganizerStatsResponse(BaseModel):
    total_events: int
    published_events: int
    total_matches: int
    high_quality_matches: int
    total_applications: int
    pending_applications: int
    total_expected_audience: int

class SponsorStatsResponse(BaseModel):
    published_events: int
    tech_events: int
    total_matches: int
    excellent_matches: int
    featured_matches: int
    total_applications: int
    pending_applications: int
    bookmarks: int


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True
