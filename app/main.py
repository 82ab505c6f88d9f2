"""
Sponsorship Matchmaking Platform - Main Application

FastAPI backend with:
- PostgreSQL for events, sponsors, matches, applications, bookmarks
- Deterministic compatibility scoring between events and sponsors
- Identity supplied by the upstream auth gateway (X-Profile-Id)

Run: uvicorn app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import api_router
from app.core.config import get_settings
from app.db.postgres import init_schema, test_postgres_connection

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create missing tables on startup."""
    try:
        init_schema()
        logger.info("Database schema ready")
    except Exception as e:
        logger.error("Database schema initialization failed: %s", e)
    yield


# Create FastAPI app
app = FastAPI(
    title="Sponsorship Matchmaking Platform",
    description="""
    Connects student event organizers with corporate sponsors.

    ## Features
    - **Profiles**: Organizer and sponsor accounts
    - **Events**: Create, publish, search, and manage sponsorship-seeking events
    - **Matching**: Compatibility scores (0-100) with featured pairings
    - **Applications**: Sponsor proposals with accept/decline responses
    - **Bookmarks**: Sponsors' saved events
    - **Dashboards**: Counters for both sides
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS middleware (allow all for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/", tags=["Health"])
async def root():
    return {"status": "healthy", "app": "Sponsorship Matchmaking Platform"}


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "database": "connected" if test_postgres_connection() else "disconnected"
    }
