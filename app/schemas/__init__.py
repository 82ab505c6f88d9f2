"""
Schemas module - Request/Response schemas for API endpoints.

All schemas and the tag vocabularies (event categories, industries,
sponsorship types) live in app.schemas.schemas.
"""
