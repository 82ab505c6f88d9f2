"""
Database module - SQLAlchemy engine, sessions, and schema.
"""
from app.db.postgres import get_db_session, init_schema, test_postgres_connection

__all__ = [
    "get_db_session",
    "init_schema",
    "test_postgres_connection"
]
