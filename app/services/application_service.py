"""
Sponsorship applications - explicit sponsor interest in an event.

Lifecycle: pending -> accepted | declined. Decided applications are final.
Unlike matches, applications are created and updated by users.
"""

import logging
from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import (
    DuplicateRecordError,
    EventNotOpenError,
    InvalidTransitionError,
    RecordNotFoundError,
)
from app.db.postgres import execute_raw_sql, get_db_session

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    "pending": frozenset({"accepted", "declined"}),
    "accepted": frozenset(),
    "declined": frozenset(),
}

APPLICATION_LISTING_SQL = """
    SELECT
        a.application_id,
        a.event_id,
        e.title AS event_title,
        a.sponsor_id,
        s.company_name,
        s.industry,
        a.status,
        a.proposal_message,
        a.response_message,
        a.created_at,
        a.updated_at
    FROM applications a
    JOIN events e ON a.event_id = e.event_id
    JOIN sponsors s ON a.sponsor_id = s.sponsor_id
"""


def check_transition(current: str, requested: str) -> None:
    if requested not in ALLOWED_TRANSITIONS.get(current, frozenset()):
        raise InvalidTransitionError(current, requested)


class ApplicationService:

    def apply(self, event_id: int, sponsor_id: int, proposal_message: str) -> dict:
        """Create a pending application. One per (event, sponsor)."""
        with get_db_session() as db:
            row = db.execute(
                text("SELECT status FROM events WHERE event_id = :id"),
                {"id": event_id}
            ).fetchone()
            if not row:
                raise RecordNotFoundError("event", event_id)
            if row[0] != "published":
                raise EventNotOpenError(event_id, row[0])

            existing = db.execute(
                text("SELECT application_id FROM applications WHERE event_id = :eid AND sponsor_id = :sid"),
                {"eid": event_id, "sid": sponsor_id}
            ).fetchone()
            if existing:
                raise DuplicateRecordError("Already applied to this event")

            try:
                result = db.execute(
                    text("""
                        INSERT INTO applications (event_id, sponsor_id, status, proposal_message)
                        VALUES (:eid, :sid, 'pending', :proposal)
                        RETURNING application_id
                    """),
                    {"eid": event_id, "sid": sponsor_id, "proposal": proposal_message}
                )
                application_id = result.fetchone()[0]
            except IntegrityError as e:
                raise DuplicateRecordError("Already applied to this event") from e

        logger.info("Sponsor %s applied to event %s", sponsor_id, event_id)
        return self.get(application_id)

    def respond(
        self,
        application_id: int,
        organizer_id: int,
        status: str,
        response_message: Optional[str] = None
    ) -> dict:
        """
        Accept or decline a pending application on one of the organizer's events.

        The update only applies while the row is still pending, so of two
        concurrent decisions exactly one wins.
        """
        with get_db_session() as db:
            row = db.execute(
                text("""
                    SELECT a.status FROM applications a
                    JOIN events e ON a.event_id = e.event_id
                    WHERE a.application_id = :id AND e.organizer_id = :oid
                """),
                {"id": application_id, "oid": organizer_id}
            ).first()
            if not row:
                raise RecordNotFoundError("application", application_id)

            check_transition(row[0], status)

            result = db.execute(
                text("""
                    UPDATE applications
                    SET status = :status, response_message = :message, updated_at = CURRENT_TIMESTAMP
                    WHERE application_id = :id AND status = 'pending'
                """),
                {"status": status, "message": response_message or None, "id": application_id}
            )
            if result.rowcount == 0:
                current = db.execute(
                    text("SELECT status FROM applications WHERE application_id = :id"),
                    {"id": application_id}
                ).scalar()
                raise InvalidTransitionError(current, status)

        logger.info("Application %s %s", application_id, status)
        return self.get(application_id)

    def get(self, application_id: int) -> dict:
        rows = execute_raw_sql(
            APPLICATION_LISTING_SQL + " WHERE a.application_id = :id",
            {"id": application_id}
        )
        if not rows:
            raise RecordNotFoundError("application", application_id)
        return rows[0]

    def list_for_organizer(self, organizer_id: int, status: Optional[str] = None) -> List[dict]:
        sql = APPLICATION_LISTING_SQL + " WHERE e.organizer_id = :oid"
        params = {"oid": organizer_id}
        if status:
            sql += " AND a.status = :status"
            params["status"] = status
        sql += " ORDER BY a.created_at DESC, a.application_id DESC"
        return execute_raw_sql(sql, params)

    def list_for_sponsor(self, sponsor_id: int, status: Optional[str] = None) -> List[dict]:
        sql = APPLICATION_LISTING_SQL + " WHERE a.sponsor_id = :sid"
        params = {"sid": sponsor_id}
        if status:
            sql += " AND a.status = :status"
            params["status"] = status
        sql += " ORDER BY a.created_at DESC, a.application_id DESC"
        return execute_raw_sql(sql, params)


def get_application_service() -> ApplicationService:
    return ApplicationService()
