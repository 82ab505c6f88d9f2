"""
Match Writer & Rescoring Service

PURPOSE:
Own the matches table. Every match row is created or refreshed here, from the
output of the Compatibility Scoring Engine; nothing else writes scores.

HOW IT WORKS:
1. Load event and sponsor rows, turn them into immutable snapshots
2. Score the pair (app.services.scoring_service)
3. Upsert the row keyed by (event_id, sponsor_id) - rescoring the same
   pair twice leaves exactly one row holding the latest score
4. Retry transient write failures with exponential backoff (tenacity)

TRIGGERS:
- An event is published          -> rescore_event(event_id)
- A sponsor reaches completion    -> rescore_sponsor(sponsor_id)
- Operator / cron                 -> rescore_all()

A pair that still cannot be written after all retries is logged and counted
as failed; the rest of the batch carries on.

Rows stay stored when an event leaves "published" or a sponsor drops below
the completion threshold; listings hide them until they qualify again.
"""

import json
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.core.config import get_settings
from app.core.exceptions import MatchWriteError, RecordNotFoundError
from app.db.postgres import execute_raw_sql, get_db_session
from app.services.scoring_service import (
    CompatibilityScorer,
    EventSnapshot,
    MatchResult,
    SponsorSnapshot,
    match_quality,
)

logger = logging.getLogger(__name__)


MATCH_LISTING_SQL = """
    SELECT
        m.match_id,
        m.event_id,
        e.organizer_id,
        e.title AS event_title,
        e.category AS event_category,
        e.expected_audience,
        m.sponsor_id,
        s.company_name,
        s.industry,
        m.match_score,
        m.is_featured,
        m.score_breakdown,
        m.created_at,
        m.updated_at
    FROM matches m
    JOIN events e ON m.event_id = e.event_id
    JOIN sponsors s ON m.sponsor_id = s.sponsor_id
"""


@dataclass
class RescoreSummary:
    scored: int = 0
    featured: int = 0
    failed: int = 0

    def record(self, result: MatchResult) -> None:
        self.scored += 1
        if result.is_featured:
            self.featured += 1

    def as_dict(self) -> dict:
        return {"scored": self.scored, "featured": self.featured, "failed": self.failed}


def format_match(row: dict) -> dict:
    """Shape a match listing row for the API (quality label, parsed breakdown)."""
    formatted = dict(row)
    formatted["match_score"] = int(row["match_score"])
    formatted["is_featured"] = bool(row["is_featured"])
    formatted["match_quality"] = match_quality(formatted["match_score"])
    formatted["score_breakdown"] = json.loads(row["score_breakdown"]) if row.get("score_breakdown") else {}
    return formatted


class MatchingService:
    """
    Scores event/sponsor pairs and persists the results.

    Process for a batch:
    1. Select the events and sponsors eligible for matching
    2. Score every pair
    3. Upsert each result, retrying transient failures
    4. Return a RescoreSummary
    """

    def __init__(self, scorer: Optional[CompatibilityScorer] = None):
        self.settings = get_settings()
        self.scorer = scorer or CompatibilityScorer()

    # ------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------

    def _load_event(self, event_id: int) -> dict:
        rows = execute_raw_sql("SELECT * FROM events WHERE event_id = :id", {"id": event_id})
        if not rows:
            raise RecordNotFoundError("event", event_id)
        return rows[0]

    def _load_sponsor(self, sponsor_id: int) -> dict:
        rows = execute_raw_sql("SELECT * FROM sponsors WHERE sponsor_id = :id", {"id": sponsor_id})
        if not rows:
            raise RecordNotFoundError("sponsor", sponsor_id)
        return rows[0]

    def _eligible_sponsors(self) -> List[dict]:
        return execute_raw_sql(
            "SELECT * FROM sponsors WHERE profile_completion >= :threshold ORDER BY sponsor_id",
            {"threshold": self.settings.sponsor_completion_threshold}
        )

    def _published_events(self) -> List[dict]:
        return execute_raw_sql(
            "SELECT * FROM events WHERE status = 'published' ORDER BY event_id"
        )

    # ------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(max(1, self.settings.match_write_attempts)),
            wait=wait_exponential(
                multiplier=self.settings.match_write_backoff_seconds,
                max=self.settings.match_write_backoff_max_seconds
            ),
            retry=retry_if_exception_type(SQLAlchemyError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def _write_match(self, event_id: int, sponsor_id: int, result: MatchResult) -> None:
        with get_db_session() as db:
            db.execute(
                text("""
                    INSERT INTO matches (
                        event_id, sponsor_id, match_score, is_featured, score_breakdown
                    ) VALUES (
                        :event_id, :sponsor_id, :match_score, :is_featured, :breakdown
                    )
                    ON CONFLICT (event_id, sponsor_id) DO UPDATE SET
                        match_score = EXCLUDED.match_score,
                        is_featured = EXCLUDED.is_featured,
                        score_breakdown = EXCLUDED.score_breakdown,
                        updated_at = CURRENT_TIMESTAMP
                """),
                {
                    "event_id": event_id,
                    "sponsor_id": sponsor_id,
                    "match_score": result.score,
                    "is_featured": result.is_featured,
                    "breakdown": json.dumps(result.breakdown, sort_keys=True),
                }
            )

    def upsert_match(self, event_id: int, sponsor_id: int, result: MatchResult) -> None:
        """
        Insert or refresh the match row for one pair.

        Raises:
            MatchWriteError: the write kept failing after all attempts
        """
        try:
            for attempt in self._retrying():
                with attempt:
                    self._write_match(event_id, sponsor_id, result)
        except SQLAlchemyError as e:
            raise MatchWriteError(event_id, sponsor_id, e) from e

    # ------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------

    def score_pair(self, event_id: int, sponsor_id: int) -> MatchResult:
        """Score one pair and store the result."""
        event = EventSnapshot.from_row(self._load_event(event_id))
        sponsor = SponsorSnapshot.from_row(self._load_sponsor(sponsor_id))
        result = self.scorer.score(event, sponsor)
        self.upsert_match(event_id, sponsor_id, result)
        return result

    def _score_pairs(
        self,
        pairs: Iterable[Tuple[dict, dict]],
        dry_run: bool = False
    ) -> RescoreSummary:
        summary = RescoreSummary()
        for event_row, sponsor_row in pairs:
            event = EventSnapshot.from_row(event_row)
            sponsor = SponsorSnapshot.from_row(sponsor_row)
            result = self.scorer.score(event, sponsor)

            if not dry_run:
                try:
                    self.upsert_match(event.event_id, sponsor.sponsor_id, result)
                except MatchWriteError as e:
                    logger.error("Dropping match: %s", e)
                    summary.failed += 1
                    continue

            summary.record(result)
        return summary

    def rescore_event(self, event_id: int, dry_run: bool = False) -> RescoreSummary:
        """Score a published event against every eligible sponsor."""
        event_row = self._load_event(event_id)
        if event_row["status"] != "published":
            logger.info("Event %s is %s; not matching", event_id, event_row["status"])
            return RescoreSummary()

        sponsors = self._eligible_sponsors()
        summary = self._score_pairs(((event_row, s) for s in sponsors), dry_run=dry_run)
        logger.info(
            "Rescored event %s against %d sponsors: %s",
            event_id, len(sponsors), summary.as_dict()
        )
        return summary

    def rescore_sponsor(self, sponsor_id: int, dry_run: bool = False) -> RescoreSummary:
        """Score a sponsor against every published event, once its profile is complete enough."""
        sponsor_row = self._load_sponsor(sponsor_id)
        completion = sponsor_row["profile_completion"] or 0
        if completion < self.settings.sponsor_completion_threshold:
            logger.info(
                "Sponsor %s profile %d%% complete (needs %d%%); not matching",
                sponsor_id, completion, self.settings.sponsor_completion_threshold
            )
            return RescoreSummary()

        events = self._published_events()
        summary = self._score_pairs(((e, sponsor_row) for e in events), dry_run=dry_run)
        logger.info(
            "Rescored sponsor %s against %d events: %s",
            sponsor_id, len(events), summary.as_dict()
        )
        return summary

    def rescore_all(self, dry_run: bool = False) -> RescoreSummary:
        """Score every published event against every eligible sponsor."""
        events = self._published_events()
        sponsors = self._eligible_sponsors()
        pairs = ((e, s) for e in events for s in sponsors)
        summary = self._score_pairs(pairs, dry_run=dry_run)
        logger.info(
            "Rescored %d events x %d sponsors: %s",
            len(events), len(sponsors), summary.as_dict()
        )
        return summary

    # ------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------

    def get_match(self, event_id: int, sponsor_id: int) -> Optional[dict]:
        rows = execute_raw_sql(
            MATCH_LISTING_SQL + " WHERE m.event_id = :event_id AND m.sponsor_id = :sponsor_id",
            {"event_id": event_id, "sponsor_id": sponsor_id}
        )
        return format_match(rows[0]) if rows else None

    def get_sponsor_matches(
        self,
        sponsor_id: int,
        featured_only: bool = False,
        min_score: int = 0
    ) -> List[dict]:
        """Matches for a sponsor's dashboard, best first; published events only."""
        sql = MATCH_LISTING_SQL + """
            WHERE m.sponsor_id = :sponsor_id
                AND e.status = 'published'
                AND s.profile_completion >= :threshold
                AND m.match_score >= :min_score
        """
        if featured_only:
            sql += " AND m.is_featured = TRUE"
        sql += " ORDER BY m.match_score DESC, m.match_id"

        rows = execute_raw_sql(sql, {
            "sponsor_id": sponsor_id,
            "threshold": self.settings.sponsor_completion_threshold,
            "min_score": min_score
        })
        return [format_match(r) for r in rows]

    def get_organizer_matches(self, organizer_id: int) -> List[dict]:
        """Matches across an organizer's published events, best first."""
        rows = execute_raw_sql(
            MATCH_LISTING_SQL + """
                WHERE e.organizer_id = :organizer_id
                    AND e.status = 'published'
                    AND s.profile_completion >= :threshold
                ORDER BY m.match_score DESC, m.match_id
            """,
            {"organizer_id": organizer_id, "threshold": self.settings.sponsor_completion_threshold}
        )
        return [format_match(r) for r in rows]


# ============================================================
# CONVENIENCE FUNCTIONS
# ============================================================

def get_matching_service() -> MatchingService:
    """Get matching service instance."""
    return MatchingService()
