"""
Compatibility Scoring Engine

PURPOSE:
Compute a deterministic affinity score between one event and one sponsor,
and decide whether the pairing should be featured.

HOW IT WORKS:
1. Each dimension turns a pair of attributes into a fraction in [0, 1]
2. Missing data yields the neutral fraction (0.5) instead of failing
3. Unknown tags are dropped; a dimension with nothing usable is skipped
4. Score = weighted mean of the remaining dimensions, scaled to 0-100
5. Featured = score at or above the configured threshold

DIMENSIONS:
- category_preference: event category vs sponsor's preferred event types
- needs_offering: share of the event's needs the sponsor can offer
- industry_affinity: fixed industry x category affinity table
- audience_fit: expected audience vs sponsor's target range
- description_similarity: cosine similarity of hashed word vectors

The engine never touches the database; snapshots are built from rows by the
matching service.
"""

import hashlib
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Optional

import numpy as np

from app.core.config import get_settings
from app.services.tags import (
    EVENT_CATEGORIES, INDUSTRIES, SPONSORSHIP_TYPES,
    normalize_tag, partition_tags, split_tags
)

logger = logging.getLogger(__name__)

NEUTRAL_FRACTION = 0.5
NEUTRAL_SCORE = 50

# Presentation bands shown next to a score (not the featured rule)
EXCELLENT_BAND = 80
GOOD_BAND = 60

DESCRIPTION_DIM = 256

INDUSTRY_CATEGORY_AFFINITY: Dict[str, Dict[str, float]] = {
    "technology": {
        "tech": 1.0, "workshop": 0.8, "conference": 0.8, "seminar": 0.6,
        "culture": 0.3, "sports": 0.3, "other": 0.4,
    },
    "finance": {
        "conference": 0.9, "seminar": 0.8, "workshop": 0.6, "tech": 0.6,
        "sports": 0.4, "culture": 0.4, "other": 0.4,
    },
    "healthcare": {
        "seminar": 0.8, "conference": 0.8, "sports": 0.7, "workshop": 0.6,
        "tech": 0.5, "culture": 0.4, "other": 0.4,
    },
    "education": {
        "workshop": 1.0, "seminar": 0.9, "conference": 0.8, "tech": 0.7,
        "culture": 0.6, "sports": 0.4, "other": 0.5,
    },
    "retail": {
        "culture": 0.9, "sports": 0.9, "tech": 0.5, "conference": 0.5,
        "workshop": 0.4, "seminar": 0.3, "other": 0.5,
    },
    "other": {category: 0.5 for category in EVENT_CATEGORIES},
}

_TOKEN_RE = re.compile(r"[a-z0-9]+")


# ============================================================
# SNAPSHOTS & RESULT
# ============================================================

@dataclass(frozen=True)
class EventSnapshot:
    event_id: Optional[int]
    category: str
    expected_audience: Optional[int] = None
    is_online: bool = False
    sponsorship_needs: frozenset = frozenset()
    description: str = ""
    status: str = "draft"

    @classmethod
    def from_row(cls, row: dict) -> "EventSnapshot":
        return cls(
            event_id=row.get("event_id"),
            category=normalize_tag(row.get("category")),
            expected_audience=row.get("expected_audience"),
            is_online=bool(row.get("is_online")),
            sponsorship_needs=frozenset(split_tags(row.get("sponsorship_needs"))),
            description=row.get("description") or "",
            status=row.get("status") or "draft",
        )


@dataclass(frozen=True)
class SponsorSnapshot:
    sponsor_id: Optional[int]
    industry: Optional[str] = None
    description: str = ""
    preferred_event_types: frozenset = frozenset()
    sponsorship_offerings: frozenset = frozenset()
    target_audience_min: Optional[int] = None
    target_audience_max: Optional[int] = None
    profile_completion: int = 0

    @classmethod
    def from_row(cls, row: dict) -> "SponsorSnapshot":
        return cls(
            sponsor_id=row.get("sponsor_id"),
            industry=normalize_tag(row.get("industry")) or None,
            description=row.get("description") or "",
            preferred_event_types=frozenset(split_tags(row.get("preferred_event_types"))),
            sponsorship_offerings=frozenset(split_tags(row.get("sponsorship_offerings"))),
            target_audience_min=row.get("target_audience_min"),
            target_audience_max=row.get("target_audience_max"),
            profile_completion=row.get("profile_completion") or 0,
        )


@dataclass(frozen=True)
class MatchResult:
    score: int
    is_featured: bool
    # dimension -> fraction in [0, 1], or None when skipped
    breakdown: Dict[str, Optional[float]] = field(default_factory=dict)

    @property
    def quality(self) -> str:
        return match_quality(self.score)


def match_quality(score: int) -> str:
    """Label shown beside a score: excellent / good / fair."""
    if score >= EXCELLENT_BAND:
        return "excellent"
    if score >= GOOD_BAND:
        return "good"
    return "fair"


# ============================================================
# DIMENSIONS
# ============================================================

def category_preference(event: EventSnapshot, sponsor: SponsorSnapshot) -> Optional[float]:
    if event.category not in EVENT_CATEGORIES:
        return None
    preferred, unknown = partition_tags(sponsor.preferred_event_types, EVENT_CATEGORIES)
    if unknown:
        logger.debug("Ignoring unknown preferred event types %s for sponsor %s", sorted(unknown), sponsor.sponsor_id)
    if not preferred:
        return NEUTRAL_FRACTION
    return 1.0 if event.category in preferred else 0.0


def needs_offering(event: EventSnapshot, sponsor: SponsorSnapshot) -> Optional[float]:
    """
    Share of the event's needs covered by what the sponsor offers.

    Coverage is mapped onto [NEUTRAL_FRACTION, 1], so zero overlap (or no
    offerings at all) is the floor and every covered need raises the value.
    """
    needs, _ = partition_tags(event.sponsorship_needs, SPONSORSHIP_TYPES)
    if not needs:
        return NEUTRAL_FRACTION
    offerings, _ = partition_tags(sponsor.sponsorship_offerings, SPONSORSHIP_TYPES)
    coverage = len(needs & offerings) / len(needs)
    return NEUTRAL_FRACTION + (1 - NEUTRAL_FRACTION) * coverage


def industry_affinity(event: EventSnapshot, sponsor: SponsorSnapshot) -> Optional[float]:
    if sponsor.industry not in INDUSTRIES or event.category not in EVENT_CATEGORIES:
        return None
    return INDUSTRY_CATEGORY_AFFINITY[sponsor.industry].get(event.category, NEUTRAL_FRACTION)


def audience_fit(event: EventSnapshot, sponsor: SponsorSnapshot) -> Optional[float]:
    audience = event.expected_audience
    low = sponsor.target_audience_min
    high = sponsor.target_audience_max
    if not audience or audience <= 0 or (low is None and high is None):
        return NEUTRAL_FRACTION
    if low is not None and high is not None and low > high:
        low, high = high, low
    if low is not None and audience < low:
        return audience / low if low > 0 else 1.0
    if high is not None and audience > high:
        return high / audience if high > 0 else 0.0
    return 1.0


def _tokenize(text: str) -> list:
    return [t for t in _TOKEN_RE.findall(text.lower()) if len(t) > 2]


def hashed_text_vector(text: str, dim: int = DESCRIPTION_DIM) -> np.ndarray:
    """
    Bag-of-words vector using sha256 feature hashing.

    Stable across processes (unlike the built-in hash()), so the same text
    always maps to the same vector.
    """
    vector = np.zeros(dim)
    for token in _tokenize(text):
        digest = hashlib.sha256(token.encode("utf-8")).digest()
        vector[int.from_bytes(digest[:4], "big") % dim] += 1.0
    return vector


def cosine_similarity(vec1: np.ndarray, vec2: np.ndarray) -> float:
    """
    Compute cosine similarity between two vectors.

    Returns:
        Float between -1 and 1 (0 when either vector is empty)
    """
    if vec1.shape != vec2.shape:
        raise ValueError("Vectors must have same dimension")

    magnitude_a = np.linalg.norm(vec1)
    magnitude_b = np.linalg.norm(vec2)
    if magnitude_a == 0 or magnitude_b == 0:
        return 0.0
    return float(np.dot(vec1, vec2) / (magnitude_a * magnitude_b))


def description_similarity(event: EventSnapshot, sponsor: SponsorSnapshot) -> Optional[float]:
    if not event.description.strip() or not sponsor.description.strip():
        return NEUTRAL_FRACTION
    event_vec = hashed_text_vector(event.description)
    sponsor_vec = hashed_text_vector(sponsor.description)
    if not event_vec.any() or not sponsor_vec.any():
        return NEUTRAL_FRACTION
    return min(max(cosine_similarity(event_vec, sponsor_vec), 0.0), 1.0)


DIMENSIONS = {
    "category_preference": category_preference,
    "needs_offering": needs_offering,
    "industry_affinity": industry_affinity,
    "audience_fit": audience_fit,
    "description_similarity": description_similarity,
}


# ============================================================
# SCORER
# ============================================================

class CompatibilityScorer:
    """
    Scores event/sponsor pairs.

    Weights and the featured threshold default to the app settings; pass
    them explicitly to score under a different configuration.
    """

    def __init__(
        self,
        weights: Optional[Dict[str, float]] = None,
        featured_threshold: Optional[int] = None
    ):
        settings = get_settings()
        self.weights = dict(weights if weights is not None else settings.scoring_weights)
        unknown = set(self.weights) - set(DIMENSIONS)
        if unknown:
            raise ValueError(f"Unknown scoring dimensions: {sorted(unknown)}")
        if any(w < 0 for w in self.weights.values()):
            raise ValueError("Scoring weights must be non-negative")
        self.featured_threshold = (
            featured_threshold if featured_threshold is not None else settings.featured_threshold
        )

    def score(self, event: EventSnapshot, sponsor: SponsorSnapshot) -> MatchResult:
        breakdown: Dict[str, Optional[float]] = {}
        weighted_sum = 0.0
        weight_total = 0.0

        for name, dimension in DIMENSIONS.items():
            weight = self.weights.get(name, 0.0)
            fraction = dimension(event, sponsor)
            if fraction is not None:
                fraction = min(max(float(fraction), 0.0), 1.0)
                fraction = round(fraction, 6)
            breakdown[name] = fraction
            if fraction is None or weight <= 0:
                continue
            weighted_sum += weight * fraction
            weight_total += weight

        if weight_total == 0:
            score = NEUTRAL_SCORE
        else:
            score = int(round(100 * weighted_sum / weight_total))
            score = min(max(score, 0), 100)

        return MatchResult(
            score=score,
            is_featured=score >= self.featured_threshold,
            breakdown=breakdown,
        )


def score_match(event: EventSnapshot, sponsor: SponsorSnapshot) -> MatchResult:
    """Score a pair with the configured weights."""
    return CompatibilityScorer().score(event, sponsor)
