"""
Tag vocabularies and the comma-separated storage format for tag sets.
"""

from typing import Iterable, List, Optional, Tuple

from app.schemas.schemas import EventCategory, Industry, SponsorshipType

EVENT_CATEGORIES = frozenset(c.value for c in EventCategory)
INDUSTRIES = frozenset(i.value for i in Industry)
SPONSORSHIP_TYPES = frozenset(t.value for t in SponsorshipType)


def normalize_tag(tag) -> str:
    if tag is None:
        return ""
    value = tag.value if hasattr(tag, "value") else str(tag)
    return value.strip().lower()


def join_tags(tags: Optional[Iterable]) -> str:
    """Serialize a tag collection for storage (sorted, de-duplicated)."""
    if not tags:
        return ""
    cleaned = {normalize_tag(t) for t in tags}
    cleaned.discard("")
    return ",".join(sorted(cleaned))


def split_tags(stored: Optional[str]) -> List[str]:
    """Parse a stored tag string back into a sorted list."""
    if not stored:
        return []
    cleaned = {normalize_tag(t) for t in stored.split(",")}
    cleaned.discard("")
    return sorted(cleaned)


def partition_tags(tags: Iterable[str], vocabulary: frozenset) -> Tuple[frozenset, frozenset]:
    """Split tags into (known, unknown) against a vocabulary."""
    known = set()
    unknown = set()
    for tag in tags:
        value = normalize_tag(tag)
        if not value:
            continue
        if value in vocabulary:
            known.add(value)
        else:
            unknown.add(value)
    return frozenset(known), frozenset(unknown)
