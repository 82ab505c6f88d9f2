"""
Sponsor profile completion.

Completion gates matching: sponsors below the configured threshold are not
scored until they fill in more of their profile.
"""

COMPLETION_FIELDS = (
    "company_name",
    "industry",
    "description",
    "website",
    "preferred_event_types",
    "sponsorship_offerings",
    "target_audience",
)


def _is_filled(value) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) > 0
    return True


def compute_sponsor_completion(sponsor: dict) -> int:
    """Percentage (0-100) of completion fields filled in."""
    values = dict(sponsor)
    values["target_audience"] = (
        values.get("target_audience_min") if values.get("target_audience_min") is not None
        else values.get("target_audience_max")
    )
    filled = sum(1 for name in COMPLETION_FIELDS if _is_filled(values.get(name)))
    return round(100 * filled / len(COMPLETION_FIELDS))
