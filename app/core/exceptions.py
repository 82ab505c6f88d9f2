"""
Domain exceptions raised by the service layer.

Routes translate these into HTTP errors; scripts report them directly.
"""


class SponsorMatchError(Exception):
    """Base class for service-level errors."""


class RecordNotFoundError(SponsorMatchError):
    """A referenced event, sponsor, or application does not exist."""

    def __init__(self, entity: str, entity_id: int):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class InvalidTransitionError(SponsorMatchError):
    """An application status change not allowed by its lifecycle."""

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move application from '{current}' to '{requested}'")


class MatchWriteError(SponsorMatchError):
    """Persisting a match row failed after all retries."""

    def __init__(self, event_id: int, sponsor_id: int, cause: Exception):
        self.event_id = event_id
        self.sponsor_id = sponsor_id
        self.cause = cause
        super().__init__(f"Failed to store match for event {event_id} / sponsor {sponsor_id}: {cause}")


class DuplicateRecordError(SponsorMatchError):
    """A record that must be unique per pair already exists."""


class EventNotOpenError(SponsorMatchError):
    """The event is not published, so sponsors cannot apply to it."""

    def __init__(self, event_id: int, status: str):
        self.event_id = event_id
        self.status = status
        super().__init__(f"Event {event_id} is {status} and not accepting applications")
