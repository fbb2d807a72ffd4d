"""
Error taxonomy for the rate intelligence pipeline.

- RateProviderError: transient provider failure. Raised and handled inside
  the rate collector, which falls back to synthetic data; never surfaced.
- NoCompetitorDataError: market analysis requested with zero observations.
- SuggestionNotFoundError / SuggestionAlreadyAppliedError: invalid suggestion
  operations. "Already applied" is a conflict, not a generic failure.

The API layer maps these to HTTP status codes.
"""

from datetime import date
from typing import Optional


class RateIntelligenceError(Exception):
    """Base class for all pipeline errors surfaced to callers."""


class RateProviderError(RateIntelligenceError):
    """The live rate shopping provider failed or returned an unusable payload."""


class NoCompetitorDataError(RateIntelligenceError):
    """No competitor observations exist for the requested property/date/room type."""

    def __init__(
        self,
        property_id: str,
        target_date: date,
        room_type_code: Optional[str] = None,
    ) -> None:
        self.property_id = property_id
        self.target_date = target_date
        self.room_type_code = room_type_code
        super().__init__(
            f"No competitor data available for market analysis "
            f"(property={property_id}, date={target_date.isoformat()}, "
            f"roomType={room_type_code})"
        )


class SuggestionNotFoundError(RateIntelligenceError):
    """The suggestion id does not exist."""

    def __init__(self, suggestion_id: str) -> None:
        self.suggestion_id = suggestion_id
        super().__init__(f"AI suggestion not found: {suggestion_id}")


class SuggestionAlreadyAppliedError(RateIntelligenceError):
    """The suggestion was already applied; a second apply is a conflict."""

    def __init__(self, suggestion_id: str, applied_by: Optional[str] = None) -> None:
        self.suggestion_id = suggestion_id
        self.applied_by = applied_by
        detail = f" by {applied_by}" if applied_by else ""
        super().__init__(f"AI suggestion already applied{detail}: {suggestion_id}")
