"""Value objects produced by the artwork analysis model."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

DEFAULT_TITLE = "Untitled Artwork"
DEFAULT_MEDIUM = "Mixed Media"
DEFAULT_CONDITION = "Good"
DEFAULT_DESCRIPTION = "A unique artwork with distinctive characteristics."
DEFAULT_PRICE = 500
MAX_PRICE = 100_000_000
DEFAULT_CONFIDENCE = 0.7
CONDITIONS = ("Excellent", "Good", "Fair", "Poor")


class AnalysisErrorKind(str, Enum):
    """Why an analysis call failed."""

    QUOTA_EXCEEDED = "quota_exceeded"
    RATE_LIMITED = "rate_limited"
    AUTH_FAILED = "auth_failed"
    TIMEOUT = "timeout"
    CONNECTION = "connection"
    PARSE = "parse"
    UNKNOWN = "unknown"

    @property
    def retryable(self) -> bool:
        return self in (AnalysisErrorKind.RATE_LIMITED, AnalysisErrorKind.TIMEOUT, AnalysisErrorKind.CONNECTION)


class AnalysisStatus(str, Enum):
    """Pipeline state persisted on each artwork row."""

    PENDING = "pending"
    ANALYZING = "analyzing"
    COMPLETE = "complete"
    FAILED = "failed"


def to_minor_units(amount: float | int | None) -> int:
    """Convert a whole-currency amount (e.g. dollars) into integer cents."""
    if amount is None:
        return 0
    cents = Decimal(str(amount)) * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass
class AnalysisResult:
    """Structured output of one artwork analysis.

    Attributes:
        title: Descriptive title proposed by the model.
        artist: Artist name when recognisable.
        medium: Artistic medium, e.g. "Oil on Canvas".
        estimated_year: Year or decade when determinable.
        condition: One of `CONDITIONS`.
        style: Art styles or movements.
        themes: Subjects depicted.
        colors: Dominant colors.
        suggested_price: Estimated market value in whole currency units.
        description: Two or three sentence professional description.
        confidence: Model confidence between 0 and 1.
    """

    title: str = DEFAULT_TITLE
    artist: Optional[str] = None
    medium: str = DEFAULT_MEDIUM
    estimated_year: Optional[str] = None
    condition: str = DEFAULT_CONDITION
    style: List[str] = field(default_factory=list)
    themes: List[str] = field(default_factory=list)
    colors: List[str] = field(default_factory=list)
    suggested_price: float = DEFAULT_PRICE
    description: str = DEFAULT_DESCRIPTION
    confidence: float = DEFAULT_CONFIDENCE

    def tags(self) -> List[str]:
        """Return style, theme and color labels in that order, skipping blanks."""
        return [tag for tag in (*self.style, *self.themes, *self.colors) if tag]

    def to_payload(self) -> Dict[str, Any]:
        """Return the raw analysis payload kept on the artwork for audit."""
        return {
            "title": self.title,
            "artist": self.artist,
            "medium": self.medium,
            "estimatedYear": self.estimated_year,
            "condition": self.condition,
            "style": list(self.style),
            "themes": list(self.themes),
            "colors": list(self.colors),
            "suggestedPrice": self.suggested_price,
            "description": self.description,
            "confidence": self.confidence,
        }
