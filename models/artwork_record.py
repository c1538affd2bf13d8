from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

PLACEHOLDER_TITLE = "Analyzing..."
REANALYZING_TITLE = "Re-analyzing..."
PLACEHOLDER_DESCRIPTION = "AI analysis in progress."

EDITABLE_FIELDS = (
    "title",
    "artist",
    "medium",
    "dimensions",
    "year",
    "condition",
    "description",
    "tags",
    "suggested_price",
    "visibility",
)


@dataclass
class ArtworkRecord:
    """In-memory representation of a row in the artworks table.

    Attributes:
        id: Primary key (None for new records).
        owner_id: Opaque id of the owning user.
        title: Display title; a placeholder while analysis is pending.
        image_path: Stored location of the normalized primary JPEG.
        thumbnail: JPEG thumbnail bytes.
        additional_images: Stored locations of extra JPEGs.
        tags: Style, theme and color labels.
        suggested_price: Price in cents.
        analysis_status: One of pending, analyzing, complete, failed.
        analysis_complete: True only after a successful analysis.
        analysis_error: Error kind of the most recent failed analysis.
        analysis_data: Raw analysis payload retained for audit.
        visibility: "public" or "private".
        marketplace_listed: Whether an active marketplace listing exists.
        created_at / updated_at: Unix timestamps (seconds).
    """

    id: Optional[int]
    owner_id: str
    title: str
    image_path: str
    thumbnail: Optional[bytes] = None
    additional_images: List[str] = field(default_factory=list)
    artist: Optional[str] = None
    medium: Optional[str] = None
    dimensions: Optional[str] = None
    year: Optional[str] = None
    condition: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    suggested_price: Optional[int] = None
    analysis_status: str = "pending"
    analysis_complete: bool = False
    analysis_error: Optional[str] = None
    analysis_data: Optional[Dict[str, Any]] = None
    visibility: str = "public"
    marketplace_listed: bool = False
    listing_platform: Optional[str] = None
    listing_status: Optional[str] = None
    listing_price: Optional[int] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None

    def to_api(self) -> Dict[str, Any]:
        """Serialize for JSON responses; image bytes are exposed as URLs."""
        base = f"/api/artworks/{self.id}"
        return {
            "id": self.id,
            "ownerId": self.owner_id,
            "title": self.title,
            "artist": self.artist,
            "medium": self.medium,
            "dimensions": self.dimensions,
            "year": self.year,
            "condition": self.condition,
            "description": self.description,
            "tags": list(self.tags),
            "suggestedPrice": self.suggested_price,
            "imageUrl": f"{base}/image",
            "thumbnailUrl": f"{base}/thumbnail" if self.thumbnail else None,
            "additionalImageUrls": [f"{base}/images/{i}" for i in range(len(self.additional_images))],
            "analysisStatus": self.analysis_status,
            "analysisComplete": self.analysis_complete,
            "analysisError": self.analysis_error,
            "analysisData": self.analysis_data,
            "visibility": self.visibility,
            "marketplaceListed": self.marketplace_listed,
            "listingPlatform": self.listing_platform,
            "listingStatus": self.listing_status,
            "listingPrice": self.listing_price,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
