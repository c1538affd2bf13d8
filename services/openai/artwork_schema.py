"""Schema definitions for the artwork analysis and pricing tools."""

from typing import Any, Dict

from models.analysis_result import CONDITIONS

ANALYSIS_FUNCTION_NAME = "record_artwork_analysis"
PRICE_FUNCTION_NAME = "suggest_artwork_price"

_LABELS = {"type": "array", "items": {"type": "string"}}

ANALYSIS_FUNCTION: Dict[str, Any] = {
    "type": "function",
    "name": ANALYSIS_FUNCTION_NAME,
    "description": "Record the catalog details and appraisal for the artwork in the image.",
    "parameters": {
        "type": "object",
        "properties": {
            "title": {"type": "string", "description": "A descriptive title for the artwork."},
            "artist": {"type": ["string", "null"], "description": "Artist name if recognizable."},
            "medium": {"type": "string", "description": "The artistic medium used."},
            "estimatedYear": {"type": ["string", "null"], "description": "Estimated year or decade."},
            "condition": {"type": "string", "enum": list(CONDITIONS)},
            "style": {**_LABELS, "description": "Art styles or movements."},
            "themes": {**_LABELS, "description": "Themes or subjects depicted."},
            "colors": {**_LABELS, "description": "Dominant colors."},
            "suggestedPrice": {"type": "number", "description": "Estimated market value in whole USD."},
            "description": {"type": "string", "description": "Professional description, 2-3 sentences."},
            "confidence": {"type": "number", "description": "Confidence in this analysis, 0 to 1."},
        },
        "required": [
            "title",
            "artist",
            "medium",
            "estimatedYear",
            "condition",
            "style",
            "themes",
            "colors",
            "suggestedPrice",
            "description",
            "confidence",
        ],
        "additionalProperties": False,
    },
    "strict": True,
}

PRICE_FUNCTION: Dict[str, Any] = {
    "type": "function",
    "name": PRICE_FUNCTION_NAME,
    "description": "Return a realistic market price estimate.",
    "parameters": {
        "type": "object",
        "properties": {
            "price": {"type": "number", "description": "Estimated market value in whole USD."},
        },
        "required": ["price"],
        "additionalProperties": False,
    },
    "strict": True,
}
