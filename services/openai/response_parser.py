"""Helpers to parse Responses API outputs into artwork values."""

import json
import math
from typing import Any, Dict, List, Optional

from models.analysis_result import (
    CONDITIONS,
    DEFAULT_CONDITION,
    DEFAULT_CONFIDENCE,
    DEFAULT_DESCRIPTION,
    DEFAULT_MEDIUM,
    DEFAULT_PRICE,
    DEFAULT_TITLE,
    MAX_PRICE,
    AnalysisResult,
)


def find_function_arguments(response: Any, *, tool_name: str) -> Optional[Dict[str, Any]]:
    """Return the decoded arguments of the named function call, or None if absent.

    Raises:
        ValueError: If the call exists but its arguments are not a JSON object.
    """
    for item in getattr(response, "output", None) or []:
        if getattr(item, "type", None) == "function_call" and getattr(item, "name", None) == tool_name:
            args = json.loads(getattr(item, "arguments", "{}") or "{}")
            if not isinstance(args, dict):
                raise ValueError("Function call arguments are not a JSON object.")
            return args
    return None


def extract_text(response: Any) -> str:
    """Return the concatenated output text of a response."""
    text = getattr(response, "output_text", None)
    if text:
        return text
    parts: List[str] = []
    for item in getattr(response, "output", None) or []:
        if getattr(item, "type", None) != "message":
            continue
        for content in getattr(item, "content", None) or []:
            if getattr(content, "type", None) == "output_text":
                parts.append(getattr(content, "text", "") or "")
    return "".join(parts)


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Return the first JSON object embedded in `text`, or None."""
    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            value, _ = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            start = text.find("{", start + 1)
            continue
        if isinstance(value, dict):
            return value
        start = text.find("{", start + 1)
    return None


def extract_usage(response: Any) -> Dict[str, Optional[int]]:
    """Return token usage information from the response, if present."""
    usage = getattr(response, "usage", None)
    return {
        "input_tokens": getattr(usage, "input_tokens", None) if usage else None,
        "output_tokens": getattr(usage, "output_tokens", None) if usage else None,
    }


def _text(value: Any, default: Optional[str]) -> Optional[str]:
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def _labels(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if isinstance(v, (str, int, float)) and str(v).strip()]


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return float(value)


def coerce_price(value: Any) -> float:
    """Return a price in whole units within `0..MAX_PRICE`, falling back to the default."""
    number = _number(value)
    if number is None or number < 0 or number > MAX_PRICE:
        return float(DEFAULT_PRICE)
    return number


def map_analysis(args: Dict[str, Any]) -> AnalysisResult:
    """Map loosely-typed model output onto an `AnalysisResult`.

    Missing or mistyped fields take their documented defaults; nothing here raises.
    """
    condition = _text(args.get("condition"), DEFAULT_CONDITION)
    if condition not in CONDITIONS:
        condition = DEFAULT_CONDITION

    confidence = _number(args.get("confidence"))
    confidence = DEFAULT_CONFIDENCE if confidence is None else min(max(confidence, 0.0), 1.0)

    year = args.get("estimatedYear")
    return AnalysisResult(
        title=_text(args.get("title"), DEFAULT_TITLE),
        artist=_text(args.get("artist"), None),
        medium=_text(args.get("medium"), DEFAULT_MEDIUM),
        estimated_year=_text(year, None) if not isinstance(year, bool) else None,
        condition=condition,
        style=_labels(args.get("style")),
        themes=_labels(args.get("themes")),
        colors=_labels(args.get("colors")),
        suggested_price=coerce_price(args.get("suggestedPrice")),
        description=_text(args.get("description"), DEFAULT_DESCRIPTION),
        confidence=confidence,
    )
