"""Artwork appraisal service using OpenAI's Responses API.

`ArtworkAnalyzer` wraps an injected `AsyncOpenAI` client and exposes the
three model calls the catalog needs: full image analysis, description
regeneration and standalone price suggestion. Field-level gaps in the model
output are filled with defaults; transport failures and responses with no
usable JSON are raised as `AnalysisFailedError` with a structured kind.
"""

import asyncio
import logging
import os
import time
from typing import Any, Dict, List, Optional, Sequence

import openai
from openai import AsyncOpenAI

from models.analysis_result import AnalysisErrorKind, AnalysisResult
from models.errors import AnalysisFailedError
from services.openai.artwork_prompts import (
    build_description_prompts,
    build_price_prompts,
    build_system_prompt,
    build_user_prompt,
)
from services.openai.artwork_schema import (
    ANALYSIS_FUNCTION,
    ANALYSIS_FUNCTION_NAME,
    PRICE_FUNCTION,
    PRICE_FUNCTION_NAME,
)
from services.openai.media_inputs import build_image_inputs, build_text_inputs
from services.openai.response_parser import (
    coerce_price,
    extract_json_object,
    extract_text,
    extract_usage,
    find_function_arguments,
    map_analysis,
)

LOGGER = logging.getLogger(__name__)
DEFAULT_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o")
ANALYSIS_TIMEOUT_SECONDS = float(os.getenv("ANALYSIS_TIMEOUT_SECONDS", "90"))
FALLBACK_DESCRIPTION = (
    "A captivating artwork that demonstrates exceptional artistic skill and creative vision."
)


def classify_error(exc: BaseException) -> AnalysisFailedError:
    """Map an exception from the OpenAI client onto an `AnalysisFailedError`."""
    if isinstance(exc, AnalysisFailedError):
        return exc
    if isinstance(exc, (asyncio.TimeoutError, openai.APITimeoutError)):
        kind = AnalysisErrorKind.TIMEOUT
    elif isinstance(exc, openai.RateLimitError):
        if getattr(exc, "code", None) == "insufficient_quota":
            kind = AnalysisErrorKind.QUOTA_EXCEEDED
        else:
            kind = AnalysisErrorKind.RATE_LIMITED
    elif isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        kind = AnalysisErrorKind.AUTH_FAILED
    elif isinstance(exc, openai.APIConnectionError):
        kind = AnalysisErrorKind.CONNECTION
    else:
        kind = AnalysisErrorKind.UNKNOWN
    reason = str(exc) or exc.__class__.__name__
    return AnalysisFailedError(kind, reason, cause=exc)


class ArtworkAnalyzer:
    """Analyze artwork images and generate listing copy and prices."""

    def __init__(
        self,
        client: AsyncOpenAI,
        *,
        model: str = DEFAULT_MODEL,
        timeout_seconds: float = ANALYSIS_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize the analyzer with an OpenAI async client."""
        if client is None:
            raise ValueError("OpenAI client must be provided.")
        self.client = client
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.system_prompt = build_system_prompt()

    async def analyze_image(self, image_b64: str, existing_description: Optional[str] = None) -> AnalysisResult:
        """Analyze a base64 JPEG and return the structured result.

        Args:
            image_b64: Base64-encoded JPEG bytes.
            existing_description: Optional owner-provided description used as context.

        Returns:
            An `AnalysisResult` with every field populated or defaulted.

        Raises:
            AnalysisFailedError: On transport failure or when no JSON object is returned.
        """
        inputs = build_image_inputs(self.system_prompt, build_user_prompt(existing_description), image_b64)
        response = await self._create_response(
            "analysis",
            input=inputs,
            tools=[ANALYSIS_FUNCTION],
            tool_choice={"type": "function", "name": ANALYSIS_FUNCTION_NAME},
        )
        args = self._structured_output(response, ANALYSIS_FUNCTION_NAME)
        result = map_analysis(args)
        LOGGER.info("Artwork analysed as %r (confidence %.2f)", result.title, result.confidence)
        return result

    async def regenerate_description(
        self,
        title: str,
        medium: Optional[str] = None,
        style: Optional[Sequence[str]] = None,
        themes: Optional[Sequence[str]] = None,
        colors: Optional[Sequence[str]] = None,
    ) -> str:
        """Write fresh listing prose from existing metadata."""
        system, user = build_description_prompts(title, medium, style, themes, colors)
        response = await self._create_response("description", input=build_text_inputs(system, user))
        text = extract_text(response).strip()
        return text or FALLBACK_DESCRIPTION

    async def suggest_price(
        self,
        medium: Optional[str] = None,
        style: Optional[Sequence[str]] = None,
        dimensions: Optional[str] = None,
        artist: Optional[str] = None,
        condition: Optional[str] = None,
    ) -> float:
        """Return a price estimate in whole currency units."""
        system, user = build_price_prompts(medium, style, dimensions, artist, condition)
        response = await self._create_response(
            "price",
            input=build_text_inputs(system, user),
            tools=[PRICE_FUNCTION],
            tool_choice={"type": "function", "name": PRICE_FUNCTION_NAME},
        )
        args = self._structured_output(response, PRICE_FUNCTION_NAME)
        return coerce_price(args.get("price"))

    async def _create_response(self, purpose: str, **kwargs: Any) -> Any:
        """Send one request, bounded by `timeout_seconds`."""
        start = time.time()
        try:
            response = await asyncio.wait_for(
                self.client.responses.create(model=self.model, **kwargs),
                timeout=self.timeout_seconds,
            )
        except Exception as exc:
            error = classify_error(exc)
            LOGGER.error("OpenAI %s request failed (%s): %s", purpose, error.kind.value, exc)
            raise error from exc

        usage = extract_usage(response)
        LOGGER.info(
            "OpenAI %s latency %.3fs, tokens in=%s out=%s",
            purpose,
            time.time() - start,
            usage["input_tokens"],
            usage["output_tokens"],
        )
        return response

    @staticmethod
    def _structured_output(response: Any, tool_name: str) -> Dict[str, Any]:
        """Return the tool arguments, falling back to JSON embedded in output text."""
        try:
            args = find_function_arguments(response, tool_name=tool_name)
        except ValueError as exc:
            LOGGER.warning("Unreadable %s arguments: %s", tool_name, exc)
            args = None
        if args is None:
            args = extract_json_object(extract_text(response))
        if args is None:
            LOGGER.error("No JSON object in OpenAI response: %r", response)
            raise AnalysisFailedError(AnalysisErrorKind.PARSE, "Model response contained no JSON object.")
        return args


def split_tags(tags: List[str]) -> Dict[str, List[str]]:
    """Split stored tags back into style / theme / color groups.

    Used when the stored analysis groups no longer match the tags. Keyword
    heuristics: labels ending in "ism" or naming a style or movement are
    styles, labels naming a common color are colors, the rest are themes.
    """
    colors_words = (
        "red", "blue", "green", "yellow", "purple", "orange", "pink",
        "brown", "black", "white", "gold", "silver", "gray", "grey",
    )
    groups: Dict[str, List[str]] = {"style": [], "themes": [], "colors": []}
    for tag in tags:
        lowered = tag.lower()
        if lowered.endswith("ism") or "style" in lowered or "movement" in lowered:
            groups["style"].append(tag)
        elif any(color in lowered for color in colors_words):
            groups["colors"].append(tag)
        else:
            groups["themes"].append(tag)
    return groups
