"""Prompt builders for artwork appraisal calls."""

from typing import Optional, Sequence


def build_system_prompt() -> str:
    """Return the system prompt for image analysis."""
    return (
        "You are an expert art appraiser and cataloger. "
        "Analyze the artwork image and record your findings with the provided tool. "
        "Be professional and accurate in your assessment."
    )


def build_user_prompt(existing_description: Optional[str] = None) -> str:
    """Return the analysis instructions, optionally grounded in a prior description."""
    prompt = (
        "Analyze this artwork image and provide: a descriptive title; the artist if recognizable "
        "(null if unknown); the artistic medium (e.g. \"Oil on Canvas\", \"Acrylic\", \"Watercolor\"); "
        "the estimated year or decade if determinable (null otherwise); a condition assessment "
        "(Excellent, Good, Fair or Poor); arrays of art styles or movements, themes or subjects, and "
        "dominant colors; an estimated market value in USD as a whole number; a detailed professional "
        "description of 2-3 sentences; and your confidence in this analysis on a 0-1 scale."
    )
    if existing_description:
        prompt += f" The owner previously described the work as: {existing_description.strip()}"
    return prompt


def _join(values: Optional[Sequence[str]], fallback: str) -> str:
    return ", ".join(v for v in values or () if v) or fallback


def build_description_prompts(
    title: str,
    medium: Optional[str],
    style: Optional[Sequence[str]],
    themes: Optional[Sequence[str]],
    colors: Optional[Sequence[str]],
) -> tuple:
    """Return `(system, user)` prompts for description regeneration."""
    system = (
        "You are an expert art writer creating compelling descriptions for artwork listings. "
        "Write engaging, professional descriptions that would appeal to collectors and art enthusiasts."
    )
    user = (
        "Create a compelling artwork description for:\n"
        f"Title: {title}\n"
        f"Medium: {medium or 'Mixed Media'}\n"
        f"Style: {_join(style, 'Contemporary')}\n"
        f"Themes: {_join(themes, 'Abstract')}\n"
        f"Colors: {_join(colors, 'Various')}\n\n"
        "Write 2-3 sentences that would be compelling for potential buyers. Return only the description."
    )
    return system, user


def build_price_prompts(
    medium: Optional[str],
    style: Optional[Sequence[str]],
    dimensions: Optional[str],
    artist: Optional[str],
    condition: Optional[str],
) -> tuple:
    """Return `(system, user)` prompts for a standalone price estimate."""
    system = (
        "You are an art market expert. Provide realistic price estimates for artworks "
        "based on current market conditions."
    )
    user = (
        "Estimate the market value in USD for an artwork with these characteristics:\n"
        f"Medium: {medium or 'Mixed Media'}\n"
        f"Style: {_join(style, 'Contemporary')}\n"
        f"Dimensions: {dimensions or 'Medium size'}\n"
        f"Artist: {artist or 'Emerging/Unknown'}\n"
        f"Condition: {condition or 'Good'}"
    )
    return system, user
