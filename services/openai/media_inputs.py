"""Utilities to build input payloads for the Responses API."""

from typing import Any, Dict, List


def to_image_data_url(image_b64: str, mime_type: str = "image/jpeg") -> str:
    """Wrap base64 image data in a data URL suitable for vision input."""
    if not image_b64:
        raise ValueError("Image data is required for analysis.")
    return f"data:{mime_type};base64,{image_b64}"


def text_message(role: str, text: str) -> Dict[str, Any]:
    return {"type": "message", "role": role, "content": [{"type": "input_text", "text": text}]}


def build_text_inputs(system_prompt: str, user_prompt: str) -> List[Dict[str, Any]]:
    """Build a system + user text conversation."""
    return [text_message("system", system_prompt), text_message("user", user_prompt)]


def build_image_inputs(system_prompt: str, user_prompt: str, image_b64: str) -> List[Dict[str, Any]]:
    """Build the Responses API input array with the image as its own user message."""
    inputs = build_text_inputs(system_prompt, user_prompt)
    inputs.append(
        {
            "type": "message",
            "role": "user",
            "content": [{"type": "input_image", "image_url": to_image_data_url(image_b64)}],
        }
    )
    return inputs
