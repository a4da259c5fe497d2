"""Vision assessment — asks a multimodal model whether an implementation matches its design.

Every failure (missing credentials, unreadable images, API errors, malformed
output) comes back as a failing VisionResult rather than an exception.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import anthropic
from pydantic import ValidationError

from design_compare.ai.client import AIClient, encode_image
from design_compare.ai.prompts.vision import DESIGN_LABEL, IMPLEMENTATION_LABEL, VISION_PROMPT
from design_compare.models.config import DEFAULT_VISION_MODEL
from design_compare.models.vision import VisionResult

logger = logging.getLogger(__name__)

PARSE_FAILURE_SUMMARY = "Failed to parse vision model response as JSON"


async def compare_with_vision(
    design_path: str | Path,
    storybook_path: str | Path,
    model: str = DEFAULT_VISION_MODEL,
    client: Optional[AIClient] = None,
) -> VisionResult:
    """Compare two screenshots with a vision model. Never raises."""
    try:
        design_data = encode_image(design_path)
        storybook_data = encode_image(storybook_path)
    except OSError as e:
        logger.error("Vision comparison could not read screenshots: %s", e)
        return VisionResult.failure(f"Vision comparison failed: {e}")

    try:
        if client is None:
            client = AIClient(model=model)
        text = await client.complete_with_images(
            VISION_PROMPT,
            [(DESIGN_LABEL, design_data), (IMPLEMENTATION_LABEL, storybook_data)],
        )
    except EnvironmentError as e:
        logger.warning("Vision comparison unavailable: %s", e)
        return VisionResult.failure(f"Vision comparison failed: {e}")
    except anthropic.AnthropicError as e:
        logger.error("Vision API call failed: %s", e)
        return VisionResult.failure(f"Vision comparison failed: {e}")
    except Exception as e:
        logger.exception("Unexpected error during vision comparison")
        return VisionResult.failure(f"Vision comparison failed: {e}")

    if text is None:
        logger.warning("Vision model returned no text block")
        return VisionResult.failure("No text response from vision model")

    return parse_vision_response(text)


def parse_vision_response(text: str) -> VisionResult:
    """Validate model output against the VisionResult schema.

    Any JSON or schema violation yields the parse-failure sentinel.
    """
    try:
        data = AIClient.parse_json_response(text)
        result = VisionResult.model_validate(data)
    except (ValueError, ValidationError) as e:
        logger.warning("Vision response rejected: %s", e)
        return VisionResult.failure(PARSE_FAILURE_SUMMARY)

    blocking = result.blocking_issues
    if result.passed and blocking:
        logger.warning(
            "Vision model reported pass with %d major/critical issue(s); treating as fail",
            len(blocking),
        )
        result = result.model_copy(update={"passed": False})

    logger.info(
        "Vision verdict: %s (confidence %.0f%%, %d issue(s))",
        "PASS" if result.passed else "FAIL", result.confidence * 100, len(result.issues),
    )
    return result
