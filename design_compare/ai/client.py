"""Claude API client wrapper for vision assessments."""

from __future__ import annotations

import base64
import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Optional

import anthropic

from design_compare.models.config import DEFAULT_VISION_MODEL

logger = logging.getLogger(__name__)

# Configurable debug directory — set by the CLI at startup
_debug_dir: Path | None = None


def set_debug_dir(path: Path) -> None:
    """Set the directory for dumping AI exchanges."""
    global _debug_dir
    _debug_dir = path
    _debug_dir.mkdir(parents=True, exist_ok=True)


def _get_debug_dir() -> Path:
    """Get or create the debug directory."""
    global _debug_dir
    if _debug_dir is None:
        _debug_dir = Path(".design-compare") / "debug"
    _debug_dir.mkdir(parents=True, exist_ok=True)
    return _debug_dir


def encode_image(path: str | Path) -> str:
    """Read an image file and return its base64 payload."""
    return base64.b64encode(Path(path).read_bytes()).decode("ascii")


class AIClient:
    """Async wrapper around the Anthropic Messages API for image comparisons."""

    def __init__(self, model: str = DEFAULT_VISION_MODEL, max_tokens: int = 1024):
        api_key = os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            raise EnvironmentError(
                "ANTHROPIC_API_KEY environment variable is not set. "
                "Set it to enable vision comparison."
            )
        # No explicit timeout: the SDK transport default applies.
        self.client = anthropic.AsyncAnthropic(api_key=api_key)
        self.model = model
        self.max_tokens = max_tokens
        self._call_count = 0

    @property
    def call_count(self) -> int:
        return self._call_count

    async def complete_with_images(
        self,
        prompt: str,
        images: list[tuple[str, str]],
        media_type: str = "image/png",
        max_tokens: Optional[int] = None,
    ) -> str | None:
        """Send labelled images followed by ``prompt`` in a single user turn.

        ``images`` is a list of (label, base64 data) pairs. Returns the text of
        the first text block in the response, or None when there is none.
        """
        self._call_count += 1
        tokens = max_tokens or self.max_tokens
        logger.info(
            "Calling AI with %d image(s) (call #%d, model=%s, max_tokens=%d)...",
            len(images), self._call_count, self.model, tokens,
        )

        content: list[dict[str, Any]] = []
        for label, data in images:
            content.append({"type": "text", "text": label})
            content.append({
                "type": "image",
                "source": {"type": "base64", "media_type": media_type, "data": data},
            })
        content.append({"type": "text", "text": prompt})
        logged_message = "\n".join(f"[IMAGE ATTACHED] {label}" for label, _ in images)
        logged_message += f"\n{prompt}"

        try:
            call_start = time.time()
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=tokens,
                messages=[{"role": "user", "content": content}],
            )
        except anthropic.APIError as e:
            logger.error("Claude API error (with images): %s", e)
            self._save_exchange_log(self._call_count, logged_message, "", error=str(e))
            raise

        call_duration = time.time() - call_start
        text = next(
            (block.text for block in response.content if getattr(block, "type", None) == "text"),
            None,
        )
        logger.info("AI image response received in %.1fs (%d chars)",
                    call_duration, len(text or ""))
        if getattr(response, "stop_reason", None) == "max_tokens":
            logger.warning("AI response was truncated at max_tokens=%d", tokens)

        self._save_exchange_log(self._call_count, logged_message, text or "", error=None)
        return text

    # ------------------------------------------------------------------
    # JSON parsing
    # ------------------------------------------------------------------

    @staticmethod
    def parse_json_response(text: str) -> dict[str, Any]:
        """Parse a model response as a strict JSON object.

        Markdown fences or prose around the object are not tolerated. Raises
        ValueError otherwise.
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.error("Failed to parse AI response as JSON: %s", e)
            raise ValueError(f"AI returned invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"AI returned JSON {type(data).__name__}, expected an object")
        return data

    # ------------------------------------------------------------------
    # Debug logging
    # ------------------------------------------------------------------

    @staticmethod
    def _save_exchange_log(
        call_number: int,
        user_message: str,
        response_text: str,
        error: str | None,
    ) -> None:
        """Save the AI exchange (prompt + response) to a log file."""
        try:
            debug_dir = _get_debug_dir()
            ts = time.strftime("%Y%m%d_%H%M%S")
            log_file = debug_dir / f"ai_call_{ts}_{call_number:03d}.log"

            with open(log_file, "w", encoding="utf-8") as f:
                f.write(f"=== AI CALL #{call_number} at {time.strftime('%Y-%m-%d %H:%M:%S')} ===\n\n")
                f.write(f"=== USER MESSAGE ({len(user_message)} chars) ===\n")
                f.write(user_message)
                f.write(f"\n\n=== RESPONSE ({len(response_text)} chars) ===\n")
                f.write(response_text if response_text else "(empty)")
                if error:
                    f.write(f"\n\n=== ERROR ===\n{error}\n")

            logger.debug("AI exchange logged to %s", log_file)
        except OSError as log_err:
            logger.debug("Failed to save AI exchange log: %s", log_err)
