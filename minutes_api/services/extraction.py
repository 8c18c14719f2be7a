from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

from ..errors import (
    ExtractionError,
    InvalidAIResponseShape,
    MalformedAIResponse,
)
from ..models.meeting import ExtractionResult

logger = logging.getLogger("minutes.extraction")

PROMPT_TEMPLATE = """
You are an AI assistant that extracts structured information from meeting notes.

Analyze the following meeting notes and extract:
1. A 2-3 sentence summary
2. Key decisions made (as an array)
3. Action items with task, owner (if mentioned), and deadline (if mentioned)

Return ONLY a valid JSON object with this exact structure:
{{
  "summary": "2-3 sentence summary here",
  "decisions": ["decision 1", "decision 2"],
  "actionItems": [
    {{
      "task": "task description",
      "owner": "person name or null if not specified",
      "due": "deadline or null if not specified"
    }}
  ]
}}

Meeting Notes:
{meeting_text}

Important: Return ONLY the JSON object, no additional text or formatting.
"""

_OPEN_FENCE = re.compile(r"^```[\w+-]*[ \t]*\r?\n?")
_CLOSE_FENCE = re.compile(r"\r?\n?```$")


def build_prompt(meeting_text: str) -> str:
    return PROMPT_TEMPLATE.format(meeting_text=meeting_text)


def strip_code_fence(text: str) -> str:
    """Remove a markdown code fence (```json ... ``` or ``` ... ```) around a reply."""
    cleaned = text.strip()
    if not cleaned.startswith("```"):
        return cleaned
    cleaned = _OPEN_FENCE.sub("", cleaned, count=1)
    cleaned = _CLOSE_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def _shape_problem(obj: Any) -> str | None:
    if not isinstance(obj, dict):
        return f"expected a JSON object, got {type(obj).__name__}"
    summary = obj.get("summary")
    if not isinstance(summary, str) or summary == "":
        return "'summary' must be a non-empty string"
    if not isinstance(obj.get("decisions"), list):
        return "'decisions' must be an array"
    if not isinstance(obj.get("actionItems"), list):
        return "'actionItems' must be an array"
    return None


def parse_ai_response(raw: str) -> ExtractionResult:
    """Strip fences, parse JSON and check the top-level shape.

    Field contents are trusted as returned; only types of the three top-level
    keys are checked, and the parsed object is returned as-is.
    """
    cleaned = strip_code_fence(raw)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise MalformedAIResponse(e) from e
    problem = _shape_problem(parsed)
    if problem:
        raise InvalidAIResponseShape(f"Invalid response structure from AI: {problem}")
    return parsed


class MeetingNotesProcessor:
    """Prompt the upstream model once and validate what comes back.

    `client` is anything with `generate(prompt: str) -> str`; the app wires in
    a `GeminiClient`, tests pass a stub.
    """

    def __init__(self, client: Any) -> None:
        self.client = client

    def extract(self, meeting_text: str, request_id: Optional[str] = None) -> ExtractionResult:
        log_extra = {"request_id": request_id}
        prompt = build_prompt(meeting_text)
        try:
            raw = self.client.generate(prompt)
            result = parse_ai_response(raw)
        except ExtractionError as e:
            logger.warning(f"extraction failed: {e}", extra=log_extra)
            raise
        except Exception as e:
            logger.warning(f"extraction failed with unexpected error: {e!r}", extra=log_extra)
            raise ExtractionError(e) from e
        logger.info(
            f"extracted decisions={len(result['decisions'])} action_items={len(result['actionItems'])}",
            extra=log_extra,
        )
        return result
