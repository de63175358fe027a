"""AI theme plans: turn a theme into a titled list of passages."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from dailybread.services.llm import GeminiJSONClient, LLMError, get_llm_client

logger = logging.getLogger(__name__)

DEPTH_LEVELS = ("simple", "moderate", "deep")
MIN_THEME_LENGTH = 10
MAX_PASSAGES = 30

# depth -> (min, max) passage count requested from the model
_DEPTH_RANGES = {
    "simple": (5, 7),
    "moderate": (7, 10),
    "deep": (10, 14),
}

_DEPTH_GUIDANCE = {
    "simple": "Choose short, well-known passages suitable for new readers.",
    "moderate": "Mix familiar passages with a few less-known ones; moderate length.",
    "deep": "Include longer passages and cross-testament connections for mature readers.",
}

PLAN_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "description": {"type": "string"},
        "passages": {"type": "array", "items": {"type": "string"}},
        "reasoning": {"type": "string"},
        "category": {"type": "string"},
    },
    "required": ["title", "description", "passages", "reasoning", "category"],
}


class PlanGenerationError(Exception):
    pass


def _build_prompt(theme: str, book_context: Optional[str], depth_level: str) -> str:
    low, high = _DEPTH_RANGES[depth_level]
    lines = [
        "Design a Bible reading plan for the following theme.",
        "",
        f"**Theme:** {theme}",
    ]
    if book_context:
        lines.append(f"**Focus on:** {book_context}")
    lines += [
        f"**Depth:** {depth_level}. {_DEPTH_GUIDANCE[depth_level]}",
        "",
        f"Return between {low} and {high} passages in reading order.",
        "Each passage must be a single ESV-style reference such as \"John 3:1-21\" or \"Psalm 23\".",
        "Give the plan a short inviting title, a 1-2 sentence description, a single-word category,",
        "and explain in 2-3 sentences why these passages were chosen (reasoning).",
    ]
    return "\n".join(lines)


def _clean_passages(passages: List[Any]) -> List[str]:
    seen = set()
    cleaned: List[str] = []
    for entry in passages or []:
        if not isinstance(entry, str):
            continue
        ref = entry.strip()
        key = ref.lower()
        if not ref or key in seen:
            continue
        seen.add(key)
        cleaned.append(ref)
    return cleaned[:MAX_PASSAGES]


def generate_ai_plan(
    theme: str,
    book_context: Optional[str] = None,
    depth_level: str = "moderate",
    client: Optional[GeminiJSONClient] = None,
) -> Dict[str, Any]:
    """Return ``{title, description, passages, reasoning, category}`` for a theme."""
    if depth_level not in DEPTH_LEVELS:
        raise PlanGenerationError(f"Invalid depth level: {depth_level}")
    client = client or get_llm_client()
    try:
        parsed = client.generate_json(
            _build_prompt(theme, book_context, depth_level),
            PLAN_RESPONSE_SCHEMA,
            temperature=0.7,
            max_output_tokens=1500,
        )
    except LLMError as exc:
        raise PlanGenerationError(f"Failed to generate plan: {exc}") from exc

    passages = _clean_passages(parsed.get("passages"))
    if not passages:
        raise PlanGenerationError("Failed to generate plan: no passages returned")
    title = (parsed.get("title") or "").strip() or theme[:80]
    logger.info("ai_plan_generated: depth=%s passages=%d", depth_level, len(passages))
    return {
        "title": title,
        "description": (parsed.get("description") or "").strip(),
        "passages": passages,
        "reasoning": (parsed.get("reasoning") or "").strip(),
        "category": (parsed.get("category") or "").strip() or None,
    }
