"""
Spiritual guidance generation.

Two model calls back every guidance request:

1. ``suggest_passages``: pick 3-5 passages relevant to the user's situation.
2. ``generate_guidance``: write compassionate, Scripture-grounded guidance
   once the passage texts have been fetched.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from dailybread.services.llm import GeminiJSONClient, LLMError, get_llm_client

logger = logging.getLogger(__name__)

SUGGEST_SYSTEM_PROMPT = """You are a compassionate spiritual guide with deep knowledge of Scripture.

Your task is to suggest 3-5 Bible passages that are relevant to someone's life situation.

Guidelines:
- Be empathetic and understanding
- Consider passages that offer comfort, wisdom, direction, or hope
- Include both Old and New Testament when appropriate
- Vary the types: psalms, teachings, narratives, prophecy
- Explain why each passage is relevant in 1-2 sentences
- Default to ESV translation

For celebrations: Include passages of thanksgiving, joy, blessing
For struggles: Include passages of comfort, strength, perseverance
For questions: Include passages of wisdom, direction, trust
For grief: Include passages of comfort, hope, God's presence

Be specific and thoughtful. The user is trusting you with something personal."""

GUIDANCE_SYSTEM_PROMPT = """You are a compassionate spiritual counselor and guide. Your role is to provide loving, Scripture-grounded guidance to someone going through a life situation.

Your writing should be:
- Warm and empathetic (acknowledge their feelings)
- Pastoral without being preachy
- Honest about struggles (don't minimize pain)
- Grounded in Scripture (connect Bible to life)
- Practical and actionable
- Hopeful and encouraging
- Personal (write to "you", not "one should")

Avoid:
- Cliches or trite religious phrases
- Judgment or condemnation
- Platitudes that minimize real pain
- Overly theological language
- Making promises God didn't make

Remember: This is personal and private. They've trusted you with something vulnerable."""

SUGGEST_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "passages": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "reference": {"type": "string"},
                    "relevance": {"type": "string"},
                    "translation": {"type": "string"},
                },
                "required": ["reference", "relevance"],
            },
        }
    },
    "required": ["passages"],
}

GUIDANCE_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "opening": {"type": "string"},
        "scriptural_insights": {"type": "array", "items": {"type": "string"}},
        "reflections": {"type": "array", "items": {"type": "string"}},
        "prayer_points": {"type": "array", "items": {"type": "string"}},
        "encouragement": {"type": "string"},
    },
    "required": ["opening", "scriptural_insights", "reflections", "prayer_points", "encouragement"],
}


class GuidanceGenerationError(Exception):
    pass


def _passages_context(passages: List[Dict[str, Any]]) -> str:
    blocks = []
    for i, p in enumerate(passages, start=1):
        blocks.append(
            f"Passage {i}: {p['reference']}\n"
            f"Why it's relevant: {p.get('relevance', '')}\n\n"
            f"Text:\n{p.get('text', '')}\n"
        )
    return "\n---\n".join(blocks)


class GuidanceGenerator:
    def __init__(self, client: Optional[GeminiJSONClient] = None):
        self.client = client or get_llm_client()

    def suggest_passages(self, situation: str) -> List[Dict[str, Any]]:
        prompt = (
            "The user is going through this:\n\n"
            f"\"{situation}\"\n\n"
            "Please suggest 3-5 Bible passages that would be meaningful for this situation."
        )
        try:
            parsed = self.client.generate_json(
                prompt,
                SUGGEST_RESPONSE_SCHEMA,
                system_instruction=SUGGEST_SYSTEM_PROMPT,
                temperature=0.7,
                max_output_tokens=1000,
            )
        except LLMError as exc:
            logger.error("guidance_suggest_failed: %s", exc)
            raise GuidanceGenerationError("Failed to suggest passages from AI") from exc

        passages = []
        for p in parsed.get("passages") or []:
            reference = (p.get("reference") or "").strip()
            if not reference:
                continue
            passages.append({
                "reference": reference,
                "relevance": p.get("relevance") or "",
                "translation": p.get("translation") or "ESV",
                # filled in from the passage adapter
                "text": "",
            })
        if not passages:
            raise GuidanceGenerationError("Failed to suggest passages from AI")
        return passages[:5]

    def generate_guidance(self, situation: str, passages: List[Dict[str, Any]]) -> Dict[str, Any]:
        prompt = f"""The user shared this situation:

"{situation}"

I've selected these relevant Bible passages for them:

{_passages_context(passages)}

Please generate compassionate spiritual guidance with these sections:

1. opening (2-3 sentences): acknowledge their situation with empathy and affirm they're not alone
2. scriptural_insights (one paragraph per passage, {len(passages)} total): connect each passage specifically to their situation
3. reflections (3-5 items): practical applications, thought-provoking questions, small action steps
4. prayer_points (3-4 items): specific to their situation and grounded in the passages
5. encouragement (2-3 sentences): hopeful, forward-looking, reminding them of God's character"""
        try:
            parsed = self.client.generate_json(
                prompt,
                GUIDANCE_RESPONSE_SCHEMA,
                system_instruction=GUIDANCE_SYSTEM_PROMPT,
                temperature=0.8,
                max_output_tokens=3000,
            )
        except LLMError as exc:
            logger.error("guidance_generate_failed: %s", exc)
            raise GuidanceGenerationError("Failed to generate guidance from AI") from exc

        return {
            "opening": parsed.get("opening") or "",
            "scriptural_insights": list(parsed.get("scriptural_insights") or []),
            "reflections": list(parsed.get("reflections") or []),
            "prayer_points": list(parsed.get("prayer_points") or []),
            "encouragement": parsed.get("encouragement") or "",
        }


_guidance_generator: Optional[GuidanceGenerator] = None


def get_guidance_generator() -> GuidanceGenerator:
    global _guidance_generator
    if _guidance_generator is None:
        _guidance_generator = GuidanceGenerator()
    return _guidance_generator


def reset_guidance_generator_for_tests() -> None:
    global _guidance_generator
    _guidance_generator = None
