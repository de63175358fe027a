"""
Lesson content generation.

Turns a passage into the lesson document shown to readers: a short intro,
background context, the main message, one next step, takeaways,
reflection prompts and a multiple-choice quiz. The model is asked for
structured JSON and the result is validated before anything is stored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from dailybread.services.llm import GeminiJSONClient, LLMError, get_llm_client

logger = logging.getLogger(__name__)

DEFAULT_THEME = "General Bible Study"

SYSTEM_PROMPT = """You generate lesson content for Bible study plans. Be concise, accurate, and pastoral without being preachy. Use friendly, conversational, encouraging, practical language. Never alter the meaning of the text.

Your role is to help readers:
1. Preview what they're about to read
2. Understand the context BEFORE reading (historical and narrative background)
3. Grasp the main message with practical application
4. Take one actionable step
5. Remember key insights and reflect personally
6. Test their understanding

Keep content scannable and mobile-friendly. Avoid long paragraphs - prefer 2-3 sentences max per paragraph.

You MUST generate between 3 and 5 quiz questions (no fewer, no more).

Always be accurate to the source text. Never invent verses or misrepresent scripture."""

USER_PROMPT_TEMPLATE = """Generate lesson content for the following Bible passage:

**Translation:** {translation}
**References:** {references}
**Plan Theme:** {theme}

**Passage Text:**
{passage_text}

Field guidance:
- intro: 2-3 sentences previewing what the reader is about to study
- context: 3-5 sentences combining historical background and how the passage connects to the broader biblical narrative
- body: 1-2 short paragraphs (2-3 sentences each) explaining the main message with practical application; separate paragraphs with a blank line
- conclusion: 2-3 sentences with a single, concrete actionable step
- key_takeaways: 3-5 concise bullet points
- reflection_prompts: 2-3 open-ended personal questions
- quiz: 3-5 questions, each with exactly 4 full-text choices

Quiz rules:
- The "answer" field must be the EXACT TEXT of one of the choices, never a letter
- Include specific verse references in explanations
- Test understanding, not just recall"""

LESSON_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "intro": {"type": "string"},
        "context": {"type": "string"},
        "body": {"type": "string"},
        "conclusion": {"type": "string"},
        "key_takeaways": {"type": "array", "items": {"type": "string"}},
        "reflection_prompts": {"type": "array", "items": {"type": "string"}},
        "quiz": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "q": {"type": "string"},
                    "choices": {"type": "array", "items": {"type": "string"}},
                    "answer": {"type": "string"},
                    "explanation": {"type": "string"},
                },
                "required": ["q", "choices", "answer", "explanation"],
            },
        },
    },
    "required": [
        "intro",
        "context",
        "body",
        "conclusion",
        "key_takeaways",
        "reflection_prompts",
        "quiz",
    ],
}

REQUIRED_FIELDS = LESSON_RESPONSE_SCHEMA["required"]
_LETTER_ANSWERS = {"A": 0, "B": 1, "C": 2, "D": 3}


class LessonGenerationError(Exception):
    pass


@dataclass
class LessonContentInput:
    translation: str
    references: List[str]
    passage_text: str
    plan_theme: Optional[str] = None
    audience_notes: Optional[str] = None


@dataclass
class LessonContentOutput:
    intro: str
    context: Any
    body: str
    conclusion: str
    key_takeaways: List[str]
    reflection_prompts: List[str]
    quiz: List[Dict[str, Any]]
    discussion_questions: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LessonContentOutput":
        return cls(
            intro=data["intro"],
            context=data["context"],
            body=data["body"],
            conclusion=data["conclusion"],
            key_takeaways=list(data["key_takeaways"]),
            reflection_prompts=list(data["reflection_prompts"]),
            quiz=list(data["quiz"]),
            discussion_questions=list(data.get("discussion_questions") or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "intro": self.intro,
            "context": self.context,
            "body": self.body,
            "conclusion": self.conclusion,
            "key_takeaways": self.key_takeaways,
            "reflection_prompts": self.reflection_prompts,
            "quiz": self.quiz,
        }
        if self.discussion_questions:
            data["discussion_questions"] = self.discussion_questions
        return data


def build_user_prompt(content_input: LessonContentInput) -> str:
    prompt = USER_PROMPT_TEMPLATE.format(
        translation=content_input.translation,
        references=", ".join(content_input.references),
        theme=content_input.plan_theme or DEFAULT_THEME,
        passage_text=content_input.passage_text,
    )
    if content_input.audience_notes:
        prompt += f"\n\n**Audience Notes:** {content_input.audience_notes}"
    return prompt


def normalize_quiz_answers(quiz: List[Dict[str, Any]]) -> None:
    """Replace single-letter answers (A-D) with the matching choice text in place."""
    for question in quiz or []:
        if not isinstance(question, dict):
            continue
        answer = question.get("answer")
        choices = question.get("choices")
        if not isinstance(choices, list):
            continue
        if isinstance(answer, str) and len(answer) == 1 and answer.upper() in _LETTER_ANSWERS:
            index = _LETTER_ANSWERS[answer.upper()]
            if index < len(choices):
                question["answer"] = choices[index]
                logger.info("lesson_quiz_answer_fixed: %s -> %s", answer, choices[index])


def validate_lesson_content(content: Dict[str, Any]) -> None:
    """Raise LessonGenerationError unless ``content`` is a complete lesson."""
    if not isinstance(content, dict):
        raise LessonGenerationError("Lesson content must be a JSON object")
    for name in REQUIRED_FIELDS:
        if name not in content:
            raise LessonGenerationError(f"Missing required field in lesson content: {name}")
    for name in ("key_takeaways", "reflection_prompts", "quiz"):
        if not isinstance(content[name], list):
            raise LessonGenerationError(f"{name} must be a list")

    if not isinstance(content["context"], str) or not content["context"]:
        raise LessonGenerationError(
            "Context must be a non-empty string combining historical and narrative background"
        )
    if not 3 <= len(content["key_takeaways"]) <= 5:
        raise LessonGenerationError("key_takeaways must have 3-5 items")
    if not 2 <= len(content["reflection_prompts"]) <= 3:
        raise LessonGenerationError("reflection_prompts must have 2-3 items")
    if not 3 <= len(content["quiz"]) <= 5:
        raise LessonGenerationError("quiz must have 3-5 questions")

    for question in content["quiz"]:
        if not isinstance(question, dict):
            raise LessonGenerationError("Each quiz question must be an object")
        if not all(question.get(k) for k in ("q", "choices", "answer", "explanation")):
            raise LessonGenerationError("Each quiz question must have q, choices, answer, and explanation")
        if not isinstance(question["choices"], list) or len(question["choices"]) != 4:
            raise LessonGenerationError("Each quiz question must have exactly 4 choices")
        if question["answer"] not in question["choices"]:
            raise LessonGenerationError("Quiz answer must be one of the choices")


class LessonGenerator:
    def __init__(self, client: Optional[GeminiJSONClient] = None):
        self.client = client or get_llm_client()

    def generate_lesson_content(self, content_input: LessonContentInput) -> LessonContentOutput:
        try:
            parsed = self.client.generate_json(
                build_user_prompt(content_input),
                LESSON_RESPONSE_SCHEMA,
                system_instruction=SYSTEM_PROMPT,
                temperature=0.7,
                max_output_tokens=2500,
            )
            if not isinstance(parsed, dict):
                raise LessonGenerationError("Lesson content must be a JSON object")
            quiz = parsed.get("quiz")
            logger.info("lesson_generated: quiz_questions=%d", len(quiz) if isinstance(quiz, list) else 0)
            if isinstance(quiz, list):
                normalize_quiz_answers(quiz)
            validate_lesson_content(parsed)
            return LessonContentOutput.from_dict(parsed)
        except (LLMError, LessonGenerationError) as exc:
            raise LessonGenerationError(f"Failed to generate lesson content: {exc}") from exc


_lesson_generator: Optional[LessonGenerator] = None


def get_lesson_generator() -> LessonGenerator:
    global _lesson_generator
    if _lesson_generator is None:
        _lesson_generator = LessonGenerator()
    return _lesson_generator


def reset_lesson_generator_for_tests() -> None:
    global _lesson_generator
    _lesson_generator = None
