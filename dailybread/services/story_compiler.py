"""
Story manifest compilation.

Lessons are read as a sequence of tappable pages. ``compile`` lays the
generated lesson content out as those pages, and ``validate`` checks a
manifest before it is stored.
"""

from __future__ import annotations

import math
import re
from typing import Any, Dict, List, Optional

PAGE_TYPES = ("cover", "content", "passage", "takeaways", "cta")
PASSAGE_CHUNK_CHARS = 600

QUIZ_CTA_TEXT = "Ready to see how much you remember? Take a short quiz to reinforce what you've learned."

_VERSE_SPLIT = re.compile(r"(?=\[\d+\])")


class StoryValidationError(Exception):
    pass


def split_passage_text(text: str, max_chars: int = PASSAGE_CHUNK_CHARS) -> List[str]:
    """Split passage text into chunks at ``[n]`` verse markers.

    A chunk only exceeds ``max_chars`` when a single verse does.
    """
    if len(text) <= max_chars:
        return [text]

    chunks: List[str] = []
    current = ""
    for verse in _VERSE_SPLIT.split(text):
        if current and len(current + verse) > max_chars:
            chunks.append(current.strip())
            current = verse
        else:
            current += verse
    if current:
        chunks.append(current.strip())
    return chunks or [text]


def _content(page_type: str, **content: Any) -> Dict[str, Any]:
    return {"type": page_type, "content": content}


def _split_half(values: List[Any]) -> tuple:
    midpoint = math.ceil(len(values) / 2)
    return values[:midpoint], values[midpoint:]


class StoryCompiler:
    def compile(
        self,
        lesson_content: Dict[str, Any],
        *,
        title: str,
        reference: str,
        translation: str,
        quiz_url: str,
        passage_text: str,
    ) -> Dict[str, Any]:
        pages: List[Dict[str, Any]] = [
            _content("cover", title=title, text=reference),
            _content("content", title="What You're About to Read", text=lesson_content["intro"]),
        ]

        chunks = split_passage_text(passage_text)
        if len(chunks) == 1:
            pages.append(_content("passage", title=reference, text=chunks[0]))
        else:
            for i, chunk in enumerate(chunks, start=1):
                pages.append(_content("passage", title=f"{reference} ({i}/{len(chunks)})", text=chunk))

        pages.extend(self._context_pages(lesson_content.get("context")))

        body = lesson_content["body"]
        paragraphs = body.split("\n\n")
        if len(paragraphs) > 2:
            first, rest = _split_half(paragraphs)
            pages.append(_content("content", title="The Message", text="\n\n".join(first)))
            pages.append(_content("content", title="The Message (cont.)", text="\n\n".join(rest)))
        else:
            pages.append(_content("content", title="The Message", text=body))

        pages.append(_content("content", title="Your Next Step", text=lesson_content["conclusion"]))
        pages.append(_content("takeaways", title="Key Takeaways", bullets=list(lesson_content["key_takeaways"])))
        pages.append(_content("takeaways", title="Reflect on This", bullets=list(lesson_content["reflection_prompts"])))

        questions = list(lesson_content.get("discussion_questions") or [])
        if len(questions) > 3:
            first, rest = _split_half(questions)
            pages.append(_content("takeaways", title="Discussion Questions", bullets=first))
            pages.append(_content("takeaways", title="Discussion Questions (cont.)", bullets=rest))
        elif questions:
            pages.append(_content("takeaways", title="Discussion Questions", bullets=questions))

        pages.append(_content(
            "cta",
            title="Test Your Understanding",
            text=QUIZ_CTA_TEXT,
            cta={"text": "Start Quiz", "href": quiz_url},
        ))

        return {
            "pages": pages,
            "metadata": {"title": title, "reference": reference, "translation": translation},
        }

    @staticmethod
    def _context_pages(context: Optional[Any]) -> List[Dict[str, Any]]:
        if not context:
            return []
        if isinstance(context, str):
            return [_content("content", title="Before You Read", text=context)]
        # older lessons stored context as {historical, narrative}
        pages = []
        if context.get("historical"):
            pages.append(_content("content", title="Historical Context", text=context["historical"]))
        if context.get("narrative"):
            pages.append(_content("content", title="The Bigger Story", text=context["narrative"]))
        return pages

    def validate(self, manifest: Dict[str, Any]) -> bool:
        pages = manifest.get("pages") if manifest else None
        if not pages:
            raise StoryValidationError("Story manifest must have at least one page")

        metadata = manifest.get("metadata") or {}
        if not metadata.get("title") or not metadata.get("reference"):
            raise StoryValidationError("Story manifest must have metadata with title and reference")

        for page in pages:
            page_type = page.get("type")
            content = page.get("content")
            if not page_type or not content:
                raise StoryValidationError("Each page must have type and content")
            if page_type not in PAGE_TYPES:
                raise StoryValidationError(f"Unknown page type: {page_type}")
            if page_type == "cover" and not content.get("title"):
                raise StoryValidationError("Cover page must have title")
            if page_type in ("content", "passage") and not (content.get("title") and content.get("text")):
                raise StoryValidationError("Content/Passage page must have title and text")
            if page_type == "takeaways" and not (content.get("title") and content.get("bullets")):
                raise StoryValidationError("Takeaways page must have title and bullets")
            if page_type == "cta" and not (content.get("title") and content.get("cta")):
                raise StoryValidationError("CTA page must have title and cta")
        return True


_story_compiler: Optional[StoryCompiler] = None


def get_story_compiler() -> StoryCompiler:
    global _story_compiler
    if _story_compiler is None:
        _story_compiler = StoryCompiler()
    return _story_compiler
