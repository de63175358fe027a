"""
Lesson building for plan items.

A lesson is canonical per (passage, translation): the first plan item that
needs a passage pays for generation and every later item is mapped onto
the same lesson.
"""

from __future__ import annotations

import logging
import secrets
import uuid
from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.orm import Session

from dailybread.db import models
from dailybread.db.repositories import lessons as lessons_repo
from dailybread.services.audio_generator import AudioGenerationError, AudioGenerator, get_audio_generator
from dailybread.services.elevenlabs_client import TextToSpeechError
from dailybread.services.lesson_generator import LessonContentInput, LessonGenerator, get_lesson_generator
from dailybread.services.passage_adapter import ESVAdapter, PassageError, get_passage_adapter
from dailybread.services.story_compiler import StoryCompiler, get_story_compiler
from dailybread.utils.feature_flags import audio_generation_enabled
from dailybread.utils.urls import build_quiz_path

logger = logging.getLogger(__name__)

MESSAGE_ALREADY_BUILT = "Lesson already built"
MESSAGE_REUSED = "Lesson built (reused existing)"
MESSAGE_WITH_AUDIO = "Lesson built with audio"
MESSAGE_WITHOUT_AUDIO = "Lesson built without audio"


@dataclass
class BuildResult:
    lesson: models.Lesson
    was_reused: bool
    message: str


def generate_share_slug() -> str:
    return secrets.token_hex(16)


def passage_query(item: models.PlanItem) -> str:
    """The reference string sent to the passage API for ``item``."""
    refs = [r.strip() for r in (item.references_text or []) if r and r.strip()]
    if not refs:
        raise PassageError(f"Plan item {item.id} has no references")
    return "; ".join(refs)


class LessonBuilder:
    def __init__(
        self,
        *,
        passage_adapter: Optional[ESVAdapter] = None,
        lesson_generator: Optional[LessonGenerator] = None,
        story_compiler: Optional[StoryCompiler] = None,
        audio_generator_factory: Optional[Callable[[], AudioGenerator]] = None,
    ):
        self._passage_adapter = passage_adapter
        self._lesson_generator = lesson_generator
        self.story_compiler = story_compiler or get_story_compiler()
        self.audio_generator_factory = audio_generator_factory or get_audio_generator

    def _adapter(self, translation: str) -> ESVAdapter:
        return self._passage_adapter or get_passage_adapter(translation)

    def _generator(self) -> LessonGenerator:
        return self._lesson_generator or get_lesson_generator()

    def build_for_item(self, db: Session, item: models.PlanItem) -> BuildResult:
        mapping = lessons_repo.get_mapping_for_item(db, item.id)
        if mapping is not None:
            return BuildResult(mapping.lesson, True, MESSAGE_ALREADY_BUILT)

        translation = item.translation or "ESV"
        passage = self._adapter(translation).get_passage_text(passage_query(item), translation)

        existing = lessons_repo.find_canonical_lesson(db, passage.canonical, translation)
        if existing is not None:
            lessons_repo.map_item_to_lesson(db, item, existing)
            logger.info("lesson_reused: item=%s lesson=%s canonical=%s", item.id, existing.id, passage.canonical)
            return BuildResult(existing, True, MESSAGE_REUSED)

        plan = item.plan
        content = self._generator().generate_lesson_content(LessonContentInput(
            translation=translation,
            references=list(item.references_text or []),
            passage_text=passage.text,
            plan_theme=plan.theme if plan is not None else None,
        )).to_dict()

        lesson_id = uuid.uuid4()
        share_slug = generate_share_slug()
        story = self.story_compiler.compile(
            content,
            title=plan.title if plan is not None else passage.canonical,
            reference=passage.canonical,
            translation=translation,
            quiz_url=build_quiz_path(share_slug),
            passage_text=passage.text,
        )
        self.story_compiler.validate(story)

        audio_manifest = self._generate_audio(lesson_id, story)

        try:
            lesson = lessons_repo.create_lesson(
                db,
                lesson_id=lesson_id,
                passage_canonical=passage.canonical,
                passage_text=passage.text,
                translation=translation,
                content=content,
                story_manifest=story,
                audio_manifest=audio_manifest,
                share_slug=share_slug,
                commit=False,
            )
            lessons_repo.map_item_to_lesson(db, item, lesson, commit=False)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(lesson)

        logger.info("lesson_built: item=%s lesson=%s audio=%s", item.id, lesson.id, audio_manifest is not None)
        return BuildResult(lesson, False, MESSAGE_WITH_AUDIO if audio_manifest else MESSAGE_WITHOUT_AUDIO)

    def _generate_audio(self, lesson_id: uuid.UUID, story: dict) -> Optional[dict]:
        if not audio_generation_enabled():
            logger.warning("audio_skipped: lesson=%s reason=disabled", lesson_id)
            return None
        try:
            return self.audio_generator_factory().generate_audio_for_lesson(str(lesson_id), story)
        except (AudioGenerationError, TextToSpeechError) as exc:
            logger.warning("audio_skipped: lesson=%s reason=%s", lesson_id, exc)
            return None


_lesson_builder: Optional[LessonBuilder] = None


def get_lesson_builder() -> LessonBuilder:
    global _lesson_builder
    if _lesson_builder is None:
        _lesson_builder = LessonBuilder()
    return _lesson_builder


def reset_lesson_builder_for_tests() -> None:
    global _lesson_builder
    _lesson_builder = None


def build_lesson_for_item(db: Session, item: models.PlanItem, builder: Optional[LessonBuilder] = None) -> BuildResult:
    return (builder or get_lesson_builder()).build_for_item(db, item)
