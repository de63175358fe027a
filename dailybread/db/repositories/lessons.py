"""
Lesson repository functions.

Lessons are canonical per (passage_canonical, translation); plan items
reach them through ``plan_item_lessons``.
"""
from __future__ import annotations

import re
import uuid
from typing import Any, Dict, Iterable, List, Optional, Set

from sqlalchemy.orm import Session

from dailybread.db import models
from dailybread.db.models import now_utc

_DASHES = re.compile(r"[\u2010-\u2015\u2212]")
_SPACES = re.compile(r"\s+")


def normalize_reference(reference: Optional[str]) -> str:
    """Comparable form of a scripture reference (dashes unified, case and spaces ignored)."""
    if not reference:
        return ""
    return _SPACES.sub("", _DASHES.sub("-", reference)).lower()


def get_lesson(db: Session, lesson_id: uuid.UUID) -> Optional[models.Lesson]:
    return db.query(models.Lesson).filter(models.Lesson.id == lesson_id).first()


def get_lesson_by_slug(db: Session, share_slug: str) -> Optional[models.Lesson]:
    return db.query(models.Lesson).filter(models.Lesson.share_slug == share_slug).first()


def find_canonical_lesson(db: Session, passage_canonical: str, translation: str) -> Optional[models.Lesson]:
    return (
        db.query(models.Lesson)
        .filter(
            models.Lesson.passage_canonical == passage_canonical,
            models.Lesson.translation == translation,
        )
        .order_by(models.Lesson.created_at.asc())
        .first()
    )


def find_lesson_by_normalized_reference(db: Session, reference: str, translation: str = "ESV") -> Optional[models.Lesson]:
    target = normalize_reference(reference)
    if not target:
        return None
    candidates = db.query(models.Lesson).filter(models.Lesson.translation == translation).all()
    for lesson in candidates:
        if normalize_reference(lesson.passage_canonical) == target:
            return lesson
    return None


def create_lesson(
    db: Session,
    *,
    lesson_id: Optional[uuid.UUID] = None,
    passage_canonical: str,
    passage_text: str,
    translation: str,
    content: Dict[str, Any],
    story_manifest: Dict[str, Any],
    audio_manifest: Optional[Dict[str, Any]],
    share_slug: str,
    commit: bool = True,
) -> models.Lesson:
    lesson = models.Lesson(
        id=lesson_id or uuid.uuid4(),
        plan_item_id=None,
        passage_canonical=passage_canonical,
        passage_text=passage_text,
        translation=translation,
        ai_triptych_json=content,
        story_manifest_json=story_manifest,
        quiz_json=content.get("quiz") or [],
        audio_manifest_json=audio_manifest,
        share_slug=share_slug,
        published_at=now_utc(),
    )
    db.add(lesson)
    if commit:
        db.commit()
        db.refresh(lesson)
    else:
        db.flush()
    return lesson


def get_mapping_for_item(db: Session, plan_item_id: uuid.UUID) -> Optional[models.PlanItemLesson]:
    return (
        db.query(models.PlanItemLesson)
        .filter(models.PlanItemLesson.plan_item_id == plan_item_id)
        .first()
    )


def map_item_to_lesson(db: Session, item: models.PlanItem, lesson: models.Lesson, *, commit: bool = True) -> models.PlanItemLesson:
    """Link ``item`` to ``lesson`` and mark the item published."""
    mapping = models.PlanItemLesson(plan_item_id=item.id, lesson_id=lesson.id)
    db.add(mapping)
    item.status = "published"
    if commit:
        db.commit()
        db.refresh(mapping)
    else:
        db.flush()
    return mapping


def mapped_item_ids(db: Session, item_ids: Iterable[uuid.UUID]) -> Set[uuid.UUID]:
    item_ids = list(item_ids)
    if not item_ids:
        return set()
    rows = (
        db.query(models.PlanItemLesson.plan_item_id)
        .filter(models.PlanItemLesson.plan_item_id.in_(item_ids))
        .all()
    )
    return {row[0] for row in rows}


def lessons_for_items(db: Session, item_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, models.Lesson]:
    item_ids = list(item_ids)
    if not item_ids:
        return {}
    rows = (
        db.query(models.PlanItemLesson.plan_item_id, models.Lesson)
        .join(models.Lesson, models.Lesson.id == models.PlanItemLesson.lesson_id)
        .filter(models.PlanItemLesson.plan_item_id.in_(item_ids))
        .all()
    )
    return {item_id: lesson for item_id, lesson in rows}


def list_featured_lessons(db: Session, limit: int = 20) -> List[models.Lesson]:
    return (
        db.query(models.Lesson)
        .filter(models.Lesson.is_featured.is_(True))
        .order_by(models.Lesson.published_at.desc())
        .limit(limit)
        .all()
    )


def set_lesson_featured(db: Session, lesson: models.Lesson, is_featured: bool) -> models.Lesson:
    lesson.is_featured = is_featured
    db.commit()
    db.refresh(lesson)
    return lesson


def find_lessons_by_passage(db: Session, passage: str) -> List[models.Lesson]:
    return (
        db.query(models.Lesson)
        .filter(models.Lesson.passage_canonical.ilike(f"%{passage}%"))
        .all()
    )


def delete_lessons(db: Session, lessons: List[models.Lesson]) -> int:
    """Delete lessons with their mappings and progress; mapped items revert to pending."""
    lesson_ids = [l.id for l in lessons]
    if not lesson_ids:
        return 0
    mappings = db.query(models.PlanItemLesson).filter(models.PlanItemLesson.lesson_id.in_(lesson_ids)).all()
    item_ids = [m.plan_item_id for m in mappings]
    if item_ids:
        db.query(models.PlanItem).filter(models.PlanItem.id.in_(item_ids)).update(
            {models.PlanItem.status: "pending"}, synchronize_session=False
        )
    db.query(models.PlanItemLesson).filter(models.PlanItemLesson.lesson_id.in_(lesson_ids)).delete(synchronize_session=False)
    db.query(models.Progress).filter(models.Progress.lesson_id.in_(lesson_ids)).delete(synchronize_session=False)
    db.query(models.Lesson).filter(models.Lesson.id.in_(lesson_ids)).delete(synchronize_session=False)
    db.commit()
    return len(lesson_ids)
