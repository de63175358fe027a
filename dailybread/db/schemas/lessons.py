import uuid
from datetime import datetime
from typing import Any, Dict, List
from pydantic import BaseModel, ConfigDict

from .base import RequestModel


class LessonSummary(BaseModel):
    id: uuid.UUID
    passage_canonical: str
    translation: str
    share_slug: str
    is_featured: bool
    published_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class Lesson(LessonSummary):
    passage_text: str
    ai_triptych_json: Dict[str, Any]
    story_manifest_json: Dict[str, Any]
    quiz_json: List[Dict[str, Any]]
    audio_manifest_json: Dict[str, Any] | None = None
    created_at: datetime


class BuildLessonRequest(RequestModel):
    plan_item_id: str | None = None


class GenerateOneRequest(RequestModel):
    plan_id: str | None = None


class GenerateBatchRequest(RequestModel):
    plan_id: str | None = None
    batch_size: int = 5
