import uuid
from datetime import datetime
from typing import List
from pydantic import BaseModel, ConfigDict

from .base import RequestModel


class GuidancePassage(BaseModel):
    reference: str
    text: str
    relevance: str
    translation: str = 'ESV'


class GuidanceContent(BaseModel):
    opening: str
    scriptural_insights: List[str]
    reflections: List[str]
    prayer_points: List[str]
    encouragement: str


class Guidance(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    situation_text: str
    passages: List[GuidancePassage]
    guidance_content: GuidanceContent
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class GuidanceCreate(RequestModel):
    situation: str | None = None
