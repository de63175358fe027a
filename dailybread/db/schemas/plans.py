import uuid
import datetime as dt
from datetime import date, datetime
from typing import List
from pydantic import BaseModel, ConfigDict

from .base import RequestModel


class PlanItem(BaseModel):
    id: uuid.UUID
    plan_id: uuid.UUID
    index: int
    date_target: date | None = None
    references_text: List[str]
    category: str | None = None
    translation: str
    status: str
    model_config = ConfigDict(from_attributes=True)


class Plan(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    description: str | None = None
    theme: str | None = None
    schedule_type: str
    schedule_mode: str
    source: str
    depth_level: str | None = None
    is_public: bool
    featured: bool
    participant_count: int
    completion_count: int
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class PlanCreate(RequestModel):
    title: str | None = None
    description: str | None = None
    references: List[str] | None = None
    schedule_type: str | None = 'daily'
    schedule_mode: str | None = 'synchronized'
    theme: str | None = None
    source: str | None = 'custom'
    is_public: bool = False
    depth_level: str | None = None


class AIPlanRequest(RequestModel):
    theme: str | None = None
    book_context: str | None = None
    depth_level: str | None = 'moderate'
    schedule_type: str | None = 'daily'


class ImportReading(RequestModel):
    reference: str | None = None
    category: str | None = None


class ImportDay(RequestModel):
    date: dt.date
    readings: List[ImportReading] | None = None


class PlanImport(RequestModel):
    title: str | None = None
    description: str | None = None
    theme: str | None = None
    schedule_type: str | None = 'daily'
    is_public: bool = False
    days: List[ImportDay] | None = None


class ShareCreate(RequestModel):
    message: str | None = None
    expires_in_days: int | None = None
    invite_email: str | None = None


class JoinRequest(RequestModel):
    share_token: str | None = None
    custom_start_date: str | None = None


class LibraryJoinRequest(RequestModel):
    plan_id: str | None = None
    custom_start_date: str | None = None
