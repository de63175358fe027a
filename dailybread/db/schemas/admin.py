from typing import Any

from .base import RequestModel
from .plans import PlanImport


class ToggleFeaturedLesson(RequestModel):
    lesson_id: str | None = None
    is_featured: Any = None


class ToggleFeaturedPlan(RequestModel):
    plan_id: str | None = None
    featured: Any = None


class AdminCreateUser(RequestModel):
    email: str | None = None
    password: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    preload_plan: PlanImport | None = None


class CopyLessonsRequest(RequestModel):
    source_plan_id: str | None = None
    target_plan_id: str | None = None
