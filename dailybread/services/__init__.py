"""Business logic services package with public service helpers."""

from .lesson_builder import (
    BuildResult,
    LessonBuilder,
    build_lesson_for_item,
    get_lesson_builder,
    reset_lesson_builder_for_tests,
)
from .plan_importer import PlanImportError, import_plan

__all__ = [
    "BuildResult",
    "LessonBuilder",
    "build_lesson_for_item",
    "get_lesson_builder",
    "reset_lesson_builder_for_tests",
    "PlanImportError",
    "import_plan",
]
