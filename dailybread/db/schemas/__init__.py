"""
Domain-split Pydantic schemas with an aggregating namespace.

Entity schemas mirror database rows (snake_case, ``from_attributes``);
request schemas derive from ``RequestModel`` and accept camelCase keys.
"""

from .base import RequestModel
from .users import (
    UserBase,
    User,
    UserProfileUpdate,
    SignupRequest,
    LoginRequest,
    TokenRequest,
    PasswordResetRequest,
    PasswordResetConfirm,
)
from .plans import (
    Plan,
    PlanItem,
    PlanCreate,
    AIPlanRequest,
    ImportReading,
    ImportDay,
    PlanImport,
    ShareCreate,
    JoinRequest,
    LibraryJoinRequest,
)
from .lessons import (
    LessonSummary,
    Lesson,
    BuildLessonRequest,
    GenerateOneRequest,
    GenerateBatchRequest,
)
from .progress import CompleteRequest, QuizScoreRequest
from .guidance import GuidancePassage, GuidanceContent, Guidance, GuidanceCreate
from .admin import ToggleFeaturedLesson, ToggleFeaturedPlan, AdminCreateUser, CopyLessonsRequest

__all__ = [
    "RequestModel",
    # users/auth
    "UserBase",
    "User",
    "UserProfileUpdate",
    "SignupRequest",
    "LoginRequest",
    "TokenRequest",
    "PasswordResetRequest",
    "PasswordResetConfirm",
    # plans
    "Plan",
    "PlanItem",
    "PlanCreate",
    "AIPlanRequest",
    "ImportReading",
    "ImportDay",
    "PlanImport",
    "ShareCreate",
    "JoinRequest",
    "LibraryJoinRequest",
    # lessons
    "LessonSummary",
    "Lesson",
    "BuildLessonRequest",
    "GenerateOneRequest",
    "GenerateBatchRequest",
    # progress
    "CompleteRequest",
    "QuizScoreRequest",
    # guidance
    "GuidancePassage",
    "GuidanceContent",
    "Guidance",
    "GuidanceCreate",
    # admin
    "ToggleFeaturedLesson",
    "ToggleFeaturedPlan",
    "AdminCreateUser",
    "CopyLessonsRequest",
]
