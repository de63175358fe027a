"""
Domain-split SQLAlchemy models with an aggregating namespace.

Exposes `Base`, the time helpers, and all ORM classes so callers can use
`from dailybread.db import models` and refer to `models.Plan` etc.
"""

from .base import Base, now_utc, ensure_utc  # re-export

# Domain models
from .users import User
from .tokens import AuthToken
from .plans import Plan, PlanItem, PlanShare, UserPlanEnrollment
from .lessons import Lesson, PlanItemLesson
from .progress import Progress, Nudge
from .guidance import SpiritualGuidance
from .emails import EmailQueueEntry

__all__ = [
    # base
    "Base",
    "now_utc",
    "ensure_utc",
    # users
    "User",
    "AuthToken",
    # plans
    "Plan",
    "PlanItem",
    "PlanShare",
    "UserPlanEnrollment",
    # lessons
    "Lesson",
    "PlanItemLesson",
    # progress
    "Progress",
    "Nudge",
    # guidance
    "SpiritualGuidance",
    # email
    "EmailQueueEntry",
]
