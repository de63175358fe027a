"""
User repository functions.

Covers lookups, creation with referral attribution, profile updates and
referral statistics.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from dailybread.db import models
from dailybread.utils import token_crypto

PROFILE_FIELDS = ("first_name", "last_name", "display_name", "phone", "bio", "avatar_url")


def normalize_email(email: Optional[str]) -> Optional[str]:
    if not email:
        return None
    return email.strip().lower()


def get_user(db: Session, user_id: uuid.UUID) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_email(db: Session, email: Optional[str]) -> Optional[models.User]:
    email = normalize_email(email)
    if not email:
        return None
    return db.query(models.User).filter(models.User.email == email).first()


def get_user_by_referral_code(db: Session, code: Optional[str]) -> Optional[models.User]:
    if not code or not code.strip():
        return None
    return db.query(models.User).filter(models.User.referral_code == code.strip().upper()).first()


def _unique_referral_code(db: Session) -> str:
    while True:
        code = token_crypto.generate_referral_code()
        if not db.query(models.User.id).filter(models.User.referral_code == code).first():
            return code


def ensure_referral_code(db: Session, user: models.User) -> str:
    if not user.referral_code:
        user.referral_code = _unique_referral_code(db)
        db.commit()
        db.refresh(user)
    return user.referral_code


def create_user(
    db: Session,
    *,
    email: str,
    display_name: Optional[str] = None,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    password_hash: Optional[str] = None,
    email_verified: bool = False,
    is_admin: bool = False,
    referred_by_user_id: Optional[uuid.UUID] = None,
    commit: bool = True,
) -> models.User:
    email = normalize_email(email)
    if not display_name:
        full = " ".join(p for p in (first_name, last_name) if p)
        display_name = full or email.split("@")[0]
    user = models.User(
        email=email,
        display_name=display_name,
        first_name=first_name,
        last_name=last_name,
        password_hash=password_hash,
        email_verified=email_verified,
        is_admin=is_admin,
        referral_code=_unique_referral_code(db),
        referred_by_user_id=referred_by_user_id,
    )
    db.add(user)
    if commit:
        db.commit()
        db.refresh(user)
    else:
        db.flush()
    return user


def update_profile(db: Session, user: models.User, changes: Dict[str, Any]) -> models.User:
    for key, value in changes.items():
        if key in PROFILE_FIELDS:
            setattr(user, key, value.strip() if isinstance(value, str) else value)
    db.commit()
    db.refresh(user)
    return user


def set_password(db: Session, user: models.User, password: str, *, commit: bool = True) -> None:
    user.password_hash = token_crypto.hash_password(password)
    if commit:
        db.commit()


def list_users_with_plan_counts(db: Session, skip: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
    plan_counts = (
        db.query(models.Plan.user_id, func.count(models.Plan.id).label("plan_count"))
        .group_by(models.Plan.user_id)
        .subquery()
    )
    rows = (
        db.query(models.User, func.coalesce(plan_counts.c.plan_count, 0))
        .outerjoin(plan_counts, plan_counts.c.user_id == models.User.id)
        .order_by(models.User.created_at.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
    return [
        {
            "id": user.id,
            "email": user.email,
            "display_name": user.display_name,
            "is_admin": bool(user.is_admin),
            "email_verified": bool(user.email_verified),
            "created_at": user.created_at,
            "plan_count": int(count or 0),
        }
        for user, count in rows
    ]


def count_referrals(db: Session, user_id: uuid.UUID) -> int:
    return db.query(func.count(models.User.id)).filter(models.User.referred_by_user_id == user_id).scalar() or 0


def count_active_referrals(db: Session, user_id: uuid.UUID, since: datetime) -> int:
    """Referred users who completed at least one lesson since ``since``."""
    return (
        db.query(func.count(func.distinct(models.Progress.user_id)))
        .join(models.User, models.User.id == models.Progress.user_id)
        .filter(
            models.User.referred_by_user_id == user_id,
            models.Progress.completed_at.isnot(None),
            models.Progress.completed_at >= since,
        )
        .scalar()
        or 0
    )
