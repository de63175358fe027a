"""
Spiritual guidance repository functions.

Every read is scoped to the owning user.
"""
from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from dailybread.db import models


def create_guidance(
    db: Session,
    *,
    user_id: uuid.UUID,
    situation_text: str,
    passages: List[Dict[str, Any]],
    guidance_content: Dict[str, Any],
) -> models.SpiritualGuidance:
    row = models.SpiritualGuidance(
        user_id=user_id,
        situation_text=situation_text,
        passages=passages,
        guidance_content=guidance_content,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def list_guidance(
    db: Session,
    *,
    user_id: uuid.UUID,
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
) -> Tuple[List[models.SpiritualGuidance], int]:
    q = db.query(models.SpiritualGuidance).filter(models.SpiritualGuidance.user_id == user_id)
    if search and search.strip():
        q = q.filter(models.SpiritualGuidance.situation_text.ilike(f"%{search.strip()}%"))
    total = q.count()
    rows = (
        q.order_by(models.SpiritualGuidance.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total


def get_guidance_for_user(db: Session, guidance_id: uuid.UUID, user_id: uuid.UUID) -> Optional[models.SpiritualGuidance]:
    return (
        db.query(models.SpiritualGuidance)
        .filter(
            models.SpiritualGuidance.id == guidance_id,
            models.SpiritualGuidance.user_id == user_id,
        )
        .first()
    )


def delete_guidance(db: Session, row: models.SpiritualGuidance) -> None:
    db.delete(row)
    db.commit()
