"""
Plan import from a dated reading document.

The document shape is ``{title, description?, theme?, scheduleType?,
days: [{date, readings: [{reference, category?}]}]}``; each reading
becomes one plan item targeted at its day.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Union

from pydantic import ValidationError
from sqlalchemy.orm import Session

from dailybread.db import models, schemas
from dailybread.db.repositories import plans as plans_repo
from dailybread.utils.schedule import SCHEDULE_TYPES

logger = logging.getLogger(__name__)


class PlanImportError(Exception):
    pass


def parse_plan_document(document: Union[Dict[str, Any], schemas.PlanImport]) -> schemas.PlanImport:
    if isinstance(document, schemas.PlanImport):
        return document
    try:
        return schemas.PlanImport.model_validate(document)
    except ValidationError as exc:
        raise PlanImportError(f"Invalid plan document: {exc.errors()[0].get('msg', exc)}") from exc


def items_from_document(doc: schemas.PlanImport) -> List[plans_repo.NewPlanItem]:
    if not doc.days:
        raise PlanImportError("Plan must contain at least one day")
    items: List[plans_repo.NewPlanItem] = []
    for day in sorted(doc.days, key=lambda d: d.date):
        if not day.readings:
            raise PlanImportError(f"Day {day.date.isoformat()} has no readings")
        for reading in day.readings:
            reference = (reading.reference or "").strip()
            if not reference:
                raise PlanImportError(f"Reading on {day.date.isoformat()} is missing a reference")
            items.append(plans_repo.NewPlanItem(
                references=[reference],
                date_target=day.date,
                category=reading.category,
            ))
    return items


def import_plan(
    db: Session,
    *,
    user_id: uuid.UUID,
    document: Union[Dict[str, Any], schemas.PlanImport],
    commit: bool = True,
) -> models.Plan:
    """Create a plan with one item per reading; nothing is stored on failure."""
    doc = parse_plan_document(document)
    title = (doc.title or "").strip()
    if not title:
        raise PlanImportError("Plan title is required")
    schedule_type = doc.schedule_type or "daily"
    if schedule_type not in SCHEDULE_TYPES:
        raise PlanImportError(f"Invalid schedule type: {schedule_type}")

    items = items_from_document(doc)
    plan = plans_repo.build_plan(
        user_id=user_id,
        title=title,
        description=doc.description,
        theme=doc.theme,
        schedule_type=schedule_type,
        source="import",
        is_public=doc.is_public,
    )
    plans_repo.create_plan_with_items(db, plan, items, commit=commit)
    logger.info("plan_imported: plan=%s user=%s items=%d", plan.id, user_id, len(items))
    return plan
