"""
Spiritual guidance API endpoints.

A request suggests passages for the user's situation, fetches their text,
generates guidance around them and stores the result for the user.
"""
import logging
import math
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from dailybread.api.deps import get_current_user_context
from dailybread.api.errors import raise_service_error, require_llm_features
from dailybread.db import schemas
from dailybread.db.database import get_db
from dailybread.db.repositories import guidance as guidance_repo
from dailybread.services.guidance_generator import GuidanceGenerationError, get_guidance_generator
from dailybread.services.passage_adapter import PassageError, get_passage_adapter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/guidance", tags=["guidance"])

MIN_SITUATION_LENGTH = 10
MAX_SITUATION_LENGTH = 1000
MAX_PAGE_LIMIT = 100


def passage_fallback_text(reference: str) -> str:
    return (
        f"We're having trouble fetching the full text for {reference} right now, "
        "but this passage speaks powerfully to your situation. "
        "You can look it up in your Bible or at BibleGateway.com."
    )


def _serialize(row) -> dict:
    return schemas.Guidance.model_validate(row).model_dump(mode="json")


def _parse_guidance_id(guidance_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(guidance_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid guidance id")


@router.post("", status_code=status.HTTP_201_CREATED)
def create_guidance(
    payload: schemas.GuidanceCreate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    situation = (payload.situation or "").strip()
    if not situation:
        raise HTTPException(status_code=400, detail="Situation is required")
    if not MIN_SITUATION_LENGTH <= len(situation) <= MAX_SITUATION_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Situation must be between {MIN_SITUATION_LENGTH} and {MAX_SITUATION_LENGTH} characters",
        )
    require_llm_features()

    generator = get_guidance_generator()
    try:
        passages = generator.suggest_passages(situation)
    except GuidanceGenerationError as exc:
        raise_service_error(exc, operation="guidance_suggest")

    for passage in passages:
        try:
            fetched = get_passage_adapter(passage["translation"]).get_passage_text(passage["reference"], "ESV")
        except PassageError as exc:
            logger.warning("guidance_passage_fallback: reference=%s error=%s", passage["reference"], exc)
            passage["text"] = passage_fallback_text(passage["reference"])
            continue
        passage["reference"] = fetched.canonical
        passage["text"] = fetched.text
        passage["translation"] = fetched.translation

    try:
        content = generator.generate_guidance(situation, passages)
    except GuidanceGenerationError as exc:
        raise_service_error(exc, operation="guidance_generate")

    row = guidance_repo.create_guidance(
        db, user_id=user.id, situation_text=situation, passages=passages, guidance_content=content,
    )
    logger.info("guidance_created: id=%s user=%s passages=%d", row.id, user.id, len(passages))
    return {"success": True, "guidance": _serialize(row)}


@router.get("")
def list_guidance(
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    if page < 1:
        raise HTTPException(status_code=400, detail="page must be at least 1")
    if not 1 <= limit <= MAX_PAGE_LIMIT:
        raise HTTPException(status_code=400, detail=f"limit must be between 1 and {MAX_PAGE_LIMIT}")
    rows, total = guidance_repo.list_guidance(db, user_id=user.id, page=page, limit=limit, search=search)
    total_pages = math.ceil(total / limit) if total else 0
    return {
        "success": True,
        "data": [_serialize(r) for r in rows],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": total_pages,
            "hasNextPage": page < total_pages,
            "hasPrevPage": page > 1,
        },
    }


@router.get("/{guidance_id}")
def get_guidance(
    guidance_id: str,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    row = guidance_repo.get_guidance_for_user(db, _parse_guidance_id(guidance_id), user.id)
    if row is None:
        raise HTTPException(status_code=404, detail="Guidance not found")
    return {"success": True, "guidance": _serialize(row)}


@router.delete("/{guidance_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_guidance(
    guidance_id: str,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    row = guidance_repo.get_guidance_for_user(db, _parse_guidance_id(guidance_id), user.id)
    if row is None:
        raise HTTPException(status_code=404, detail="Guidance not found")
    guidance_repo.delete_guidance(db, row)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
