"""
Users API endpoints.

Exposes the caller's own profile.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from dailybread.db.database import get_db
from dailybread.api.deps import get_current_user_context
from dailybread.db import schemas
from dailybread.db.repositories import users as users_repo

router = APIRouter(prefix="/users", tags=["users"])

_MAX_LENGTHS = {
    "first_name": 100,
    "last_name": 100,
    "display_name": 80,
    "phone": 32,
    "bio": 1000,
    "avatar_url": 1000,
}


@router.get("/me", response_model=schemas.User)
def get_me(user_context=Depends(get_current_user_context)):
    user, _ctx = user_context
    return user


@router.patch("/me", response_model=schemas.User)
def update_me(
    payload: schemas.UserProfileUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if isinstance(value, str) and len(value.strip()) > _MAX_LENGTHS[field]:
            raise HTTPException(status_code=400, detail=f"{field} must be at most {_MAX_LENGTHS[field]} characters")
    if "display_name" in changes and not (changes["display_name"] or "").strip():
        raise HTTPException(status_code=400, detail="display_name cannot be empty")
    return users_repo.update_profile(db, user, changes)
