"""Referral statistics for the current user."""
from datetime import timedelta

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from dailybread.api.deps import get_current_user_context
from dailybread.db.database import get_db
from dailybread.db.models import now_utc
from dailybread.db.repositories import users as users_repo
from dailybread.utils.urls import build_referral_link

router = APIRouter(prefix="/referrals", tags=["referrals"])

ACTIVE_WINDOW = timedelta(days=30)


@router.get("/stats")
def referral_stats(
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    code = users_repo.ensure_referral_code(db, user)
    return {
        "referralCode": code,
        "totalReferrals": users_repo.count_referrals(db, user.id),
        "activeReferrals": users_repo.count_active_referrals(db, user.id, now_utc() - ACTIVE_WINDOW),
        "referralLink": build_referral_link(code),
    }
