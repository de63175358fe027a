"""
Email queue endpoints for the scheduler.

Both routes require ``Authorization: Bearer <CRON_SECRET>``.
"""
import hmac
import logging
import os
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from dailybread.db.database import get_db
from dailybread.db.repositories import email_queue as queue_repo
from dailybread.services.email_queue import process_queue
from dailybread.utils.feature_flags import email_queue_enabled

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/emails", tags=["emails"])


def require_cron_secret(authorization: Optional[str] = Header(default=None)) -> None:
    secret = os.getenv("CRON_SECRET", "")
    presented = authorization[7:].strip() if authorization and authorization.lower().startswith("bearer ") else ""
    if not secret or not presented or not hmac.compare_digest(presented, secret):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


@router.post("/process-queue", dependencies=[Depends(require_cron_secret)])
def process_email_queue(db: Session = Depends(get_db)):
    if not email_queue_enabled():
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Email queue is disabled")
    return process_queue(db)


@router.get("/process-queue", dependencies=[Depends(require_cron_secret)])
def email_queue_status(db: Session = Depends(get_db)):
    return {"queue": queue_repo.queue_stats(db)}
