"""
Repositories for auth tokens: login sessions plus single-use email
verification and password reset tokens.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from dailybread.db import models
from dailybread.db.models import ensure_utc, now_utc
from dailybread.utils import token_crypto


def issue_token(
    db: Session,
    *,
    user_id: uuid.UUID,
    purpose: str,
    ttl: timedelta,
) -> Tuple[models.AuthToken, str]:
    """Create a token row and return it with the raw token string (shown once)."""
    token_id, secret, full_token = token_crypto.generate_token(purpose)
    token = models.AuthToken(
        user_id=user_id,
        purpose=purpose,
        token_id=token_id,
        token_hash=token_crypto.hash_secret(secret),
        created_at=now_utc(),
        expires_at=now_utc() + ttl,
    )
    db.add(token)
    db.commit()
    db.refresh(token)
    return token, full_token


def get_by_token_id(db: Session, token_id: str) -> Optional[models.AuthToken]:
    return db.query(models.AuthToken).filter(models.AuthToken.token_id == token_id).first()


def resolve_token(db: Session, raw_token: Optional[str], *, purpose: str) -> Optional[models.AuthToken]:
    """Return the live token row for ``raw_token`` or None.

    Live means: parses, matches ``purpose``, secret verifies, not used and
    not expired.
    """
    parsed = token_crypto.parse_token(raw_token)
    if not parsed or parsed.kind != purpose:
        return None
    token = get_by_token_id(db, parsed.token_id)
    if not token or token.purpose != purpose or token.used_at is not None:
        return None
    if token.expires_at is not None and ensure_utc(token.expires_at) <= now_utc():
        return None
    if not token_crypto.verify_secret(parsed.secret, token.token_hash):
        return None
    return token


def mark_used(db: Session, token: models.AuthToken, *, commit: bool = True) -> None:
    token.used_at = now_utc()
    if commit:
        db.commit()


def revoke_user_tokens(db: Session, *, user_id: uuid.UUID, purpose: str) -> int:
    now = now_utc()
    count = (
        db.query(models.AuthToken)
        .filter(
            models.AuthToken.user_id == user_id,
            models.AuthToken.purpose == purpose,
            models.AuthToken.used_at.is_(None),
        )
        .update({models.AuthToken.used_at: now}, synchronize_session=False)
    )
    db.commit()
    return count


def session_expiry(token: models.AuthToken) -> Optional[datetime]:
    return ensure_utc(token.expires_at)
