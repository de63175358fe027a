"""
Authentication helpers, identity resolution and the /auth endpoints.

Parses proxy headers, normalizes emails, and upserts users with admin
elevation via ``ADMIN_EMAILS``. Email/password accounts sign in through
``/auth/login`` and receive an ``mdb_sess_`` bearer token.
"""
import os
import logging
from datetime import timedelta
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from dailybread.db import models, schemas
from dailybread.db.database import get_db
from dailybread.db.repositories import email_queue as email_queue_repo
from dailybread.db.repositories import tokens as token_repo
from dailybread.db.repositories import users as users_repo
from dailybread.services import mailer
from dailybread.utils import token_crypto
from dailybread.utils.urls import build_dashboard_link

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
VERIFY_EMAIL_TTL = timedelta(hours=24)
PASSWORD_RESET_TTL = timedelta(hours=1)
RESET_REQUESTED_MESSAGE = "If an account exists for that email, a reset link has been sent."


def _normalize_list_env(var_name: str) -> set:
    raw = os.getenv(var_name, "")
    values = set()
    for entry in raw.split(","):
        cleaned = entry.strip().strip('"').strip("'")
        if cleaned:
            values.add(cleaned.lower())
    return values


def _admin_emails() -> set:
    return _normalize_list_env("ADMIN_EMAILS")


def _session_ttl() -> timedelta:
    try:
        days = int(os.getenv("SESSION_TOKEN_TTL_DAYS", "30"))
    except ValueError:
        days = 30
    return timedelta(days=max(1, days))


def resolve_identity_from_headers(
    x_auth_request_user: Optional[str],
    x_auth_request_email: Optional[str],
    x_forwarded_user: Optional[str],
    x_forwarded_email: Optional[str],
) -> Tuple[Optional[str], Optional[str]]:
    user = x_auth_request_user or x_forwarded_user
    email = users_repo.normalize_email(x_auth_request_email or x_forwarded_email)
    return user, email


def get_or_create_user(db: Session, email: str, display_name: Optional[str] = None) -> models.User:
    """Return the user for ``email``, creating a verified account on first sight."""
    email = users_repo.normalize_email(email)
    is_admin = email in _admin_emails()
    user = users_repo.get_user_by_email(db, email)
    if user is None:
        # proxy identities are verified upstream
        return users_repo.create_user(db, email=email, display_name=display_name, email_verified=True, is_admin=is_admin)
    # Existing users might predate a new ADMIN_EMAILS value; promote them when necessary.
    if is_admin and not user.is_admin:
        user.is_admin = True
        db.commit()
        db.refresh(user)
    return user


def _validate_password(password: Optional[str]) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(status_code=400, detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return password


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", status_code=status.HTTP_201_CREATED)
def signup(payload: schemas.SignupRequest, db: Session = Depends(get_db)):
    email = users_repo.normalize_email(payload.email)
    if not email or "@" not in email:
        raise HTTPException(status_code=400, detail="A valid email is required")
    password = _validate_password(payload.password)
    if users_repo.get_user_by_email(db, email) is not None:
        raise HTTPException(status_code=400, detail="An account with this email already exists")

    referrer = users_repo.get_user_by_referral_code(db, payload.referral_code) if payload.referral_code else None
    if payload.referral_code and referrer is None:
        logger.info("signup_unknown_referral_code: code=%s", payload.referral_code)

    user = users_repo.create_user(
        db,
        email=email,
        first_name=(payload.first_name or "").strip() or None,
        last_name=(payload.last_name or "").strip() or None,
        password_hash=token_crypto.hash_password(password),
        email_verified=email in _admin_emails(),
        is_admin=email in _admin_emails(),
        referred_by_user_id=referrer.id if referrer else None,
    )

    _token, raw = token_repo.issue_token(db, user_id=user.id, purpose="verify_email", ttl=VERIFY_EMAIL_TTL)
    try:
        mailer.send_verification_email(user.email, user.first_name, raw)
    except mailer.MailError as exc:
        logger.warning("verification_email_failed: user=%s error=%s", user.id, exc)

    email_queue_repo.enqueue_email(
        db,
        email_type=mailer.TEMPLATE_WELCOME,
        recipient_email=user.email,
        recipient_user_id=user.id,
        template_data={"first_name": user.first_name, "dashboard_url": build_dashboard_link()},
    )
    logger.info("user_signed_up: user=%s referred=%s", user.id, bool(referrer))
    return {"success": True, "userId": str(user.id)}


@router.post("/verify")
def verify_email(payload: schemas.TokenRequest, db: Session = Depends(get_db)):
    token = token_repo.resolve_token(db, payload.token, purpose="verify_email")
    if token is None:
        raise HTTPException(status_code=400, detail="Invalid or expired verification token")
    user = users_repo.get_user(db, token.user_id)
    if user is None:
        raise HTTPException(status_code=400, detail="Invalid or expired verification token")
    user.email_verified = True
    token_repo.mark_used(db, token)
    return {"success": True, "message": "Email verified"}


@router.post("/login")
def login(payload: schemas.LoginRequest, db: Session = Depends(get_db)):
    user = users_repo.get_user_by_email(db, payload.email)
    if user is None or not token_crypto.verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    session, raw = token_repo.issue_token(db, user_id=user.id, purpose="session", ttl=_session_ttl())
    expires_at = token_repo.session_expiry(session)
    return {
        "accessToken": raw,
        "tokenType": "bearer",
        "expiresAt": expires_at.isoformat() if expires_at else None,
        "user": schemas.User.model_validate(user).model_dump(mode="json"),
    }


@router.post("/logout")
def logout(
    authorization: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
):
    raw = authorization[7:].strip() if authorization and authorization.lower().startswith("bearer ") else None
    session = token_repo.resolve_token(db, raw, purpose="session")
    if session is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired session")
    token_repo.mark_used(db, session)
    return {"success": True}


@router.post("/password-reset/request")
def request_password_reset(payload: schemas.PasswordResetRequest, db: Session = Depends(get_db)):
    user = users_repo.get_user_by_email(db, payload.email)
    if user is not None:
        _token, raw = token_repo.issue_token(db, user_id=user.id, purpose="password_reset", ttl=PASSWORD_RESET_TTL)
        try:
            mailer.send_password_reset_email(user.email, user.first_name, raw)
        except mailer.MailError as exc:
            logger.warning("password_reset_email_failed: user=%s error=%s", user.id, exc)
    return {"success": True, "message": RESET_REQUESTED_MESSAGE}


@router.post("/password-reset/confirm")
def confirm_password_reset(payload: schemas.PasswordResetConfirm, db: Session = Depends(get_db)):
    password = _validate_password(payload.password)
    token = token_repo.resolve_token(db, payload.token, purpose="password_reset")
    if token is None:
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")
    user = users_repo.get_user(db, token.user_id)
    if user is None:
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")
    users_repo.set_password(db, user, password, commit=False)
    token_repo.mark_used(db, token)
    # existing sessions end with the old password
    token_repo.revoke_user_tokens(db, user_id=user.id, purpose="session")
    return {"success": True, "message": "Password updated"}
