"""
API dependency helpers.

Provides dependency-resolved user context for routes.
"""
from typing import Optional, Tuple, Dict, Any

from fastapi import Header, HTTPException, status, Depends
from sqlalchemy.orm import Session

from dailybread.db.database import get_db
from dailybread.api.auth import resolve_identity_from_headers, get_or_create_user
from dailybread.db import models
from dailybread.db.repositories import tokens as token_repo
from dailybread.utils.runtime import dev_mode_active, dev_identity
from dailybread.utils.token_crypto import TOKEN_PREFIX

# Contract:
# Returns (sqlalchemy User model, current_user_context_dict)
# Raises 401 if identity cannot be resolved.


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:].strip() or None
    return None


def _context(user: models.User, auth_method: str, session_token_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "display_name": user.display_name,
        "is_admin": bool(user.is_admin),
        "auth_method": auth_method,
        "session_token_id": session_token_id,
    }


def get_current_user_context(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None),
    x_auth_request_user: Optional[str] = Header(default=None),
    x_auth_request_email: Optional[str] = Header(default=None),
    x_forwarded_user: Optional[str] = Header(default=None),
    x_forwarded_email: Optional[str] = Header(default=None),
) -> Tuple[models.User, Dict[str, Any]]:
    # Session tokens issued by /auth/login take precedence
    raw = _bearer_token(authorization)
    if raw and raw.startswith(TOKEN_PREFIX):
        session = token_repo.resolve_token(db, raw, purpose="session")
        if session is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired session")
        user = db.query(models.User).filter(models.User.id == session.user_id).first()
        if user is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid session user")
        return user, _context(user, "session", session.token_id)

    name, email = resolve_identity_from_headers(
        x_auth_request_user=x_auth_request_user,
        x_auth_request_email=x_auth_request_email,
        x_forwarded_user=x_forwarded_user,
        x_forwarded_email=x_forwarded_email,
    )
    if email:
        user = get_or_create_user(db, email=email, display_name=name)
        return user, _context(user, "proxy")

    if dev_mode_active():
        name, email = dev_identity()
        user = get_or_create_user(db, email=email, display_name=name)
        return user, _context(user, "dev")

    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")


def get_optional_user_context(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None),
    x_auth_request_user: Optional[str] = Header(default=None),
    x_auth_request_email: Optional[str] = Header(default=None),
    x_forwarded_user: Optional[str] = Header(default=None),
    x_forwarded_email: Optional[str] = Header(default=None),
) -> Optional[Tuple[models.User, Dict[str, Any]]]:
    """Like ``get_current_user_context`` but anonymous callers get None."""
    try:
        return get_current_user_context(
            db=db,
            authorization=authorization,
            x_auth_request_user=x_auth_request_user,
            x_auth_request_email=x_auth_request_email,
            x_forwarded_user=x_forwarded_user,
            x_forwarded_email=x_forwarded_email,
        )
    except HTTPException as exc:
        if exc.status_code == status.HTTP_401_UNAUTHORIZED:
            return None
        raise


def require_admin(
    user_context=Depends(get_current_user_context),
) -> Tuple[models.User, Dict[str, Any]]:
    user, _ctx = user_context
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user_context
