"""
URL utilities for building absolute links in API responses and emails.

Primary source: APP_BASE_URL (e.g., https://mydailybread.app)
Fallback: APP_HOST (adds scheme heuristically if missing).
"""
from __future__ import annotations

import os
from urllib.parse import urlencode


def _add_scheme_if_missing(host: str) -> str:
    h = host.strip()
    if not h:
        return "http://localhost:3000"
    if h.startswith("http://") or h.startswith("https://"):
        return h
    lower = h.lower()
    if lower.startswith("localhost") or lower.startswith("127.0.0.1"):
        return f"http://{h}"
    return f"https://{h}"


def get_app_base_url() -> str:
    """Return normalized base URL for the web application.

    Precedence: APP_BASE_URL, then APP_HOST, then http://localhost:3000.
    """
    base = os.getenv("APP_BASE_URL")
    if base and base.strip():
        return base.strip().rstrip("/")
    host = os.getenv("APP_HOST")
    if host and host.strip():
        return _add_scheme_if_missing(host).rstrip("/")
    return "http://localhost:3000"


def build_join_link(share_token: str) -> str:
    return f"{get_app_base_url()}/join/{share_token}"


def build_referral_link(referral_code: str) -> str:
    return f"{get_app_base_url()}/auth?{urlencode({'ref': referral_code})}"


def build_quiz_path(share_slug: str) -> str:
    """Relative quiz path embedded in story manifests."""
    return f"/quiz/{share_slug}"


def build_lesson_link(share_slug: str) -> str:
    return f"{get_app_base_url()}/lesson/{share_slug}"


def build_plan_link(plan_id) -> str:
    return f"{get_app_base_url()}/plans/{plan_id}"


def build_dashboard_link() -> str:
    return f"{get_app_base_url()}/dashboard"


def build_verify_email_link(token: str) -> str:
    return f"{get_app_base_url()}/auth/verify?{urlencode({'token': token})}"


def build_password_reset_link(token: str) -> str:
    return f"{get_app_base_url()}/auth/reset-password?{urlencode({'token': token})}"


def build_media_url(relative_path: str) -> str:
    """Public URL for a file served from the /media static mount.

    MEDIA_BASE_URL points at the API host when it differs from the web app.
    """
    base = (os.getenv("MEDIA_BASE_URL") or "").strip().rstrip("/") or f"{get_app_base_url()}/media"
    return f"{base}/{relative_path.lstrip('/')}"
