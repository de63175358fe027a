"""
Health and build information endpoints.
"""
from __future__ import annotations

import os

from fastapi import APIRouter

router = APIRouter(tags=["support"])  # keep paths stable (no prefix)

SERVICE_NAME = "dailybread-service"


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/build-info")
def get_build_info():
    """Return build and deployment information for the running service."""
    return {
        "build_sha": os.getenv("BUILD_SHA") or None,
        "build_timestamp": os.getenv("BUILD_TIMESTAMP") or None,
        "image_tag": os.getenv("IMAGE_TAG") or None,
        "service_name": SERVICE_NAME,
        "version": os.getenv("VERSION", "unknown"),
    }
