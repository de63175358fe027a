"""
FastAPI app assembly: middleware, router wiring and the narration media mount.
"""
import logging
import os
from pathlib import Path

from fastapi import FastAPI, Depends, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.requests import Request
from starlette.responses import JSONResponse

# Configure logging
LOG_LEVEL_NAME = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_NAME, logging.INFO)
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)
logger.setLevel(LOG_LEVEL)
logger.info("app_startup: log_level=%s", LOG_LEVEL_NAME)


from dailybread.api.deps import get_optional_user_context
from dailybread.api.admin import router as admin_router
from dailybread.api.auth import router as auth_router
from dailybread.api.emails import router as emails_router
from dailybread.api.guidance import router as guidance_router
from dailybread.api.lessons import router as lessons_router
from dailybread.api.plans import router as plans_router
from dailybread.api.progress import router as progress_router
from dailybread.api.referrals import router as referrals_router
from dailybread.api.support import router as support_router
from dailybread.api.users import router as users_router
from dailybread.services.audio_generator import AUDIO_BUCKET
from dailybread.utils.feature_flags import get_feature_flags
from dailybread.utils.runtime import dev_mode_requested

# Database schema is managed by Alembic migrations.

app = FastAPI(
    title="My Daily Bread Service",
    description="API for Bible reading plans, AI lessons with quizzes and narration, progress and guidance.",
    version="1.0.0",
)

# Avoid implicit trailing-slash redirects for predictable URLs
app.router.redirect_slashes = False

origins = [
    "http://localhost",
    "http://localhost:3000",
    "http://localhost:8000",
]
extra_origins = os.getenv("CORS_ORIGINS", "")
origins.extend(o.strip() for o in extra_origins.split(",") if o.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes that accept writes without a signed-in user
_ANONYMOUS_WRITE_PREFIXES = ("/auth/", "/emails/")


# Middleware: enforce read-only for unauthenticated requests
@app.middleware("http")
async def enforce_readonly_for_guests(request: Request, call_next):
    if request.method in ("POST", "PUT", "PATCH", "DELETE") and not dev_mode_requested():
        path = request.url.path or ""
        if not path.startswith(_ANONYMOUS_WRITE_PREFIXES):
            h = request.headers
            user_present = (
                h.get("x-auth-request-user")
                or h.get("x-auth-request-email")
                or h.get("x-forwarded-user")
                or h.get("x-forwarded-email")
            )
            # Session tokens pass; route dependencies validate them
            if not user_present and not h.get("authorization"):
                return JSONResponse(
                    {"detail": "Guest mode is read-only. Sign in to perform changes."},
                    status_code=status.HTTP_401_UNAUTHORIZED,
                )
    return await call_next(request)


@app.get("/user-info")
def get_user_info(user_context=Depends(get_optional_user_context)):
    """Return the signed-in user (if any) and the feature flags the client needs."""
    flags = get_feature_flags()
    if not user_context:
        return {"authenticated": False, **flags}
    user, ctx = user_context
    return {
        "authenticated": True,
        "user_id": str(user.id),
        "email": user.email,
        "display_name": user.display_name,
        "is_admin": bool(user.is_admin),
        "email_verified": bool(user.email_verified),
        "auth_method": ctx["auth_method"],
        **flags,
    }


app.include_router(support_router)
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(plans_router)
app.include_router(lessons_router)
app.include_router(progress_router)
app.include_router(guidance_router)
app.include_router(referrals_router)
app.include_router(admin_router)
app.include_router(emails_router)

# Narration files written by the audio generator
_audio_dir = Path(os.getenv("AUDIO_STORAGE_DIR", "./media/lesson-audio"))
app.mount(f"/media/{AUDIO_BUCKET}", StaticFiles(directory=str(_audio_dir), check_dir=False), name="lesson-audio")
