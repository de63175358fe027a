"""
Translation of service failures into HTTP errors.

Provider failures surface as 500 with the service message; a missing
provider credential or a disabled feature surfaces as 503.
"""
import logging
from typing import NoReturn

from fastapi import HTTPException, status

from dailybread.services.llm import LLMNotConfiguredError
from dailybread.utils.feature_flags import llm_features_enabled

logger = logging.getLogger(__name__)


def _not_configured(exc: BaseException) -> bool:
    seen = exc
    while seen is not None:
        if isinstance(seen, LLMNotConfiguredError):
            return True
        seen = seen.__cause__
    return False


def raise_service_error(exc: Exception, *, operation: str) -> NoReturn:
    if _not_configured(exc):
        logger.warning("%s_unavailable: %s", operation, exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="AI features are not configured",
        ) from exc
    logger.error("%s_failed: %s", operation, exc, exc_info=True)
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc


def require_llm_features() -> None:
    if not llm_features_enabled():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="AI features are currently disabled",
        )
