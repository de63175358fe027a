import pytest
from fastapi import HTTPException

from dailybread.api.errors import raise_service_error, require_llm_features
from dailybread.services.lesson_generator import LessonGenerationError
from dailybread.services.llm import LLMNotConfiguredError
from dailybread.utils.feature_flags import refresh_feature_flag_cache


def test_missing_credentials_map_to_503():
    try:
        raise LLMNotConfiguredError("LLM_API_KEY is not set")
    except LLMNotConfiguredError as cause:
        wrapped = LessonGenerationError("Lesson generation failed")
        wrapped.__cause__ = cause

    with pytest.raises(HTTPException) as info:
        raise_service_error(wrapped, operation="lesson_build")
    assert info.value.status_code == 503
    assert info.value.detail == "AI features are not configured"


def test_provider_failures_map_to_500():
    with pytest.raises(HTTPException) as info:
        raise_service_error(LessonGenerationError("Quiz question 2 has 3 choices"), operation="lesson_build")
    assert info.value.status_code == 500
    assert info.value.detail == "Quiz question 2 has 3 choices"


def test_require_llm_features(monkeypatch):
    require_llm_features()
    monkeypatch.setenv("LLM_FEATURES_ENABLED", "false")
    refresh_feature_flag_cache()
    with pytest.raises(HTTPException) as info:
        require_llm_features()
    assert info.value.status_code == 503
