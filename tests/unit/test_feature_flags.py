import pytest

from dailybread.utils.feature_flags import (
    FeatureFlagKey,
    audio_generation_enabled,
    email_queue_enabled,
    get_feature_flags,
    is_feature_enabled,
    llm_features_enabled,
    refresh_feature_flag_cache,
)

_ENV_FLAG_MAPPING = {
    "LLM_FEATURES_ENABLED": "llm_features_enabled",
    "AUDIO_GENERATION_ENABLED": "audio_generation_enabled",
    "EMAIL_QUEUE_ENABLED": "email_queue_enabled",
}


@pytest.fixture(autouse=True)
def reset_flags(monkeypatch):
    for env_name in _ENV_FLAG_MAPPING:
        monkeypatch.delenv(env_name, raising=False)
    refresh_feature_flag_cache()
    yield
    refresh_feature_flag_cache()


def test_get_feature_flags_defaults_true():
    assert get_feature_flags() == {
        "llm_features_enabled": True,
        "audio_generation_enabled": True,
        "email_queue_enabled": True,
    }
    assert llm_features_enabled() and audio_generation_enabled() and email_queue_enabled()


@pytest.mark.parametrize("env_name,flag_key", list(_ENV_FLAG_MAPPING.items()))
def test_individual_flag_disabled_via_env(monkeypatch, env_name: str, flag_key: FeatureFlagKey):
    monkeypatch.setenv(env_name, "off")
    refresh_feature_flag_cache()

    assert get_feature_flags()[flag_key] is False
    assert is_feature_enabled(flag_key) is False


@pytest.mark.parametrize("raw_value", ["maybe", "junk", "2"])
def test_invalid_value_falls_back_to_default(monkeypatch, raw_value):
    monkeypatch.setenv("LLM_FEATURES_ENABLED", raw_value)
    refresh_feature_flag_cache()
    assert get_feature_flags()["llm_features_enabled"] is True


def test_refresh_feature_flag_cache_forces_reload(monkeypatch):
    monkeypatch.setenv("LLM_FEATURES_ENABLED", "false")
    refresh_feature_flag_cache()
    assert llm_features_enabled() is False

    # cached until refreshed
    monkeypatch.setenv("LLM_FEATURES_ENABLED", "true")
    assert llm_features_enabled() is False

    refresh_feature_flag_cache()
    assert llm_features_enabled() is True
