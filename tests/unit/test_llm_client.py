from types import SimpleNamespace

import pytest

from dailybread.services.llm import GeminiJSONClient, LLMConfig, LLMError, LLMNotConfiguredError


class _Models:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.kwargs = None

    def generate_content(self, **kwargs):
        self.kwargs = kwargs
        if self.error:
            raise self.error
        return SimpleNamespace(text=self.text)


def _client(models):
    client = GeminiJSONClient(LLMConfig(api_key="key", model_name="gemini-test"))
    client._client = SimpleNamespace(models=models)
    return client


def test_config_from_environment(monkeypatch):
    monkeypatch.setenv("LLM_API_KEY", "abc")
    monkeypatch.setenv("LLM_MODEL_NAME", "gemini-x")
    monkeypatch.setenv("LLM_MAX_OUTPUT_TOKENS", "not-a-number")
    config = LLMConfig.from_environment()
    assert config.configured
    assert config.model_name == "gemini-x"
    assert config.max_output_tokens == 4096


def test_missing_key_raises_not_configured(monkeypatch):
    monkeypatch.delenv("LLM_API_KEY", raising=False)
    with pytest.raises(LLMNotConfiguredError):
        GeminiJSONClient().generate_json("prompt", {"type": "object"})


def test_generate_json_parses_object():
    models = _Models(text='{"title": "Hope"}')
    result = _client(models).generate_json("prompt", {"type": "object"}, system_instruction="sys", temperature=0.2)
    assert result == {"title": "Hope"}
    assert models.kwargs["model"] == "gemini-test"
    assert models.kwargs["config"]["response_mime_type"] == "application/json"
    assert models.kwargs["config"]["system_instruction"] == "sys"


@pytest.mark.parametrize("text,message", [("", "No content"), ("{not json", "invalid JSON"), ("[1, 2]", "non-object")])
def test_generate_json_rejects_bad_output(text, message):
    with pytest.raises(LLMError, match=message):
        _client(_Models(text=text)).generate_json("prompt", {})


def test_generate_json_wraps_transport_errors():
    with pytest.raises(LLMError, match="quota"):
        _client(_Models(error=RuntimeError("quota exceeded"))).generate_json("prompt", {})
