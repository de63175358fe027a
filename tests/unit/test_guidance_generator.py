import pytest

from dailybread.services.guidance_generator import GuidanceGenerationError, GuidanceGenerator
from dailybread.services.llm import LLMError


class _StubClient:
    def __init__(self, *results, error=None):
        self.results = list(results)
        self.error = error
        self.prompts = []

    def generate_json(self, prompt, schema, **kwargs):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.results.pop(0)


def test_suggest_passages_normalizes_entries():
    client = _StubClient({"passages": [
        {"reference": "Philippians 4:6-7", "relevance": "Anxiety"},
        {"reference": "  ", "relevance": "skip"},
        {"reference": "Psalm 46", "relevance": "Refuge", "translation": "ESV"},
    ]})
    passages = GuidanceGenerator(client=client).suggest_passages("I am anxious about my new job.")
    assert passages == [
        {"reference": "Philippians 4:6-7", "relevance": "Anxiety", "translation": "ESV", "text": ""},
        {"reference": "Psalm 46", "relevance": "Refuge", "translation": "ESV", "text": ""},
    ]
    assert "I am anxious about my new job." in client.prompts[0]


def test_suggest_passages_caps_at_five():
    client = _StubClient({"passages": [{"reference": f"Psalm {n}", "relevance": ""} for n in range(1, 9)]})
    assert len(GuidanceGenerator(client=client).suggest_passages("a long enough situation")) == 5


def test_suggest_passages_requires_results():
    with pytest.raises(GuidanceGenerationError, match="suggest passages"):
        GuidanceGenerator(client=_StubClient({"passages": []})).suggest_passages("a long enough situation")


def test_generate_guidance_fills_sections():
    client = _StubClient({"opening": "You are not alone.", "reflections": ["Rest"], "encouragement": "Hope."})
    passages = [{"reference": "Psalm 46", "relevance": "Refuge", "text": "God is our refuge."}]
    content = GuidanceGenerator(client=client).generate_guidance("a long enough situation", passages)
    assert content == {
        "opening": "You are not alone.",
        "scriptural_insights": [],
        "reflections": ["Rest"],
        "prayer_points": [],
        "encouragement": "Hope.",
    }
    assert "God is our refuge." in client.prompts[0]
    assert "1 total" in client.prompts[0]


def test_generate_guidance_wraps_llm_errors():
    generator = GuidanceGenerator(client=_StubClient(error=LLMError("down")))
    with pytest.raises(GuidanceGenerationError) as excinfo:
        generator.generate_guidance("situation text", [])
    assert isinstance(excinfo.value.__cause__, LLMError)
