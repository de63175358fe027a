import pytest

from dailybread.services.llm import LLMError
from dailybread.services.plan_generator import MAX_PASSAGES, PlanGenerationError, generate_ai_plan


class _StubClient:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.prompts = []

    def generate_json(self, prompt, schema, **kwargs):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.result


def test_generate_plan_cleans_passages():
    client = _StubClient(result={
        "title": " Walking in Hope ",
        "description": "Ten readings on hope.",
        "passages": ["Romans 5:1-5", "romans 5:1-5", "", 42, "Psalm 42"],
        "reasoning": "Hope runs through both testaments.",
        "category": "Hope",
    })
    plan = generate_ai_plan("finding hope in hard seasons", "Psalms", "deep", client=client)
    assert plan == {
        "title": "Walking in Hope",
        "description": "Ten readings on hope.",
        "passages": ["Romans 5:1-5", "Psalm 42"],
        "reasoning": "Hope runs through both testaments.",
        "category": "Hope",
    }
    assert "**Focus on:** Psalms" in client.prompts[0]
    assert "between 10 and 14 passages" in client.prompts[0]


def test_passages_are_capped():
    client = _StubClient(result={"title": "Long", "passages": [f"Psalm {n}" for n in range(1, 60)]})
    assert len(generate_ai_plan("a very long plan", client=client)["passages"]) == MAX_PASSAGES


def test_missing_title_falls_back_to_theme():
    client = _StubClient(result={"passages": ["John 1"]})
    plan = generate_ai_plan("the gospel of John in a week", client=client)
    assert plan["title"] == "the gospel of John in a week"
    assert plan["category"] is None


def test_no_passages_is_an_error():
    with pytest.raises(PlanGenerationError, match="no passages"):
        generate_ai_plan("something thematic", client=_StubClient(result={"passages": []}))


def test_invalid_depth():
    with pytest.raises(PlanGenerationError, match="Invalid depth level"):
        generate_ai_plan("something thematic", depth_level="extreme", client=_StubClient(result={}))


def test_llm_failure_is_wrapped():
    with pytest.raises(PlanGenerationError, match="Failed to generate plan"):
        generate_ai_plan("something thematic", client=_StubClient(error=LLMError("boom")))
