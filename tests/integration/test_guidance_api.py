from types import SimpleNamespace

import pytest
import requests

from dailybread.api import guidance as guidance_api
from dailybread.services import passage_adapter
from dailybread.services.passage_adapter import ESVAdapter, Passage, PassageError

USER = "seeker@example.com"
SITUATION = "I feel anxious about losing my job next month."


class _FakeGuidanceGenerator:
    def __init__(self):
        self.generated_with = None

    def suggest_passages(self, situation):
        return [
            {"reference": "Phil 4:6-7", "relevance": "Peace in anxiety", "translation": "ESV", "text": ""},
            {"reference": "Matthew 6:25-34", "relevance": "God provides", "translation": "ESV", "text": ""},
        ]

    def generate_guidance(self, situation, passages):
        self.generated_with = passages
        return {
            "opening": "You are not alone in this.",
            "scriptural_insights": ["Paul invites prayer.", "Jesus points to the birds."],
            "reflections": ["What can you hand to God today?", "Write down one worry.", "Call a friend."],
            "prayer_points": ["Peace", "Provision", "Wisdom"],
            "encouragement": "God knows what you need.",
        }


class _Adapter:
    def get_passage_text(self, reference, translation="ESV"):
        if reference.startswith("Matthew"):
            raise PassageError("ESV API error (503): unavailable")
        return Passage(
            reference=reference,
            canonical="Philippians 4:6-7",
            text="Do not be anxious about anything.",
            translation="ESV",
        )


@pytest.fixture
def fake_guidance(monkeypatch):
    generator = _FakeGuidanceGenerator()
    monkeypatch.setattr(guidance_api, "get_guidance_generator", lambda: generator)
    monkeypatch.setattr(guidance_api, "get_passage_adapter", lambda translation="ESV": _Adapter())
    return generator


def _create(client, auth_headers, situation=SITUATION):
    return client.post("/guidance", json={"situation": situation}, headers=auth_headers(USER))


def test_create_guidance_fetches_passages(client, auth_headers, fake_guidance):
    r = _create(client, auth_headers)

    assert r.status_code == 201
    guidance = r.json()["guidance"]
    first, second = guidance["passages"]
    assert first["reference"] == "Philippians 4:6-7"
    assert first["text"] == "Do not be anxious about anything."
    assert second["reference"] == "Matthew 6:25-34"
    assert second["text"] == guidance_api.passage_fallback_text("Matthew 6:25-34")
    assert guidance["guidance_content"]["prayer_points"] == ["Peace", "Provision", "Wisdom"]
    assert fake_guidance.generated_with[0]["text"] == "Do not be anxious about anything."


@pytest.mark.parametrize("situation", ["", "too short", "x" * 1001])
def test_situation_length_is_checked(client, auth_headers, fake_guidance, situation):
    assert _create(client, auth_headers, situation).status_code == 400


def test_guidance_without_llm_credentials(client, auth_headers):
    r = _create(client, auth_headers)
    assert r.status_code == 503
    assert r.json()["detail"] == "AI features are not configured"


def test_unreadable_esv_response_falls_back(client, auth_headers, fake_guidance, monkeypatch):
    def _json():
        raise requests.exceptions.JSONDecodeError("Expecting value", "<html>", 0)

    monkeypatch.setattr(
        passage_adapter.requests, "get",
        lambda *a, **k: SimpleNamespace(status_code=200, json=_json, text="<html>maintenance</html>"),
    )
    monkeypatch.setattr(guidance_api, "get_passage_adapter", lambda translation="ESV": ESVAdapter(api_key="k"))

    r = _create(client, auth_headers)

    assert r.status_code == 201
    for passage in r.json()["guidance"]["passages"]:
        assert passage["text"] == guidance_api.passage_fallback_text(passage["reference"])


def test_list_get_and_delete(client, auth_headers, fake_guidance):
    ids = [_create(client, auth_headers, f"{SITUATION} ({n})").json()["guidance"]["id"] for n in range(3)]
    _create(client, auth_headers, "Grieving the loss of my grandmother.")

    page = client.get("/guidance", params={"page": 1, "limit": 2}, headers=auth_headers(USER)).json()
    assert page["pagination"] == {
        "page": 1, "limit": 2, "total": 4, "totalPages": 2, "hasNextPage": True, "hasPrevPage": False,
    }
    search = client.get("/guidance", params={"search": "grieving"}, headers=auth_headers(USER)).json()
    assert search["pagination"]["total"] == 1

    one = client.get(f"/guidance/{ids[0]}", headers=auth_headers(USER))
    assert one.json()["guidance"]["situation_text"] == f"{SITUATION} (0)"
    assert client.get(f"/guidance/{ids[0]}", headers=auth_headers("other@example.com")).status_code == 404
    assert client.get("/guidance/not-a-uuid", headers=auth_headers(USER)).status_code == 400

    assert client.delete(f"/guidance/{ids[0]}", headers=auth_headers(USER)).status_code == 204
    assert client.get(f"/guidance/{ids[0]}", headers=auth_headers(USER)).status_code == 404


def test_list_validation(client, auth_headers):
    assert client.get("/guidance", params={"page": 0}, headers=auth_headers(USER)).status_code == 400
    assert client.get("/guidance", params={"limit": 101}, headers=auth_headers(USER)).status_code == 400
