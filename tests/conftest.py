import os

# Force the in-memory sqlite engine before the app modules are imported
os.environ.setdefault("PYTEST_RUNNING", "1")

import pytest
from fastapi.testclient import TestClient

import dailybread.db.database as db_module
import dailybread.services.lesson_builder as lesson_builder_module
from dailybread.api.main import app
from dailybread.db import models
from dailybread.db.repositories import plans as plans_repo
from dailybread.db.repositories import users as users_repo
from dailybread.services.audio_generator import reset_audio_generator_for_tests
from dailybread.services.elevenlabs_client import reset_elevenlabs_client_for_tests
from dailybread.services.guidance_generator import reset_guidance_generator_for_tests
from dailybread.services.lesson_builder import LessonBuilder, reset_lesson_builder_for_tests
from dailybread.services.lesson_generator import LessonContentOutput, reset_lesson_generator_for_tests
from dailybread.services.llm import reset_llm_client_for_tests
from dailybread.services.passage_adapter import Passage, PassageError
from dailybread.services.transactional_email_service import reset_transactional_email_service_for_tests
from dailybread.utils.feature_flags import refresh_feature_flag_cache
from dailybread.utils.schedule import today_utc

_CLEARED_ENV = (
    "DEV_MODE",
    "ALLOW_DEV_MODE",
    "ADMIN_EMAILS",
    "CRON_SECRET",
    "LLM_FEATURES_ENABLED",
    "AUDIO_GENERATION_ENABLED",
    "EMAIL_QUEUE_ENABLED",
    "LLM_API_KEY",
    "ESV_API_KEY",
    "ELEVENLABS_API_KEY",
    "EMAIL_PROVIDER",
    "RESEND_API_KEY",
    "SENDGRID_API_KEY",
    "APP_HOST",
    "MEDIA_BASE_URL",
)


def _reset_singletons():
    refresh_feature_flag_cache()
    reset_lesson_builder_for_tests()
    reset_lesson_generator_for_tests()
    reset_guidance_generator_for_tests()
    reset_llm_client_for_tests()
    reset_audio_generator_for_tests()
    reset_elevenlabs_client_for_tests()
    reset_transactional_email_service_for_tests()


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Clear provider credentials and cached singletons around every test."""
    for name in _CLEARED_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("APP_BASE_URL", "http://localhost:3000")
    monkeypatch.setenv("EMAIL_QUEUE_SEND_DELAY_SECONDS", "0")
    monkeypatch.setenv("AUDIO_STORAGE_DIR", str(tmp_path / "audio"))
    _reset_singletons()
    yield
    _reset_singletons()


_GLOBAL_SESSION = None


@pytest.fixture(autouse=True)
def db_session():
    """Fresh schema per test; the app's get_db yields this same session."""
    global _GLOBAL_SESSION
    models.Base.metadata.drop_all(bind=db_module.engine)
    models.Base.metadata.create_all(bind=db_module.engine)
    session = db_module.SessionLocal()
    _GLOBAL_SESSION = session
    try:
        yield session
    finally:
        _GLOBAL_SESSION = None
        session.close()


def _override_get_db():
    if _GLOBAL_SESSION is not None:
        yield _GLOBAL_SESSION
        return
    session = db_module.SessionLocal()
    try:
        yield session
    finally:
        session.close()


app.dependency_overrides[db_module.get_db] = _override_get_db


@pytest.fixture
def db(db_session):
    return db_session


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def auth_headers():
    """Proxy headers that sign a request in as ``email``."""
    def _h(email):
        return {"x-auth-request-user": email.split("@")[0], "x-auth-request-email": email}
    return _h


@pytest.fixture
def make_user(db_session):
    def _make(email="reader@example.com", **kwargs):
        kwargs.setdefault("email_verified", True)
        return users_repo.create_user(db_session, email=email, **kwargs)
    return _make


@pytest.fixture
def make_plan(db_session):
    """Create a plan with one item per reference, dated from ``start`` at ``step`` days."""
    from datetime import timedelta

    def _make(owner, references=("John 1:1-5",), *, start=None, step=1, **kwargs):
        start = start or today_utc()
        plan = plans_repo.build_plan(user_id=owner.id, title=kwargs.pop("title", "Gospel Readings"), **kwargs)
        items = [
            plans_repo.NewPlanItem(references=[ref], date_target=start + timedelta(days=i * step))
            for i, ref in enumerate(references)
        ]
        return plans_repo.create_plan_with_items(db_session, plan, items)
    return _make


def sample_lesson_content():
    return {
        "intro": "John opens his gospel before creation itself.",
        "context": "Written late in the first century to a mixed audience of Jews and Greeks.",
        "body": "The Word was with God.\n\nThe Word was God.\n\nLife and light came through him.",
        "conclusion": "Spend a moment thanking Jesus for being light in your day.",
        "key_takeaways": ["Jesus existed before creation", "Jesus is fully God", "Jesus brings light"],
        "reflection_prompts": ["Where do you need light today?", "What does it mean that the Word became flesh?"],
        "quiz": [
            {
                "q": "What was in the beginning?",
                "choices": ["The Word", "The law", "The temple", "The prophets"],
                "answer": "The Word",
                "explanation": "Verse 1 says the Word was in the beginning.",
            },
            {
                "q": "Who was the Word with?",
                "choices": ["Moses", "God", "Abraham", "David"],
                "answer": "God",
                "explanation": "The Word was with God.",
            },
            {
                "q": "What did the darkness fail to do?",
                "choices": ["Speak", "Overcome the light", "Rest", "Sing"],
                "answer": "Overcome the light",
                "explanation": "The darkness has not overcome it.",
            },
        ],
    }


class FakePassageAdapter:
    """Returns fixed scripture text; canonical references come from ``canonical``."""

    def __init__(self, canonical=None, fail=False):
        self.canonical = canonical or {}
        self.fail = fail
        self.calls = []

    def get_passage_text(self, reference, translation="ESV"):
        self.calls.append(reference)
        if self.fail:
            raise PassageError("ESV API error (500): upstream unavailable")
        return Passage(
            reference=reference,
            canonical=self.canonical.get(reference, reference),
            text="[1] In the beginning was the Word, and the Word was with God. [2] He was in the beginning with God. (ESV)",
            translation="ESV",
        )


class FakeLessonGenerator:
    def __init__(self, content=None):
        self.content = content or sample_lesson_content()
        self.calls = []

    def generate_lesson_content(self, content_input):
        self.calls.append(content_input)
        return LessonContentOutput.from_dict(self.content)


@pytest.fixture
def fake_passages():
    return FakePassageAdapter()


@pytest.fixture
def fake_generator():
    return FakeLessonGenerator()


@pytest.fixture
def lesson_builder(monkeypatch, fake_passages, fake_generator):
    """Install a builder wired to fakes with narration switched off."""
    monkeypatch.setenv("AUDIO_GENERATION_ENABLED", "false")
    refresh_feature_flag_cache()
    builder = LessonBuilder(passage_adapter=fake_passages, lesson_generator=fake_generator)
    monkeypatch.setattr(lesson_builder_module, "_lesson_builder", builder)
    return builder


@pytest.fixture
def lesson_content():
    return sample_lesson_content()
