import pytest

from dailybread.db.repositories import lessons as lessons_repo
from dailybread.db.repositories import plans as plans_repo
from dailybread.services import lesson_builder as lb
from dailybread.services.audio_generator import AudioGenerationError
from dailybread.services.passage_adapter import PassageError
from dailybread.utils.feature_flags import refresh_feature_flag_cache


class _FakeAudio:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def generate_audio_for_lesson(self, lesson_id, story_manifest):
        self.calls.append(lesson_id)
        if self.error:
            raise self.error
        return {"version": 1, "pages": [{"pageIndex": 0, "audioUrl": f"http://media/{lesson_id}/page-0.mp3"}]}


class _FailingAdapter:
    def get_passage_text(self, reference, translation="ESV"):
        raise PassageError("ESV API error (500): upstream unavailable")


def _first_item(db, plan):
    return plans_repo.list_plan_items(db, plan.id)[0]


def test_passage_query_joins_references():
    item = lb.models.PlanItem(references_text=["John 1:1-5", " ", "John 1:14"])
    assert lb.passage_query(item) == "John 1:1-5; John 1:14"


def test_passage_query_requires_references():
    with pytest.raises(PassageError):
        lb.passage_query(lb.models.PlanItem(references_text=[]))


def test_builds_new_lesson_without_audio(db, make_user, make_plan, lesson_builder, fake_generator):
    plan = make_plan(make_user(), theme="Light in darkness")
    item = _first_item(db, plan)

    result = lesson_builder.build_for_item(db, item)

    assert result.was_reused is False
    assert result.message == lb.MESSAGE_WITHOUT_AUDIO
    lesson = result.lesson
    assert lesson.passage_canonical == "John 1:1-5"
    assert lesson.audio_manifest_json is None
    assert len(lesson.share_slug) == 32
    assert len(lesson.quiz_json) == 3
    assert lesson.story_manifest_json["pages"]
    assert fake_generator.calls[0].plan_theme == "Light in darkness"
    db.refresh(item)
    assert item.status == "published"


def test_second_build_for_same_item_is_a_noop(db, make_user, make_plan, lesson_builder, fake_passages):
    item = _first_item(db, make_plan(make_user()))
    first = lesson_builder.build_for_item(db, item)

    again = lesson_builder.build_for_item(db, item)

    assert again.message == lb.MESSAGE_ALREADY_BUILT
    assert again.lesson.id == first.lesson.id
    assert len(fake_passages.calls) == 1


def test_same_canonical_passage_is_reused_across_plans(db, make_user, make_plan, lesson_builder, fake_passages, fake_generator):
    fake_passages.canonical = {"jn 1:1-5": "John 1:1-5"}
    user = make_user()
    first = lesson_builder.build_for_item(db, _first_item(db, make_plan(user, ("John 1:1-5",))))
    other_item = _first_item(db, make_plan(user, ("jn 1:1-5",), title="Another plan"))

    reused = lesson_builder.build_for_item(db, other_item)

    assert reused.was_reused is True
    assert reused.message == lb.MESSAGE_REUSED
    assert reused.lesson.id == first.lesson.id
    assert len(fake_generator.calls) == 1
    assert lessons_repo.get_mapping_for_item(db, other_item.id).lesson_id == first.lesson.id


def test_audio_attached_when_enabled(db, make_user, make_plan, fake_passages, fake_generator, monkeypatch):
    monkeypatch.setenv("AUDIO_GENERATION_ENABLED", "true")
    refresh_feature_flag_cache()
    audio = _FakeAudio()
    builder = lb.LessonBuilder(
        passage_adapter=fake_passages,
        lesson_generator=fake_generator,
        audio_generator_factory=lambda: audio,
    )
    result = builder.build_for_item(db, _first_item(db, make_plan(make_user())))

    assert result.message == lb.MESSAGE_WITH_AUDIO
    assert audio.calls == [str(result.lesson.id)]
    assert result.lesson.audio_manifest_json["pages"][0]["pageIndex"] == 0


def test_audio_failure_still_stores_lesson(db, make_user, make_plan, fake_passages, fake_generator, monkeypatch):
    monkeypatch.setenv("AUDIO_GENERATION_ENABLED", "true")
    refresh_feature_flag_cache()
    builder = lb.LessonBuilder(
        passage_adapter=fake_passages,
        lesson_generator=fake_generator,
        audio_generator_factory=lambda: _FakeAudio(error=AudioGenerationError("quota exceeded")),
    )
    result = builder.build_for_item(db, _first_item(db, make_plan(make_user())))

    assert result.message == lb.MESSAGE_WITHOUT_AUDIO
    assert result.lesson.audio_manifest_json is None
    assert lessons_repo.get_lesson(db, result.lesson.id) is not None


def test_passage_failure_stores_nothing(db, make_user, make_plan, fake_generator):
    builder = lb.LessonBuilder(passage_adapter=_FailingAdapter(), lesson_generator=fake_generator)
    item = _first_item(db, make_plan(make_user()))

    with pytest.raises(PassageError):
        builder.build_for_item(db, item)

    assert fake_generator.calls == []
    assert lessons_repo.get_mapping_for_item(db, item.id) is None
