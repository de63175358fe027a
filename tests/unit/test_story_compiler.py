import pytest

from dailybread.services.story_compiler import (
    QUIZ_CTA_TEXT,
    StoryCompiler,
    StoryValidationError,
    split_passage_text,
)


def _compile(content, passage_text="[1] Short passage."):
    return StoryCompiler().compile(
        content,
        title="Gospel Readings",
        reference="John 1:1-5",
        translation="ESV",
        quiz_url="/quiz/abc",
        passage_text=passage_text,
    )


def test_page_order(lesson_content):
    story = _compile(lesson_content)
    titles = [p["content"].get("title") for p in story["pages"]]
    assert titles == [
        "Gospel Readings",
        "What You're About to Read",
        "John 1:1-5",
        "Before You Read",
        "The Message",
        "The Message (cont.)",
        "Your Next Step",
        "Key Takeaways",
        "Reflect on This",
        "Test Your Understanding",
    ]
    assert story["metadata"] == {"title": "Gospel Readings", "reference": "John 1:1-5", "translation": "ESV"}


def test_cover_shows_reference_and_cta_links_quiz(lesson_content):
    pages = _compile(lesson_content)["pages"]
    assert pages[0] == {"type": "cover", "content": {"title": "Gospel Readings", "text": "John 1:1-5"}}
    cta = pages[-1]
    assert cta["type"] == "cta"
    assert cta["content"]["text"] == QUIZ_CTA_TEXT
    assert cta["content"]["cta"] == {"text": "Start Quiz", "href": "/quiz/abc"}


def test_short_body_is_one_message_page(lesson_content):
    lesson_content["body"] = "One paragraph.\n\nTwo paragraphs."
    titles = [p["content"]["title"] for p in _compile(lesson_content)["pages"]]
    assert titles.count("The Message") == 1
    assert "The Message (cont.)" not in titles


def test_long_passage_is_chunked_with_counters(lesson_content):
    verse = "[{n}] " + "word " * 60
    text = "".join(verse.format(n=n) for n in range(1, 6))
    pages = _compile(lesson_content, passage_text=text)["pages"]
    passage_titles = [p["content"]["title"] for p in pages if p["type"] == "passage"]
    assert len(passage_titles) > 1
    assert passage_titles[0] == f"John 1:1-5 (1/{len(passage_titles)})"


def test_legacy_context_object_gets_two_pages(lesson_content):
    lesson_content["context"] = {"historical": "Roman Judea.", "narrative": "After the exile."}
    titles = [p["content"]["title"] for p in _compile(lesson_content)["pages"]]
    assert "Historical Context" in titles and "The Bigger Story" in titles


def test_discussion_questions_split_when_more_than_three(lesson_content):
    lesson_content["discussion_questions"] = ["a?", "b?", "c?", "d?", "e?"]
    pages = _compile(lesson_content)["pages"]
    discussion = [p for p in pages if p["content"]["title"].startswith("Discussion Questions")]
    assert [len(p["content"]["bullets"]) for p in discussion] == [3, 2]


def test_split_passage_text_keeps_short_text():
    assert split_passage_text("[1] Hi.") == ["[1] Hi."]


def test_split_passage_text_breaks_at_verses():
    text = "[1] " + "a" * 50 + " [2] " + "b" * 50
    chunks = split_passage_text(text, max_chars=60)
    assert len(chunks) == 2
    assert chunks[1].startswith("[2]")


def test_validate_accepts_compiled_story(lesson_content):
    assert StoryCompiler().validate(_compile(lesson_content)) is True


@pytest.mark.parametrize(
    "manifest,message",
    [
        ({"pages": []}, "at least one page"),
        ({"pages": [{"type": "cover", "content": {"title": "T"}}], "metadata": {"title": "T"}}, "metadata"),
        ({"pages": [{"type": "video", "content": {"title": "T"}}], "metadata": {"title": "T", "reference": "R"}}, "Unknown page type"),
        ({"pages": [{"type": "passage", "content": {"title": "T"}}], "metadata": {"title": "T", "reference": "R"}}, "title and text"),
        ({"pages": [{"type": "takeaways", "content": {"title": "T", "bullets": []}}], "metadata": {"title": "T", "reference": "R"}}, "bullets"),
        ({"pages": [{"type": "cta", "content": {"title": "T"}}], "metadata": {"title": "T", "reference": "R"}}, "cta"),
    ],
)
def test_validate_rejects_bad_manifests(manifest, message):
    with pytest.raises(StoryValidationError, match=message):
        StoryCompiler().validate(manifest)
