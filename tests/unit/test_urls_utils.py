from dailybread.utils import urls


def test_base_url_prefers_app_base_url(monkeypatch):
    monkeypatch.setenv("APP_BASE_URL", "https://mydailybread.faith/")
    monkeypatch.setenv("APP_HOST", "ignored.example.com")
    assert urls.get_app_base_url() == "https://mydailybread.faith"


def test_base_url_from_app_host(monkeypatch):
    monkeypatch.delenv("APP_BASE_URL", raising=False)
    monkeypatch.setenv("APP_HOST", "mydailybread.faith")
    assert urls.get_app_base_url() == "https://mydailybread.faith"
    monkeypatch.setenv("APP_HOST", "localhost:3000")
    assert urls.get_app_base_url() == "http://localhost:3000"


def test_base_url_default(monkeypatch):
    monkeypatch.delenv("APP_BASE_URL", raising=False)
    monkeypatch.delenv("APP_HOST", raising=False)
    assert urls.get_app_base_url() == "http://localhost:3000"


def test_links(monkeypatch):
    monkeypatch.setenv("APP_BASE_URL", "https://app.example")
    assert urls.build_join_link("abc") == "https://app.example/join/abc"
    assert urls.build_referral_link("CODE1234") == "https://app.example/auth?ref=CODE1234"
    assert urls.build_quiz_path("slug") == "/quiz/slug"
    assert urls.build_lesson_link("slug") == "https://app.example/lesson/slug"
    assert urls.build_dashboard_link() == "https://app.example/dashboard"
    assert urls.build_verify_email_link("mdb_verify_x_y").startswith("https://app.example/auth/verify?token=")


def test_media_url(monkeypatch):
    monkeypatch.setenv("APP_BASE_URL", "https://app.example")
    monkeypatch.delenv("MEDIA_BASE_URL", raising=False)
    assert urls.build_media_url("lesson-audio/x/page-0.mp3") == "https://app.example/media/lesson-audio/x/page-0.mp3"
    monkeypatch.setenv("MEDIA_BASE_URL", "https://api.example/media/")
    assert urls.build_media_url("/lesson-audio/x.mp3") == "https://api.example/media/lesson-audio/x.mp3"
