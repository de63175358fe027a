import pytest

from dailybread.utils import runtime


def test_dev_mode_off_by_default(monkeypatch):
    monkeypatch.delenv("DEV_MODE", raising=False)
    assert runtime.dev_mode_requested() is False
    assert runtime.dev_mode_active() is False


def test_dev_mode_allowed_for_localhost(monkeypatch):
    monkeypatch.setenv("DEV_MODE", "true")
    monkeypatch.setenv("APP_BASE_URL", "http://localhost:3000")
    assert runtime.dev_mode_active() is True


def test_dev_mode_rejected_for_public_host(monkeypatch):
    monkeypatch.setenv("DEV_MODE", "true")
    monkeypatch.setenv("APP_BASE_URL", "https://mydailybread.faith")
    with pytest.raises(runtime.DevModeError, match="not permitted"):
        runtime.dev_mode_active()


def test_dev_mode_extra_allowed_host(monkeypatch):
    monkeypatch.setenv("DEV_MODE", "true")
    monkeypatch.setenv("APP_BASE_URL", "https://staging.internal")
    monkeypatch.setenv("DEV_MODE_ALLOWED_HOSTS", "staging.internal")
    assert runtime.dev_mode_active() is True


def test_dev_identity():
    assert runtime.dev_identity() == ("Development User", "dev@localhost")


def test_dev_mode_without_base_url_needs_opt_in(monkeypatch):
    monkeypatch.setenv("DEV_MODE", "true")
    monkeypatch.delenv("APP_BASE_URL", raising=False)
    monkeypatch.delenv("PYTEST_CURRENT_TEST", raising=False)
    with pytest.raises(runtime.DevModeError, match="ALLOW_DEV_MODE"):
        runtime.dev_mode_active()
    monkeypatch.setenv("ALLOW_DEV_MODE", "true")
    assert runtime.dev_mode_active() is True
