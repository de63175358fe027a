def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_build_info(client, monkeypatch):
    monkeypatch.setenv("BUILD_SHA", "abc123")
    monkeypatch.setenv("VERSION", "1.4.0")
    monkeypatch.delenv("IMAGE_TAG", raising=False)
    body = client.get("/build-info").json()
    assert body["build_sha"] == "abc123"
    assert body["version"] == "1.4.0"
    assert body["image_tag"] is None
    assert body["service_name"] == "dailybread-service"
