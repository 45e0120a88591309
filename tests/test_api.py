from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from poster_architect.api import app as api_app
from poster_architect.editor.session import PosterSession
from poster_architect.errors import RemoteFailure


@pytest.fixture
def client(monkeypatch, fake_provider):
    monkeypatch.setattr(api_app, "_session", PosterSession(provider=fake_provider))
    return TestClient(api_app.app)


def _upload(client, png):
    return client.post("/session/uploads", files=[("files", ("product.png", png.data, "image/png"))])


def test_full_flow(client, fake_provider, make_png):
    img0 = make_png(400, 400, (200, 0, 0))
    img1 = make_png(400, 400, (0, 200, 0))
    fake_provider.concepts.append("Sunlit citrus splash")
    fake_provider.results.extend([img0, img1])

    body = _upload(client, make_png(32, 32)).json()
    assert body["concept"] == "Sunlit citrus splash"
    assert body["product_image_count"] == 1

    assert client.post("/session/aspect-ratio", data={"aspect_ratio": "1:1"}).json()["aspect_ratio"] == "1:1"

    body = client.post("/session/generate").json()
    assert body["history"] == {"length": 1, "index": 0, "can_undo": False, "can_redo": False}

    client.post("/session/selection/down", data={"x": 10, "y": 10})
    client.post("/session/selection/move", data={"x": 60, "y": 60})
    body = client.post("/session/selection/up").json()
    assert body["selection"] == {"phase": "selected", "rect": {"x": 10.0, "y": 10.0, "width": 50.0, "height": 50.0}}

    body = client.post(
        "/session/edit",
        data={"instruction": "make it blue", "displayed_width": 200, "displayed_height": 200},
    ).json()
    assert body["history"]["length"] == 2
    assert body["selection"]["phase"] == "idle"
    assert fake_provider.calls[-1][3].to_pil().getbbox() == (20, 20, 120, 120)

    body = client.post("/session/undo").json()
    assert body["history"]["index"] == 0
    assert body["history"]["can_redo"] is True

    resp = client.get("/session/poster")
    assert resp.status_code == 200
    assert resp.content == img0.data
    assert "ai-poster.png" in resp.headers["content-disposition"]

    assert client.post("/session/finals").json()["finals_count"] == 1
    assert client.post("/session/finals").json()["finals_count"] == 1
    resp = client.get("/session/finals/0")
    assert resp.content == img0.data
    assert "final-poster-1.png" in resp.headers["content-disposition"]


def test_generate_failure_sets_error(client, fake_provider, make_png):
    fake_provider.concepts.append("concept")
    fake_provider.results.append(RemoteFailure("upstream 503"))
    _upload(client, make_png(16, 16))

    body = client.post("/session/generate").json()
    assert body["error"] == "upstream 503"
    assert body["pending"] is False
    assert body["history"]["length"] == 0

    assert client.delete("/session/error").json()["error"] is None


def test_rejects_bad_inputs(client, make_png):
    assert client.post("/session/aspect-ratio", data={"aspect_ratio": "5:4"}).status_code == 400
    resp = client.post("/session/uploads", files=[("files", ("notes.txt", b"hello", "text/plain"))])
    assert resp.status_code == 400
    assert client.post("/session/selection/wiggle").status_code == 404
    assert client.get("/session/poster").status_code == 404
    assert client.get("/session/finals/0").status_code == 404
    assert client.post("/session/finals").status_code == 400


def test_busy_session_returns_conflict(client, monkeypatch):
    session = api_app._session
    monkeypatch.setattr(type(session), "pending", property(lambda self: True))
    assert client.post("/session/generate").status_code == 409
    assert client.post("/session/undo").status_code == 409


def test_missing_api_key(monkeypatch):
    monkeypatch.setattr(api_app, "_session", None)
    monkeypatch.setattr(api_app.settings, "gemini_api_key", None)
    resp = TestClient(api_app.app).get("/session")
    assert resp.status_code == 400
    assert "GEMINI_API_KEY" in resp.json()["detail"]
