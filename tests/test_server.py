"""
Module: tests.test_server
Purpose: Tests for the FastAPI routes, page, WebSocket updates and startup guards

The global generator is swapped for one backed by a fake engine factory.
"""

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from helpers import FakeClipboard, FakeEngineFactory
from story_gen import server
from story_gen.config import get_config
from story_gen.core import StoryGenerator


@pytest.fixture
def factory():
    return FakeEngineFactory(response=[{"generated_text": "The lighthouse hummed."}])


@pytest.fixture
def client(monkeypatch, factory):
    gen = StoryGenerator(
        renderer=server.renderer,
        engine_factory=factory,
        clipboard=FakeClipboard(),
    )
    monkeypatch.setattr(server, "_generator", gen)
    return TestClient(server.app)


def payload(**overrides):
    config = get_config()
    body = {
        "title": "The Last Lighthouse Keeper",
        "description": "The light guides something other than ships",
        "model": config.get_model_id("distilgpt2"),
        "max_tokens": config.default_max_tokens,
    }
    body.update(overrides)
    return body


def test_page_has_form_and_script(client):
    response = client.get("/")

    assert response.status_code == 200
    html = response.text
    for element_id in [
        'id="story-title"',
        'id="story-description"',
        'id="model-select"',
        'id="word-count"',
        'id="generate-btn"',
        'id="retry-btn"',
        'id="copy-btn"',
        'id="progress-bar"',
    ]:
        assert element_id in html
    assert "navigator.clipboard.writeText" in html
    assert "fallbackCopyToClipboard" in html


def test_options_lists_models_and_lengths(client):
    options = client.get("/options").json()

    assert [m["id"] for m in options["models"]] == get_config().model_ids()
    assert [c["max_tokens"] for c in options["length_choices"]] == get_config().max_token_choices()
    assert options["examples"][0]["title"]


def test_generate_returns_result(client, factory):
    response = client.post("/generate", json=payload())

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["busy"] is False
    assert body["state"]["view"] == "result"
    assert body["state"]["result"]["text"] == "The lighthouse hummed."
    assert body["state"]["result"]["word_count"] == 3
    assert factory.calls[0]["model_id"] == get_config().get_model_id("distilgpt2")


def test_generate_blank_title_is_error_view(client, factory):
    body = client.post("/generate", json=payload(title="   ")).json()

    assert body["success"] is False
    assert body["state"] == {
        "view": "error",
        "message": "Please fill in both the title and description fields.",
    }
    assert factory.calls == []


def test_generate_rejects_unknown_model(client):
    response = client.post("/generate", json=payload(model="someone/unknown"))
    assert response.status_code == 422


def test_generate_rejects_unknown_length(client):
    response = client.post("/generate", json=payload(max_tokens=12345))
    assert response.status_code == 422


def test_generate_load_failure_is_reported(client, factory):
    factory.error = ConnectionError("Failed to fetch model files")

    body = client.post("/generate", json=payload()).json()

    assert body["success"] is False
    assert body["state"]["view"] == "error"
    assert body["state"]["message"].startswith("Network error")


def test_retry_reruns_last_request(client, factory):
    client.post("/generate", json=payload())
    body = client.post("/retry").json()

    assert body["success"] is True
    assert factory.engine_calls == 2
    assert len(factory.calls) == 1  # cached engine reused


def test_health_and_unload(client):
    health = client.get("/health").json()
    assert health["status"] == "healthy"
    assert health["engine_loaded"] is False

    client.post("/generate", json=payload())
    health = client.get("/health").json()
    assert health["engine_loaded"] is True
    assert health["current_model"] == get_config().get_model_id("distilgpt2")

    assert client.post("/unload").json()["message"] == "Model unloaded successfully"
    assert client.post("/unload").json()["message"] == "No model was loaded"
    assert client.get("/health").json()["engine_loaded"] is False


def test_model_change_drops_engine(client):
    client.post("/generate", json=payload())

    response = client.post("/model", json={"model": get_config().get_model_id("gpt2")})

    assert response.json()["success"] is True
    assert client.get("/health").json()["engine_loaded"] is False


def test_websocket_sends_current_state(client):
    with client.websocket_connect("/ws") as websocket:
        messages = [websocket.receive_json() for _ in range(3)]

    assert [m["type"] for m in messages] == ["view", "controls", "copy_label"]
    assert "view" in messages[0]


def test_unhandled_async_error_is_logged(caplog):
    error = RuntimeError("stray task failed")

    with caplog.at_level("ERROR", logger="story_gen.server"):
        server._log_unhandled(None, {"message": "Task exception was never retrieved", "exception": error})

    record = caplog.records[-1]
    assert "stray task failed" in record.getMessage()
    assert record.exc_info[1] is error


def test_generator_startup_failure_returns_503(monkeypatch):
    def broken(**kwargs):
        raise RuntimeError("no renderer")

    monkeypatch.setattr(server, "StoryGenerator", broken)
    monkeypatch.setattr(server, "_generator", None)

    response = TestClient(server.app).post("/generate", json=payload())

    assert response.status_code == 503
    assert response.json()["detail"] == server.INIT_FAILURE_MESSAGE
    assert TestClient(server.app).get("/health").json()["status"] == "unhealthy"
