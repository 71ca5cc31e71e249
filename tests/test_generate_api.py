from __future__ import annotations

import json
import uuid

import pytest
from fastapi.testclient import TestClient

from quizgame.main import app
from quizgame.routers import generate
from quizgame.services.parse import parse_ai_questions


@pytest.fixture
def client() -> TestClient:
    app.state.limiter.enabled = False
    return TestClient(app)


def _fake_llm(text: str, calls: list | None = None):
    async def fake(messages, **kw):
        if calls is not None:
            calls.append((messages, kw))
        return text
    return fake


def test_health(client) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["ok"] is True


def test_mock_mode_returns_parseable_array(client) -> None:
    resp = client.post("/generate-quiz", json={"topic": "Networking", "numberOfQuestions": 3})
    assert resp.status_code == 200
    body = resp.json()
    assert isinstance(body, list) and len(body) == 3
    questions = parse_ai_questions(resp.text)
    assert all(len(q.options) == 4 for q in questions)


def test_fenced_model_output_is_unwrapped(client, monkeypatch) -> None:
    arr = [{"id": str(uuid.uuid4()), "content": "Q", "options": []}]
    calls: list = []
    monkeypatch.setattr(generate, "llm", _fake_llm("```json\n" + json.dumps(arr) + "\n```", calls))

    resp = client.post("/generate-quiz", json={"topic": "Cats", "numberOfQuestions": 1})

    assert resp.status_code == 200
    assert resp.json() == arr
    prompt = calls[0][0][1]["content"]
    assert "Cats" in prompt and "exactly 4 options" in prompt


def test_questions_envelope_is_unwrapped(client, monkeypatch) -> None:
    arr = [{"id": str(uuid.uuid4()), "content": "Q", "options": []}]
    monkeypatch.setattr(generate, "llm", _fake_llm(json.dumps({"questions": arr})))
    assert client.post("/generate-quiz", json={"topic": "Cats"}).json() == arr


@pytest.mark.parametrize("text", ["not json at all", '{"answer": 42}'])
def test_non_array_output_is_an_error(client, monkeypatch, text) -> None:
    monkeypatch.setattr(generate, "llm", _fake_llm(text))
    resp = client.post("/generate-quiz", json={"topic": "Cats"})
    assert resp.status_code == 400
    assert "error" in resp.json()


@pytest.mark.parametrize("body", [{}, {"topic": ""}, {"topic": "x", "numberOfQuestions": "many"}])
def test_bad_request_body(client, body) -> None:
    resp = client.post("/generate-quiz", json=body)
    assert resp.status_code == 400
    assert "error" in resp.json()


def test_count_is_clamped(client, monkeypatch) -> None:
    calls: list = []
    monkeypatch.setattr(generate, "llm", _fake_llm("[]", calls))
    client.post("/generate-quiz", json={"topic": "Cats", "numberOfQuestions": 500})
    assert calls[0][1]["mock_count"] == 20


def test_cors_allows_any_origin(client) -> None:
    resp = client.options(
        "/generate-quiz",
        headers={
            "Origin": "https://anywhere.example",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "authorization, content-type",
        },
    )
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"

    resp = client.post("/generate-quiz", json={"topic": "Cats"}, headers={"Origin": "https://anywhere.example"})
    assert resp.headers["access-control-allow-origin"] == "*"


def test_missing_openai_key_is_a_json_error(client, monkeypatch) -> None:
    from quizgame.services import llm as llm_service
    from quizgame.settings import settings

    monkeypatch.setattr(settings, "MOCK_MODE", False)
    monkeypatch.setattr(settings, "OPENAI_API_KEY", None)
    monkeypatch.setattr(llm_service, "_client", None)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    resp = client.post("/generate-quiz", json={"topic": "Cats"}, headers={"Origin": "https://anywhere.example"})

    assert resp.status_code == 400
    assert "error" in resp.json()
    assert resp.headers["access-control-allow-origin"] == "*"


def test_unexpected_failure_is_a_json_error(client, monkeypatch) -> None:
    async def boom(messages, **kw):
        raise RuntimeError("worker pool gone")

    monkeypatch.setattr(generate, "llm", boom)
    resp = client.post("/generate-quiz", json={"topic": "Cats"}, headers={"Origin": "https://anywhere.example"})

    assert resp.status_code == 400
    assert "worker pool gone" in resp.json()["error"]
    assert resp.headers["access-control-allow-origin"] == "*"


def test_deeply_nested_model_output_is_an_error(client, monkeypatch) -> None:
    monkeypatch.setattr(generate, "llm", _fake_llm("[" * 100000 + "]" * 100000))
    resp = client.post("/generate-quiz", json={"topic": "Cats"})
    assert resp.status_code == 400
    assert "error" in resp.json()
