"""Tests for the Vertex structured-generation client."""
import json

import pytest
import requests

from prepwise.errors import StructuredGenerationError
from prepwise.infrastructure.llm import VertexRestClient
from prepwise.interview import FEEDBACK_RESPONSE_SCHEMA


class FakeTokens:
    def token(self):
        return "vertex-token"


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload or {}
        self.text = text

    def json(self):
        return self._payload


def reply_with(text):
    return FakeResponse(200, {"candidates": [{"content": {"parts": [{"text": text}]}}]})


@pytest.fixture
def client():
    return VertexRestClient("demo", location="us-central1", model="gemini-2.5-flash", token_provider=FakeTokens())


def test_structured_request_shape(monkeypatch, client):
    sent = []

    def fake_post(url, headers=None, json=None, timeout=None):
        sent.append((url, headers, json))
        return reply_with('{"ok": true}')

    monkeypatch.setattr("requests.post", fake_post)
    result = client.generate_structured("  Score this  ", FEEDBACK_RESPONSE_SCHEMA, system_instruction="Be fair.")

    assert result == {"ok": True}
    url, headers, body = sent[0]
    assert url == ("https://us-central1-aiplatform.googleapis.com/v1/projects/demo/locations/us-central1"
                   "/publishers/google/models/gemini-2.5-flash:generateContent")
    assert headers["Authorization"] == "Bearer vertex-token"
    assert body["contents"][0]["parts"][0]["text"] == "Score this"
    assert body["systemInstruction"] == {"parts": [{"text": "Be fair."}]}
    assert body["generationConfig"]["responseMimeType"] == "application/json"
    assert body["generationConfig"]["responseSchema"] is FEEDBACK_RESPONSE_SCHEMA


def test_json_wrapped_in_prose_is_recovered(monkeypatch, client):
    payload = {"totalScore": 80}
    monkeypatch.setattr("requests.post", lambda *a, **kw: reply_with(f"Here you go:\n{json.dumps(payload)}\nThanks"))
    assert client.generate_structured("p", {}) == payload


def test_unparsable_output_raises(monkeypatch, client):
    monkeypatch.setattr("requests.post", lambda *a, **kw: reply_with("no json here"))
    with pytest.raises(StructuredGenerationError):
        client.generate_structured("p", {})


def test_blocked_prompt_raises(monkeypatch, client):
    monkeypatch.setattr("requests.post", lambda *a, **kw: FakeResponse(200, {"promptFeedback": {"blockReason": "SAFETY"}}))
    with pytest.raises(StructuredGenerationError, match="SAFETY"):
        client.generate_structured("p", {})


def test_http_error_raises(monkeypatch, client):
    monkeypatch.setattr("requests.post", lambda *a, **kw: FakeResponse(503, text="overloaded"))
    with pytest.raises(StructuredGenerationError):
        client.generate_structured("p", {})


def test_network_error_is_wrapped(monkeypatch, client):
    def fake_post(*args, **kwargs):
        raise requests.ConnectionError("down")

    monkeypatch.setattr("requests.post", fake_post)
    with pytest.raises(StructuredGenerationError):
        client.generate_structured("p", {})
