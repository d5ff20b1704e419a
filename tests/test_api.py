"""
Tests for the FastAPI endpoints.

Run with: pytest tests/
"""

from unittest.mock import MagicMock

import pytest
import requests
from fastapi.testclient import TestClient

from api import app, get_client, get_settings
from code_editor.config import Settings
from code_editor.reviewer import GeminiClient


class FakeClient:
    def __init__(self, reply="", error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.reply


@pytest.fixture
def fake():
    fake_client = FakeClient()
    app.dependency_overrides[get_client] = lambda: (lambda: fake_client)
    app.dependency_overrides[get_settings] = lambda: Settings()
    yield fake_client
    app.dependency_overrides.clear()


client = TestClient(app)


def test_root():
    response = client.get("/")
    assert response.status_code == 200
    assert response.text == "Hello World"


def test_review_success(fake):
    fake.reply = '```json\n{"explanation": "Adds two numbers."}\n```'
    response = client.post("/api/review", json={
        "code": "a + b", "language": "python", "mode": "explain"
    })

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "mode": "explain",
        "data": {"explanation": "Adds two numbers."},
    }


def test_review_defaults_to_review_mode(fake):
    fake.reply = '{"summary": "ok", "issues": [], "suggestions": [], "timeComplexity": "O(1)", "spaceComplexity": "O(1)", "rating": 9}'
    response = client.post("/api/review", json={"code": "x = 1", "language": "python"})

    assert response.status_code == 200
    assert response.json()["mode"] == "review"
    assert response.json()["data"]["rating"] == 9


def test_review_fix_recovered(fake):
    fake.reply = "```python\nprint('hello')\n```"
    response = client.post("/api/review", json={
        "code": "print('hi')", "language": "python", "mode": "fix"
    })

    assert response.status_code == 200
    assert response.json()["data"] == {"fixedCode": "print('hello')"}


def test_missing_language_makes_no_upstream_call(fake):
    response = client.post("/api/review", json={"code": "x = 1"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Programming language is required"}
    assert fake.prompts == []


def test_missing_code(fake):
    response = client.post("/api/review", json={"language": "python"})
    assert response.status_code == 400
    assert response.json()["error"] == "Code is required"


def test_invalid_mode(fake):
    response = client.post("/api/review", json={
        "code": "x = 1", "language": "python", "mode": "summarize"
    })

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Invalid mode. Must be one of: review, fix, optimize, explain"
    assert fake.prompts == []


def test_malformed_body(fake):
    response = client.post(
        "/api/review", content="not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_review_parse_failure(fake):
    fake.reply = '{"summary": "cut off'
    response = client.post("/api/review", json={"code": "x = 1", "language": "python"})

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Failed to parse AI response as JSON"
    assert body["rawResponse"] == '{"summary": "cut off'
    assert body["parseError"]


def test_strict_schema_setting(fake):
    app.dependency_overrides[get_settings] = lambda: Settings(strict_schema=True)
    fake.reply = '{"summary": "only a summary"}'

    response = client.post("/api/review", json={"code": "x = 1", "language": "python"})

    assert response.status_code == 500
    assert response.json()["rawResponse"] == '{"summary": "only a summary"}'


def test_upstream_429_passed_through():
    """Upstream status and error body reach the caller unchanged."""
    body = {"error": {"code": 429, "message": "Quota exceeded"}}
    upstream = MagicMock(status_code=429, ok=False)
    upstream.json.return_value = body
    session = MagicMock()
    session.post.return_value = upstream

    app.dependency_overrides[get_client] = lambda: (lambda: GeminiClient(api_key="k", session=session))
    app.dependency_overrides[get_settings] = lambda: Settings()
    try:
        response = client.post("/api/review", json={"code": "x = 1", "language": "python"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 429
    assert response.json() == {"success": False, "error": "Quota exceeded", "details": body}


def test_transport_error_is_generic_500(fake):
    fake.error = requests.ConnectionError("connection refused")
    response = client.post("/api/review", json={"code": "x = 1", "language": "python"})

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "connection refused"}


def test_model_test_endpoint(fake):
    fake.reply = "Hello there"
    response = client.post("/api/test", json={"message": "Say hello"})

    assert response.status_code == 200
    assert response.json() == {"success": True, "answer": "Hello there"}
    assert fake.prompts == ["Say hello"]


def test_model_test_endpoint_requires_message(fake):
    response = client.post("/api/test", json={})
    assert response.status_code == 400
    assert response.json() == {"error": "Message is required"}


def test_cors_allows_localhost():
    response = client.options("/api/review", headers={
        "Origin": "http://localhost:3000",
        "Access-Control-Request-Method": "POST",
    })
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"


def test_cors_rejects_unknown_origin():
    response = client.options("/api/review", headers={
        "Origin": "https://evil.example.com",
        "Access-Control-Request-Method": "POST",
    })
    assert response.status_code == 400


def test_non_finite_reply_recovers_with_envelope(fake):
    """Infinity in a fix reply must not break JSON rendering."""
    fake.reply = '{"fixedCode": "x = 1", "score": Infinity}'
    response = client.post("/api/review", json={
        "code": "x = 1", "language": "python", "mode": "fix"
    })

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert "fixedCode" in body["data"]
    assert "score" not in body["data"]


@pytest.fixture
def no_api_key():
    app.dependency_overrides[get_settings] = lambda: Settings(gemini_api_key=None)
    yield
    app.dependency_overrides.clear()


def test_validation_runs_before_client_is_built(no_api_key):
    """Invalid requests get 400 even when the API key is missing."""
    response = client.post("/api/review", json={"code": "x = 1"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Programming language is required"}


def test_missing_api_key_reported_for_valid_request(no_api_key):
    response = client.post("/api/review", json={"code": "x = 1", "language": "python"})

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "GEMINI_API_KEY not set"}


def test_model_test_endpoint_validates_before_client(no_api_key):
    response = client.post("/api/test", json={})
    assert response.status_code == 400
    assert response.json() == {"error": "Message is required"}
