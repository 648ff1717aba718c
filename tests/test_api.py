"""
Tests for the HTTP API
"""

import pytest
from fastapi.testclient import TestClient

from portfolio_agent.agents.ask import AskWorkflow
from portfolio_agent.api.app import app
from portfolio_agent.api.dependencies import get_ask_workflow
from portfolio_agent.utils.errors import UpstreamError

from fakes import PREFIX, FakeLLM, FakeParameterSource, FakeStateStore, scoped


def serve(llm=None, store=None, workflow=None):
    """Serve a workflow built on fakes; returns the fakes for inspection"""
    fakes = {"llm": llm or FakeLLM(), "store": store or FakeStateStore()}
    if workflow is None:
        workflow = AskWorkflow(
            FakeParameterSource(),
            fakes["llm"],
            fakes["store"],
            param_prefix=PREFIX,
            max_context_items=20,
            max_question_length=300,
            max_conversation_turns=10,
        )
    app.dependency_overrides[get_ask_workflow] = lambda: workflow
    return fakes


class BrokenWorkflow:
    async def ask(self, ask_input, timeout=None):
        raise KeyError("boom")


@pytest.fixture
def client():
    serve()
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestAskEndpoint:

    def test_success(self, client):
        response = client.post("/api/ask", json={"question": "What do you do?"})

        assert response.status_code == 200
        body = response.json()
        assert body["answer"] == "I am a software engineer."
        assert body["conversationId"]
        assert set(body) == {"answer", "conversationId"}

    def test_conversation_id_is_passed_through(self, client):
        fakes = serve(store=FakeStateStore(turns={"conv-9": 2}))

        response = client.post("/api/ask", json={"question": "More?", "conversationId": "conv-9"})

        assert response.status_code == 200
        assert response.json()["conversationId"] == "conv-9"
        assert fakes["store"].saved[0]["turns"] == 3

    @pytest.mark.parametrize("body, reason", [
        ({"question": "   "}, "empty_question"),
        ({"question": "x" * 301}, "question_too_long"),
    ])
    def test_invalid_input(self, client, body, reason):
        response = client.post("/api/ask", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "INVALID_INPUT", "reason": reason}

    def test_turn_limit(self, client):
        serve(store=FakeStateStore(turns={"conv-1": 10}))

        response = client.post("/api/ask", json={"question": "Again?", "conversationId": "conv-1"})

        assert response.status_code == 400
        assert response.json() == {"error": "INVALID_INPUT", "reason": "conversation_turn_limit"}

    def test_off_topic(self, client):
        serve(llm=FakeLLM(response=scoped(False, "")))

        response = client.post("/api/ask", json={"question": "Best pizza in town?"})

        assert response.status_code == 400
        assert response.json() == {"error": "INVALID_QUESTION", "reason": "relevance_off_topic"}

    def test_rate_limited(self, client):
        serve(llm=FakeLLM(moderation_error=UpstreamError("429", status_code=429)))

        response = client.post("/api/ask", json={"question": "What do you do?"})

        assert response.status_code == 429
        assert response.json() == {"error": "RATE_LIMITED", "reason": "moderation_rate_limited"}

    def test_upstream_error(self, client):
        serve(llm=FakeLLM(response="not json"))

        response = client.post("/api/ask", json={"question": "What do you do?"})

        assert response.status_code == 502
        assert response.json() == {"error": "UPSTREAM_ERROR", "reason": "openai_malformed_response"}

    def test_internal_error(self, client):
        serve(store=FakeStateStore(fail_save=True))

        response = client.post("/api/ask", json={"question": "What do you do?"})

        assert response.status_code == 500
        assert response.json() == {"error": "INTERNAL_ERROR", "reason": "persist_error"}

    def test_unclassified_exception(self, client):
        serve(workflow=BrokenWorkflow())

        response = client.post("/api/ask", json={"question": "What do you do?"})

        assert response.status_code == 500
        assert response.json() == {"error": "INTERNAL_ERROR", "reason": "unexpected_error"}

    @pytest.mark.parametrize("body", [{}, {"question": None}, {"question": None, "conversationId": "conv-1"}])
    def test_missing_question_is_empty(self, client, body):
        response = client.post("/api/ask", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "INVALID_INPUT", "reason": "empty_question"}

    @pytest.mark.parametrize("kwargs", [
        {"content": "{not json", "headers": {"Content-Type": "application/json"}},
        {"json": {"question": 42}},
        {"json": ["What do you do?"]},
    ])
    def test_invalid_body(self, client, kwargs):
        response = client.post("/api/ask", **kwargs)

        assert response.status_code == 400
        assert response.json() == {"error": "INVALID_INPUT", "reason": "invalid_body"}


class TestCorrelationId:

    def test_echoes_caller_id_case_insensitively(self, client):
        response = client.post(
            "/api/ask",
            json={"question": "What do you do?"},
            headers={"x-correlation-id": "abc-123"},
        )

        assert response.headers["X-Correlation-Id"] == "abc-123"

    def test_generated_when_absent(self, client):
        response = client.post("/api/ask", json={"question": "What do you do?"})

        assert response.headers["X-Correlation-Id"]

    def test_present_on_errors(self, client):
        response = client.post("/api/ask", json={}, headers={"X-Correlation-Id": "err-1"})

        assert response.status_code == 400
        assert response.headers["X-Correlation-Id"] == "err-1"


class TestCorsAndHealth:

    def test_preflight(self, client):
        response = client.options(
            "/api/ask",
            headers={
                "Origin": "https://portfolio.example.com",
                "Access-Control-Request-Method": "POST",
            },
        )

        assert response.status_code == 200
        assert "POST" in response.headers["access-control-allow-methods"]

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
