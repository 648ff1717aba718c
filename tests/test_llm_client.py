"""
Tests for the OpenAI client wrapper (no network: model and SDK clients are faked)
"""

import json
from types import SimpleNamespace

import httpx
import openai
import pytest
from langchain_core.messages import AIMessage, HumanMessage

from portfolio_agent.llm.client import (
    SCOPED_ANSWER_RESPONSE_FORMAT,
    OpenAIClient,
    create_chat_model,
    normalize_base_url,
    parse_token_payload,
)
from portfolio_agent.llm.response_utils import extract_text_from_response
from portfolio_agent.utils.errors import UpstreamError

from fakes import FakeParameterSource


def status_error(status: int, path: str = "chat/completions") -> openai.APIStatusError:
    request = httpx.Request("POST", f"https://api.openai.com/v1/{path}")
    response = httpx.Response(status, request=request)
    if status == 429:
        return openai.RateLimitError("rate limited", response=response, body=None)
    return openai.InternalServerError("server error", response=response, body=None)


class FakeChatModel:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    async def ainvoke(self, messages):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return AIMessage(content=self.content)


class FakeModerations:
    def __init__(self, results=None, error=None):
        self.results = results
        self.error = error
        self.inputs = []

    async def create(self, input):
        self.inputs.append(input)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(results=self.results)


def make_client(chat_model=None, moderations=None, **kwargs):
    created = {"chat": [], "moderation": []}

    def chat_factory(model, api_key):
        created["chat"].append((model, api_key))
        return chat_model

    def moderation_factory(api_key):
        created["moderation"].append(api_key)
        return SimpleNamespace(moderations=moderations)

    kwargs.setdefault("api_key", "sk-test")
    client = OpenAIClient(
        param_prefix="/portfolio-agent",
        chat_model_factory=chat_factory,
        moderation_client_factory=moderation_factory,
        **kwargs,
    )
    return client, created


class TestHelpers:

    @pytest.mark.parametrize("base_url, expected", [
        (None, "https://api.openai.com/v1"),
        ("", "https://api.openai.com/v1"),
        ("https://proxy.internal", "https://proxy.internal/v1"),
        ("https://proxy.internal/v1/", "https://proxy.internal/v1"),
    ])
    def test_normalize_base_url(self, base_url, expected):
        assert normalize_base_url(base_url) == expected

    def test_parse_token_payload(self):
        assert parse_token_payload('{"token": " sk-abc "}') == "sk-abc"

    @pytest.mark.parametrize("raw", ["", "sk-abc", '{"token": ""}', '{"key": "sk"}', '["sk"]'])
    def test_parse_token_payload_rejects(self, raw):
        with pytest.raises(ValueError):
            parse_token_payload(raw)

    def test_response_format_is_strict_schema(self):
        schema = SCOPED_ANSWER_RESPONSE_FORMAT["json_schema"]
        assert SCOPED_ANSWER_RESPONSE_FORMAT["type"] == "json_schema"
        assert schema["name"] == "scoped_answer"
        assert schema["strict"] is True
        assert schema["schema"]["required"] == ["in_scope", "answer"]
        assert schema["schema"]["additionalProperties"] is False

    def test_create_chat_model_binds_response_format(self):
        model = create_chat_model("gpt-4o-mini", "sk-test", base_url="https://api.openai.com")
        assert model.kwargs["response_format"] == SCOPED_ANSWER_RESPONSE_FORMAT
        assert model.bound.max_retries == 0
        assert model.bound.model_name == "gpt-4o-mini"


class TestExtractText:

    def test_plain_string(self):
        assert extract_text_from_response(AIMessage(content="hello")) == "hello"

    def test_content_blocks_skip_reasoning(self):
        response = AIMessage(content=[
            {"type": "reasoning", "text": "thinking..."},
            {"type": "text", "text": '{"in_scope": true, '},
            {"type": "text", "text": '"answer": "x"}'},
        ])
        assert extract_text_from_response(response) == '{"in_scope": true, "answer": "x"}'

    def test_empty(self):
        assert extract_text_from_response(AIMessage(content="")) == ""


class TestConstruction:

    def test_requires_key_or_parameter_source(self):
        with pytest.raises(ValueError):
            OpenAIClient(api_key="", param_prefix="/portfolio-agent")

    def test_token_parameter_name(self):
        client = OpenAIClient(params=FakeParameterSource(), api_key="", param_prefix="/portfolio-agent/")
        assert client.token_parameter_name == "/portfolio-agent/open-ai-token"


class TestChat:

    @pytest.mark.asyncio
    async def test_returns_text(self):
        chat_model = FakeChatModel(content='{"in_scope": true, "answer": "Hi"}')
        client, created = make_client(chat_model=chat_model)

        text = await client.chat(" gpt-4o-mini ", [HumanMessage(content="q")])

        assert text == '{"in_scope": true, "answer": "Hi"}'
        assert created["chat"] == [("gpt-4o-mini", "sk-test")]

    @pytest.mark.asyncio
    async def test_model_is_reused(self):
        client, created = make_client(chat_model=FakeChatModel(content="x"))

        await client.chat("gpt-4o-mini", [])
        await client.chat("gpt-4o-mini", [])

        assert len(created["chat"]) == 1

    @pytest.mark.asyncio
    async def test_empty_model_is_rejected(self):
        client, _ = make_client(chat_model=FakeChatModel(content="x"))
        with pytest.raises(ValueError):
            await client.chat("  ", [])

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [429, 500])
    async def test_status_error_carries_status(self, status):
        client, _ = make_client(chat_model=FakeChatModel(error=status_error(status)))

        with pytest.raises(UpstreamError) as exc_info:
            await client.chat("gpt-4o-mini", [])

        assert exc_info.value.status_code == status

    @pytest.mark.asyncio
    async def test_network_error_has_no_status(self):
        error = openai.APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))
        client, _ = make_client(chat_model=FakeChatModel(error=error))

        with pytest.raises(UpstreamError) as exc_info:
            await client.chat("gpt-4o-mini", [])

        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_empty_content_is_an_error(self):
        client, _ = make_client(chat_model=FakeChatModel(content=""))

        with pytest.raises(UpstreamError):
            await client.chat("gpt-4o-mini", [])


class TestModerate:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("flagged", [True, False])
    async def test_flag(self, flagged):
        moderations = FakeModerations(results=[SimpleNamespace(flagged=flagged)])
        client, _ = make_client(moderations=moderations)

        assert await client.moderate("question") is flagged
        assert moderations.inputs == ["question"]

    @pytest.mark.asyncio
    async def test_empty_results(self):
        client, _ = make_client(moderations=FakeModerations(results=[]))

        with pytest.raises(UpstreamError):
            await client.moderate("question")

    @pytest.mark.asyncio
    async def test_rate_limited(self):
        client, _ = make_client(moderations=FakeModerations(error=status_error(429, "moderations")))

        with pytest.raises(UpstreamError) as exc_info:
            await client.moderate("question")

        assert exc_info.value.status_code == 429


class TestApiKeyFromParameter:

    @pytest.mark.asyncio
    async def test_token_is_read_once(self):
        params = FakeParameterSource(values={
            "/portfolio-agent/open-ai-token": json.dumps({"token": "sk-from-store"}),
        })
        moderations = FakeModerations(results=[SimpleNamespace(flagged=False)])
        client, created = make_client(
            chat_model=FakeChatModel(content="x"), moderations=moderations, params=params, api_key=""
        )

        await client.moderate("a")
        await client.chat("gpt-4o-mini", [])
        await client.moderate("b")

        assert params.calls == ["/portfolio-agent/open-ai-token"]
        assert created["moderation"] == ["sk-from-store"]
        assert created["chat"] == [("gpt-4o-mini", "sk-from-store")]

    @pytest.mark.asyncio
    async def test_failed_token_read_is_retried(self):
        params = FakeParameterSource(values={
            "/portfolio-agent/open-ai-token": json.dumps({"token": ""}),
        })
        moderations = FakeModerations(results=[SimpleNamespace(flagged=False)])
        client, _ = make_client(moderations=moderations, params=params, api_key="")

        with pytest.raises(ValueError):
            await client.moderate("a")

        params.values["/portfolio-agent/open-ai-token"] = json.dumps({"token": "sk-fixed"})
        assert await client.moderate("b") is False
        assert len(params.calls) == 2
