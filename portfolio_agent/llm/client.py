"""
LLM client

Chat completions go through LangChain's ChatOpenAI with a strict JSON schema
response format; moderation uses the OpenAI SDK directly. Provider failures
are translated into UpstreamError carrying the HTTP status when there is one.
"""

import json
from typing import Any, Callable, Dict, Optional, Sequence

import openai
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage
from langchain_openai import ChatOpenAI
from loguru import logger

from portfolio_agent.agents.ask.config_cache import normalize_prefix
from portfolio_agent.agents.ask.contracts import ParameterSource
from portfolio_agent.config.settings import settings
from portfolio_agent.llm.response_utils import extract_text_from_response
from portfolio_agent.utils.errors import UpstreamError
from portfolio_agent.utils.once import OnceGuard


DEFAULT_BASE_URL = "https://api.openai.com/v1"
TOKEN_PARAMETER = "open-ai-token"

SCOPED_ANSWER_RESPONSE_FORMAT: Dict[str, Any] = {
    "type": "json_schema",
    "json_schema": {
        "name": "scoped_answer",
        "strict": True,
        "schema": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "in_scope": {"type": "boolean"},
                "answer": {"type": "string"},
            },
            "required": ["in_scope", "answer"],
        },
    },
}


def normalize_base_url(base_url: Optional[str]) -> str:
    """Strip trailing slashes and make sure the URL ends with /v1."""
    base = (base_url or "").strip().rstrip("/")
    if not base:
        return DEFAULT_BASE_URL
    if base.endswith("/v1"):
        return base
    return base + "/v1"


def parse_token_payload(raw: str) -> str:
    """Extract the API token from the stored JSON payload {"token": "..."}."""
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise ValueError("API token parameter is not valid JSON") from e
    token = payload.get("token") if isinstance(payload, dict) else None
    if not isinstance(token, str) or not token.strip():
        raise ValueError("API token is empty")
    return token.strip()


def create_chat_model(
    model: str,
    api_key: str,
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
    temperature: Optional[float] = None,
) -> BaseChatModel:
    """
    Factory function to create the chat model used for scoped answers.

    Retries are disabled: a failed call is classified and returned to the
    caller, which decides whether to retry.

    Returns:
        LangChain ChatOpenAI bound to the scoped answer response format
    """
    kwargs: Dict[str, Any] = {
        "model": model,
        "api_key": api_key,
        "base_url": normalize_base_url(base_url or settings.openai_base_url),
        "timeout": timeout if timeout is not None else settings.openai_timeout_seconds,
        "max_retries": 0,
    }
    if temperature is not None:
        kwargs["temperature"] = temperature

    return ChatOpenAI(**kwargs).bind(response_format=SCOPED_ANSWER_RESPONSE_FORMAT)


def _to_upstream_error(action: str, error: Exception) -> UpstreamError:
    if isinstance(error, openai.APIStatusError):
        return UpstreamError(
            f"openai: {action} returned status {error.status_code}",
            status_code=error.status_code,
        )
    if isinstance(error, openai.APITimeoutError):
        return UpstreamError(f"openai: {action} timed out")
    return UpstreamError(f"openai: {action} failed: {type(error).__name__}")


class OpenAIClient:
    """
    Chat + moderation client for the ask workflow.

    The API key comes from settings when configured, otherwise from the
    {prefix}/open-ai-token parameter. It is resolved on first use and reused
    for the process lifetime; a failed resolution is retried on the next call.
    """

    def __init__(
        self,
        params: Optional[ParameterSource] = None,
        param_prefix: Optional[str] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        temperature: Optional[float] = None,
        chat_model_factory: Optional[Callable[[str, str], Any]] = None,
        moderation_client_factory: Optional[Callable[[str], Any]] = None,
    ):
        api_key = (api_key if api_key is not None else settings.openai_api_key).strip()
        if not api_key and params is None:
            raise ValueError("either an API key or a parameter source is required")

        self._params = params
        self._param_prefix = normalize_prefix(
            param_prefix if param_prefix is not None else settings.param_prefix
        )
        self._static_api_key = api_key
        self.base_url = normalize_base_url(base_url or settings.openai_base_url)
        self.timeout = timeout if timeout is not None else settings.openai_timeout_seconds
        self.temperature = temperature if temperature is not None else settings.openai_temperature

        self._chat_model_factory = chat_model_factory or self._default_chat_model
        self._moderation_client_factory = moderation_client_factory or self._default_moderation_client
        self._chat_models: Dict[str, Any] = {}
        self._moderation_client = None

        self._api_key = OnceGuard(self._resolve_api_key, name="OpenAI API key")

    @property
    def token_parameter_name(self) -> str:
        return f"{self._param_prefix}/{TOKEN_PARAMETER}"

    async def _resolve_api_key(self) -> str:
        if self._static_api_key:
            return self._static_api_key
        raw = await self._params.get_parameter(self.token_parameter_name)
        return parse_token_payload(raw)

    def _default_chat_model(self, model: str, api_key: str):
        return create_chat_model(
            model,
            api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            temperature=self.temperature,
        )

    def _default_moderation_client(self, api_key: str):
        return openai.AsyncOpenAI(
            api_key=api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=0,
        )

    async def _get_chat_model(self, model: str):
        api_key = await self._api_key.get()
        chat_model = self._chat_models.get(model)
        if chat_model is None:
            chat_model = self._chat_model_factory(model, api_key)
            self._chat_models[model] = chat_model
        return chat_model

    async def _get_moderation_client(self):
        api_key = await self._api_key.get()
        if self._moderation_client is None:
            self._moderation_client = self._moderation_client_factory(api_key)
        return self._moderation_client

    async def chat(self, model: str, messages: Sequence[BaseMessage]) -> str:
        """
        Request the scoped answer for the given messages.

        Returns:
            Raw assistant text (expected to be the scoped answer JSON)
        """
        model = (model or "").strip()
        if not model:
            raise ValueError("model must not be empty")

        chat_model = await self._get_chat_model(model)
        try:
            response = await chat_model.ainvoke(list(messages))
        except openai.OpenAIError as e:
            raise _to_upstream_error("chat completion", e) from e

        text = extract_text_from_response(response)
        if not text:
            raise UpstreamError("openai: no content in chat completion")
        logger.debug(f"Chat completion returned {len(text)} characters (model={model})")
        return text

    async def moderate(self, text: str) -> bool:
        """Return True when the moderation endpoint flags the input."""
        client = await self._get_moderation_client()
        try:
            result = await client.moderations.create(input=text)
        except openai.OpenAIError as e:
            raise _to_upstream_error("moderation", e) from e

        results = getattr(result, "results", None) or []
        if not results:
            raise UpstreamError("openai: no results in moderation response")
        return bool(results[0].flagged)
