"""
Ask workflow context - dependencies passed to workflow nodes
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Optional, TypeVar

from portfolio_agent.agents.ask.config_cache import ConfigurationCache
from portfolio_agent.agents.ask.contracts import LLMClient, StateStore
from portfolio_agent.utils.errors import UpstreamError

T = TypeVar("T")

RATE_LIMIT_STATUS = 429


@dataclass
class AskContext:
    """Context holding dependencies and limits for ask nodes"""

    llm: LLMClient
    state_store: StateStore
    config_cache: ConfigurationCache
    max_context_items: int
    max_question_length: int
    max_conversation_turns: int


async def within_deadline(awaitable: Awaitable[T], deadline: Optional[float]) -> T:
    """Await an external call, failing with TimeoutError once the deadline passes."""
    if deadline is None:
        return await awaitable
    remaining = deadline - asyncio.get_running_loop().time()
    return await asyncio.wait_for(awaitable, timeout=max(remaining, 0.0))


def is_rate_limited(error: BaseException) -> bool:
    return isinstance(error, UpstreamError) and error.status_code == RATE_LIMIT_STATUS
