"""
Shared utilities - logging, errors and the single-flight loader
"""

from portfolio_agent.utils.errors import (
    AgentError,
    AskError,
    ErrorCode,
    MalformedResponseError,
    ParameterNotFoundError,
    StoreError,
    UpstreamError,
)
from portfolio_agent.utils.once import OnceGuard

__all__ = [
    "AgentError",
    "AskError",
    "ErrorCode",
    "MalformedResponseError",
    "ParameterNotFoundError",
    "StoreError",
    "UpstreamError",
    "OnceGuard",
]
