"""
Custom error classes for the application
"""

from enum import Enum
from typing import Optional


class AgentError(Exception):
    """Base exception for agent errors"""
    pass


class ErrorCode(str, Enum):
    """Error kinds surfaced to the transport layer."""
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_QUESTION = "INVALID_QUESTION"
    RATE_LIMITED = "RATE_LIMITED"
    UPSTREAM = "UPSTREAM_ERROR"
    INTERNAL = "INTERNAL_ERROR"


class AskError(AgentError):
    """
    Classified failure of one ask invocation.

    The reason is a short machine-readable string; the underlying failure,
    if any, is chained as __cause__.
    """

    def __init__(self, code: ErrorCode, reason: str):
        self.code = code
        self.reason = reason
        super().__init__(f"{code.value} ({reason})")

    @property
    def cause(self) -> Optional[BaseException]:
        return self.__cause__


class UpstreamError(AgentError):
    """Failure talking to the LLM provider. status_code is None for network errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class MalformedResponseError(AgentError):
    """Model output did not match the structured answer contract"""
    pass


class ParameterNotFoundError(AgentError):
    """Requested parameter does not exist in the parameter source"""
    pass


class StoreError(AgentError):
    """Conversation store read or write failed"""
    pass
