"""
Domain models
"""

from portfolio_agent.models.domain import (
    AskInput,
    AskOutput,
    ConversationMessage,
    ConversationMeta,
    MessageStatus,
    ProfileConfig,
    PromptContext,
    ScopedAnswer,
)

__all__ = [
    "AskInput",
    "AskOutput",
    "ConversationMessage",
    "ConversationMeta",
    "MessageStatus",
    "ProfileConfig",
    "PromptContext",
    "ScopedAnswer",
]
