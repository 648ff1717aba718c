"""
Domain models for the Portfolio Agent.
Plain dataclasses for workflow values and conversation records, plus the
pydantic model that defines the structured answer contract.
"""

import enum
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


class MessageStatus(str, enum.Enum):
    """Lifecycle of a persisted conversation message."""
    PENDING = "pending"
    COMPLETE = "complete"


@dataclass(frozen=True)
class AskInput:
    """Inbound question; conversation_id is optional and client-supplied."""
    question: str
    conversation_id: Optional[str] = None


@dataclass(frozen=True)
class AskOutput:
    answer: str
    conversation_id: str


@dataclass(frozen=True)
class ConversationMessage:
    """
    A persisted question/answer record.

    created_at is an ISO-8601 UTC timestamp; lexical order is chronological.
    """
    conversation_id: str
    text: str
    answer: str = ""
    status: str = MessageStatus.PENDING.value
    created_at: str = ""
    tokens: int = 0

    @property
    def is_complete(self) -> bool:
        return self.status == MessageStatus.COMPLETE.value


@dataclass(frozen=True)
class ConversationMeta:
    """Aggregate conversation state; turns counts successful in-scope answers."""
    conversation_id: str
    turns: int = 0
    last_activity: str = ""
    expires_at: int = 0


@dataclass(frozen=True)
class PromptContext:
    """Profile content embedded in every prompt."""
    pinned_prompt: str
    resume: str
    interests: str


@dataclass(frozen=True)
class ProfileConfig:
    """Everything the configuration cache loads in one episode."""
    prompt_context: PromptContext
    openai_model: str


class ScopedAnswer(BaseModel):
    """
    Combined relevance + answer output of the model.

    Exactly two keys are allowed. "inScope" is accepted as an alternate
    spelling of "in_scope".
    """
    model_config = ConfigDict(extra="forbid", strict=True, frozen=True)

    in_scope: bool = Field(validation_alias=AliasChoices("in_scope", "inScope"))
    answer: str

    @model_validator(mode="before")
    @classmethod
    def _reject_both_spellings(cls, data: Any) -> Any:
        # Only the consumed alias counts as used, so extra="forbid" misses the other
        if isinstance(data, dict) and "in_scope" in data and "inScope" in data:
            raise ValueError("in_scope and inScope must not both be present")
        return data

    @model_validator(mode="after")
    def _require_answer_when_in_scope(self) -> "ScopedAnswer":
        if self.in_scope and not self.answer.strip():
            raise ValueError("answer must not be empty for an in-scope question")
        return self
