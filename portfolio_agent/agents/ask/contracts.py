"""
Collaborator contracts consumed by the ask workflow
"""

from typing import List, Protocol, Sequence

from langchain_core.messages import BaseMessage

from portfolio_agent.models.domain import ConversationMessage


class ParameterSource(Protocol):
    """Key-value parameter lookup; raises when the name is missing or unreadable."""

    async def get_parameter(self, name: str) -> str:
        ...


class LLMClient(Protocol):
    """
    Chat and moderation capability.

    Failures raise UpstreamError with the provider's HTTP status when known.
    """

    async def chat(self, model: str, messages: Sequence[BaseMessage]) -> str:
        ...

    async def moderate(self, text: str) -> bool:
        ...


class StateStore(Protocol):
    """Conversation state reads and the atomic completed-turn write."""

    async def get_turn_count(self, conversation_id: str) -> int:
        ...

    async def get_history(self, conversation_id: str, limit: int) -> List[ConversationMessage]:
        ...

    async def save_completed_turn(
        self, conversation_id: str, question: str, answer: str, turns: int
    ) -> None:
        ...
