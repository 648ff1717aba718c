"""
Ask workflow state
"""

from typing import List, Optional, TypedDict

from langchain_core.messages import BaseMessage

from portfolio_agent.models.domain import ConversationMessage, ProfileConfig


class AskState(TypedDict, total=False):
    """State carried through the ask workflow"""
    question: str
    requested_conversation_id: Optional[str]  # As sent by the client, untrimmed
    deadline: Optional[float]  # Event loop time after which external steps fail
    conversation_id: str
    conversation_supplied: bool
    profile: ProfileConfig
    existing_turns: int  # Persisted turn count before this request (0 for new ids)
    history: List[ConversationMessage]
    messages: List[BaseMessage]
    raw_response: str
    answer: str
