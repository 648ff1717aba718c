"""
Memory layer - Conversation state persistence
"""

from portfolio_agent.memory.conversation_store import ConversationStore

__all__ = [
    "ConversationStore",
]
