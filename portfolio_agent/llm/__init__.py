"""
LLM layer - OpenAI client and response utilities
"""

from portfolio_agent.llm.client import OpenAIClient, create_chat_model
from portfolio_agent.llm.response_utils import extract_text_from_response

__all__ = [
    "OpenAIClient",
    "create_chat_model",
    "extract_text_from_response",
]
