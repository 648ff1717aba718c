"""
Ask Workflow - validates, moderates, answers and persists questions
"""

from portfolio_agent.agents.ask.agent import AskWorkflow
from portfolio_agent.agents.ask.config_cache import ConfigurationCache
from portfolio_agent.agents.ask.parser import parse_scoped_answer
from portfolio_agent.agents.ask.prompts import build_prompt_messages
from portfolio_agent.agents.ask.state import AskState

__all__ = [
    "AskWorkflow",
    "ConfigurationCache",
    "parse_scoped_answer",
    "build_prompt_messages",
    "AskState",
]
