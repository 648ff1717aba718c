"""
Ask workflow nodes
"""

from portfolio_agent.agents.ask.nodes.validate import (
    validate_node,
    resolve_conversation_node,
    turn_check_node,
)
from portfolio_agent.agents.ask.nodes.config import config_ready_node
from portfolio_agent.agents.ask.nodes.moderate import moderate_node
from portfolio_agent.agents.ask.nodes.history import history_fetch_node, build_prompt_node
from portfolio_agent.agents.ask.nodes.generate import generate_node, parse_output_node
from portfolio_agent.agents.ask.nodes.persist import persist_node

__all__ = [
    "validate_node",
    "config_ready_node",
    "resolve_conversation_node",
    "turn_check_node",
    "moderate_node",
    "history_fetch_node",
    "build_prompt_node",
    "generate_node",
    "parse_output_node",
    "persist_node",
]
