"""
Agents - ask workflow
"""

from portfolio_agent.agents.ask import AskWorkflow

__all__ = ["AskWorkflow"]
