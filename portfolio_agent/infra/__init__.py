"""
Infrastructure layer - Parameter storage
"""

from portfolio_agent.infra.parameter_store import ParameterStore

__all__ = ["ParameterStore"]
