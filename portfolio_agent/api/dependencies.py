"""
FastAPI dependencies
"""

from fastapi import Request

from portfolio_agent.agents.ask import AskWorkflow


def get_ask_workflow(request: Request) -> AskWorkflow:
    """Workflow built by the application lifespan"""
    workflow = getattr(request.app.state, "ask_workflow", None)
    if workflow is None:
        raise RuntimeError("ask workflow is not initialized")
    return workflow


def get_correlation_id(request: Request) -> str:
    """Correlation id assigned by the correlation middleware"""
    return getattr(request.state, "correlation_id", "-")
