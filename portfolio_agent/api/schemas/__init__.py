"""
API schemas for request/response models
"""

from portfolio_agent.api.schemas.ask import AskRequest, AskResponse, ErrorResponse
from portfolio_agent.api.schemas.health import HealthResponse

__all__ = [
    "AskRequest",
    "AskResponse",
    "ErrorResponse",
    "HealthResponse",
]
