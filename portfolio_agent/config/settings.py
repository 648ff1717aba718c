"""
Configuration management for the application.
Loads settings from environment variables and the project .env file.
"""

from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings
from dotenv import load_dotenv
from loguru import logger

# Find project root (where .env and data/ live)
# This file is at portfolio_agent/config/settings.py, so project root is 3 levels up
_project_root = Path(__file__).resolve().parent.parent.parent

# Export for use by stores and the logger - ensures consistent data/ paths
PROJECT_ROOT = _project_root

DEFAULT_MAX_CONTEXT_ITEMS = 20
DEFAULT_MAX_QUESTION_LENGTH = 300
DEFAULT_MAX_CONVERSATION_TURNS = 10

# Load environment variables from project root
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(dotenv_path=_env_file, override=True)
    logger.debug(f"Loaded .env from: {_env_file}")
else:
    load_dotenv(override=False)


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Parameter source (profile content and model name live under this prefix)
    param_prefix: str = Field(default="/portfolio-agent")
    parameter_db_path: str = Field(default="data/parameters.db")

    # OpenAI Configuration
    openai_api_key: str = Field(default="")  # Empty: read {param_prefix}/open-ai-token instead
    openai_base_url: str = Field(default="https://api.openai.com/v1")
    openai_timeout_seconds: float = Field(default=10.0)
    openai_temperature: Optional[float] = Field(default=None)  # Some models reject temperature

    # Ask workflow limits
    max_context_items: int = Field(default=DEFAULT_MAX_CONTEXT_ITEMS)  # History records loaded per request
    max_question_length: int = Field(default=DEFAULT_MAX_QUESTION_LENGTH)
    max_conversation_turns: int = Field(default=DEFAULT_MAX_CONVERSATION_TURNS)
    request_timeout_seconds: Optional[float] = Field(default=25.0)

    # Conversation state
    state_db_path: str = Field(default="data/conversations.db")
    conversation_ttl_days: int = Field(default=30)
    conversation_cleanup_interval_hours: int = Field(default=1)

    # Logging
    log_level: str = Field(default="INFO")
    log_file_enabled: bool = Field(default=False)
    log_dir: str = Field(default="data/logs")

    # HTTP
    cors_allow_origins: List[str] = Field(default=["*"])

    class Config:
        env_file = str(_project_root / ".env")
        env_file_encoding = "utf-8"
        extra = "allow"  # Allow extra fields from .env


def resolve_path(path: str) -> Path:
    """Resolve a configured path against the project root unless already absolute."""
    resolved = Path(path)
    if not resolved.is_absolute():
        resolved = _project_root / resolved
    return resolved


# Create global settings instance
settings = Settings()
