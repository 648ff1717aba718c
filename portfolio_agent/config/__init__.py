"""
Configuration layer - Settings
"""

from portfolio_agent.config.settings import settings, Settings, PROJECT_ROOT, resolve_path

__all__ = [
    "settings",
    "Settings",
    "PROJECT_ROOT",
    "resolve_path",
]
