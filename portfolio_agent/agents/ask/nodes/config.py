"""
Config node - makes sure the cached profile configuration is available
"""

from loguru import logger

from portfolio_agent.agents.ask.state import AskState
from portfolio_agent.agents.ask.context import AskContext, within_deadline
from portfolio_agent.utils.errors import AskError, ErrorCode


async def config_ready_node(state: AskState, ctx: AskContext) -> dict:
    try:
        profile = await within_deadline(ctx.config_cache.ensure_loaded(), state.get("deadline"))
    except Exception as e:
        logger.error(f"Profile configuration load failed: {e}")
        raise AskError(ErrorCode.INTERNAL, "config_load_error") from e
    return {"profile": profile}
