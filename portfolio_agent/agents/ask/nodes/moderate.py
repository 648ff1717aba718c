"""
Moderate node - safety check of the raw question
"""

from loguru import logger

from portfolio_agent.agents.ask.state import AskState
from portfolio_agent.agents.ask.context import AskContext, is_rate_limited, within_deadline
from portfolio_agent.utils.errors import AskError, ErrorCode


async def moderate_node(state: AskState, ctx: AskContext) -> dict:
    """Run the question through moderation; flagged questions stop here."""
    try:
        flagged = await within_deadline(ctx.llm.moderate(state["question"]), state.get("deadline"))
    except Exception as e:
        if is_rate_limited(e):
            logger.warning("Moderation rate limited")
            raise AskError(ErrorCode.RATE_LIMITED, "moderation_rate_limited") from e
        logger.error(f"Moderation call failed: {e}")
        raise AskError(ErrorCode.UPSTREAM, "moderation_error") from e

    if flagged:
        logger.info(f"Question flagged by moderation (conversation={state['conversation_id']})")
        raise AskError(ErrorCode.INVALID_QUESTION, "moderation_flagged")

    return {}
