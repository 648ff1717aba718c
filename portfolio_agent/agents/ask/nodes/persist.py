"""
Persist node - atomic write of the completed turn and conversation meta
"""

from loguru import logger

from portfolio_agent.agents.ask.state import AskState
from portfolio_agent.agents.ask.context import AskContext, within_deadline
from portfolio_agent.utils.errors import AskError, ErrorCode


async def persist_node(state: AskState, ctx: AskContext) -> dict:
    conversation_id = state["conversation_id"]
    turns = state.get("existing_turns", 0) + 1
    try:
        await within_deadline(
            ctx.state_store.save_completed_turn(
                conversation_id, state["question"], state["answer"], turns
            ),
            state.get("deadline"),
        )
    except Exception as e:
        logger.error(f"Saving turn {turns} failed for conversation {conversation_id}: {e}")
        raise AskError(ErrorCode.INTERNAL, "persist_error") from e

    logger.info(f"Saved turn {turns} for conversation {conversation_id}")
    return {}
