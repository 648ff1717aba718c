"""
History nodes - load recent turns and assemble the prompt
"""

from loguru import logger

from portfolio_agent.agents.ask.prompts import build_prompt_messages
from portfolio_agent.agents.ask.state import AskState
from portfolio_agent.agents.ask.context import AskContext, within_deadline
from portfolio_agent.utils.errors import AskError, ErrorCode


async def history_fetch_node(state: AskState, ctx: AskContext) -> dict:
    conversation_id = state["conversation_id"]
    try:
        history = await within_deadline(
            ctx.state_store.get_history(conversation_id, ctx.max_context_items),
            state.get("deadline"),
        )
    except Exception as e:
        logger.error(f"History read failed for conversation {conversation_id}: {e}")
        raise AskError(ErrorCode.INTERNAL, "history_error") from e

    logger.debug(f"Loaded {len(history)} history records for conversation {conversation_id}")
    return {"history": list(history)}


async def build_prompt_node(state: AskState, ctx: AskContext) -> dict:
    messages = build_prompt_messages(
        state["profile"].prompt_context,
        state["question"],
        state.get("history", []),
    )
    logger.debug(f"Built prompt with {len(messages)} messages")
    return {"messages": messages}
