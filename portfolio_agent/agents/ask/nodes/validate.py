"""
Validation nodes - question checks, conversation id resolution and turn limit
"""

import uuid

from loguru import logger

from portfolio_agent.agents.ask.state import AskState
from portfolio_agent.agents.ask.context import AskContext, within_deadline
from portfolio_agent.utils.errors import AskError, ErrorCode


def new_conversation_id() -> str:
    return str(uuid.uuid4())


async def validate_node(state: AskState, ctx: AskContext) -> dict:
    """Trim the question and enforce the non-empty / max length rules.

    Length is measured in UTF-8 bytes.
    """
    question = (state.get("question") or "").strip()
    if not question:
        raise AskError(ErrorCode.INVALID_INPUT, "empty_question")
    if len(question.encode("utf-8")) > ctx.max_question_length:
        raise AskError(ErrorCode.INVALID_INPUT, "question_too_long")
    return {"question": question}


async def resolve_conversation_node(state: AskState, ctx: AskContext) -> dict:
    """Use the client's conversation id when given, otherwise start a new one."""
    requested = (state.get("requested_conversation_id") or "").strip()
    if requested:
        return {"conversation_id": requested, "conversation_supplied": True, "existing_turns": 0}

    conversation_id = new_conversation_id()
    logger.debug(f"Started new conversation {conversation_id}")
    return {"conversation_id": conversation_id, "conversation_supplied": False, "existing_turns": 0}


async def turn_check_node(state: AskState, ctx: AskContext) -> dict:
    """Reject conversations that already used up their turns, before any paid call."""
    conversation_id = state["conversation_id"]
    try:
        turns = await within_deadline(
            ctx.state_store.get_turn_count(conversation_id), state.get("deadline")
        )
    except Exception as e:
        logger.error(f"Turn count read failed for conversation {conversation_id}: {e}")
        raise AskError(ErrorCode.INTERNAL, "turn_count_error") from e

    if turns >= ctx.max_conversation_turns:
        logger.info(f"Conversation {conversation_id} reached the turn limit ({turns})")
        raise AskError(ErrorCode.INVALID_INPUT, "conversation_turn_limit")

    return {"existing_turns": turns}
