"""
Generate nodes - scoped answer call and strict output parsing
"""

from loguru import logger

from portfolio_agent.agents.ask.parser import parse_scoped_answer
from portfolio_agent.agents.ask.state import AskState
from portfolio_agent.agents.ask.context import AskContext, is_rate_limited, within_deadline
from portfolio_agent.utils.errors import AskError, ErrorCode, MalformedResponseError


async def generate_node(state: AskState, ctx: AskContext) -> dict:
    """Single combined relevance + answer call."""
    model = state["profile"].openai_model
    try:
        raw = await within_deadline(
            ctx.llm.chat(model, state["messages"]), state.get("deadline")
        )
    except Exception as e:
        if is_rate_limited(e):
            logger.warning(f"Chat completion rate limited (model={model})")
            raise AskError(ErrorCode.RATE_LIMITED, "openai_rate_limited") from e
        logger.error(f"Chat completion failed (model={model}): {e}")
        raise AskError(ErrorCode.UPSTREAM, "openai_error") from e
    return {"raw_response": raw}


async def parse_output_node(state: AskState, ctx: AskContext) -> dict:
    try:
        decision = parse_scoped_answer(state["raw_response"])
    except MalformedResponseError as e:
        logger.warning(f"Malformed scoped answer: {e}")
        raise AskError(ErrorCode.UPSTREAM, "openai_malformed_response") from e

    if not decision.in_scope:
        logger.info(f"Question classified off-topic (conversation={state['conversation_id']})")
        raise AskError(ErrorCode.INVALID_QUESTION, "relevance_off_topic")

    return {"answer": decision.answer}
