"""
Ask Workflow - Main LangGraph workflow

Validates, moderates, answers and persists one question.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from langgraph.graph import StateGraph, END
from loguru import logger

from portfolio_agent.config.settings import (
    DEFAULT_MAX_CONTEXT_ITEMS,
    DEFAULT_MAX_CONVERSATION_TURNS,
    DEFAULT_MAX_QUESTION_LENGTH,
    settings,
)
from portfolio_agent.models.domain import AskInput, AskOutput

from portfolio_agent.agents.ask.config_cache import ConfigurationCache
from portfolio_agent.agents.ask.contracts import LLMClient, ParameterSource, StateStore
from portfolio_agent.agents.ask.context import AskContext
from portfolio_agent.agents.ask.state import AskState
from portfolio_agent.agents.ask.nodes import (
    validate_node,
    config_ready_node,
    resolve_conversation_node,
    turn_check_node,
    moderate_node,
    history_fetch_node,
    build_prompt_node,
    generate_node,
    parse_output_node,
    persist_node,
)


def _positive_or_default(value: Optional[int], configured: int, default: int) -> int:
    if value is None:
        value = configured
    return value if value and value > 0 else default


def _route_after_resolve(state: AskState) -> str:
    """Only client-supplied conversations have a persisted turn count to check."""
    if state.get("conversation_supplied"):
        return "turn_check"
    return "moderate"


def _bind(node: Callable[[AskState, AskContext], Awaitable[dict]], ctx: AskContext):
    async def run(state: AskState) -> dict:
        return await node(state, ctx)

    run.__name__ = node.__name__
    return run


class AskWorkflow:
    """
    Orchestrates one ask request end to end.

    Workflow: START → validate → config_ready → resolve_conversation
    → [turn_check] → moderate → history_fetch → build_prompt → generate
    → parse_output → persist → END

    Every failure is raised as an AskError at the node that detects it.
    Nothing is persisted unless the answer is in scope and well formed.
    """

    def __init__(
        self,
        params: ParameterSource,
        llm: LLMClient,
        state_store: StateStore,
        param_prefix: Optional[str] = None,
        max_context_items: Optional[int] = None,
        max_question_length: Optional[int] = None,
        max_conversation_turns: Optional[int] = None,
    ):
        if params is None:
            raise ValueError("parameter source must not be None")
        if llm is None:
            raise ValueError("llm client must not be None")
        if state_store is None:
            raise ValueError("state store must not be None")

        self.config_cache = ConfigurationCache(
            params, param_prefix if param_prefix is not None else settings.param_prefix
        )
        self.ctx = AskContext(
            llm=llm,
            state_store=state_store,
            config_cache=self.config_cache,
            max_context_items=_positive_or_default(
                max_context_items, settings.max_context_items, DEFAULT_MAX_CONTEXT_ITEMS
            ),
            max_question_length=_positive_or_default(
                max_question_length, settings.max_question_length, DEFAULT_MAX_QUESTION_LENGTH
            ),
            max_conversation_turns=_positive_or_default(
                max_conversation_turns, settings.max_conversation_turns, DEFAULT_MAX_CONVERSATION_TURNS
            ),
        )

        self.workflow = self._build_workflow()

        logger.info(
            f"Initialized AskWorkflow (prefix={self.config_cache.param_prefix}, "
            f"max_context_items={self.ctx.max_context_items}, "
            f"max_question_length={self.ctx.max_question_length}, "
            f"max_conversation_turns={self.ctx.max_conversation_turns})"
        )

    def _build_workflow(self):
        """Build the LangGraph workflow."""
        ctx = self.ctx
        workflow = StateGraph(AskState)

        workflow.add_node("validate", _bind(validate_node, ctx))
        workflow.add_node("config_ready", _bind(config_ready_node, ctx))
        workflow.add_node("resolve_conversation", _bind(resolve_conversation_node, ctx))
        workflow.add_node("turn_check", _bind(turn_check_node, ctx))
        workflow.add_node("moderate", _bind(moderate_node, ctx))
        workflow.add_node("history_fetch", _bind(history_fetch_node, ctx))
        workflow.add_node("build_prompt", _bind(build_prompt_node, ctx))
        workflow.add_node("generate", _bind(generate_node, ctx))
        workflow.add_node("parse_output", _bind(parse_output_node, ctx))
        workflow.add_node("persist", _bind(persist_node, ctx))

        workflow.set_entry_point("validate")
        workflow.add_edge("validate", "config_ready")
        workflow.add_edge("config_ready", "resolve_conversation")
        workflow.add_conditional_edges(
            "resolve_conversation",
            _route_after_resolve,
            {
                "turn_check": "turn_check",
                "moderate": "moderate",
            },
        )
        workflow.add_edge("turn_check", "moderate")
        workflow.add_edge("moderate", "history_fetch")
        workflow.add_edge("history_fetch", "build_prompt")
        workflow.add_edge("build_prompt", "generate")
        workflow.add_edge("generate", "parse_output")
        workflow.add_edge("parse_output", "persist")
        workflow.add_edge("persist", END)

        return workflow.compile()

    async def ask(self, ask_input: AskInput, timeout: Optional[float] = None) -> AskOutput:
        """
        Answer one question.

        Args:
            ask_input: Question and optional client conversation id
            timeout: Seconds allowed for the whole request; each external
                step fails (and is classified) once it runs past the deadline

        Returns:
            AskOutput with the answer and the conversation id

        Raises:
            AskError: classified failure of any step
        """
        deadline = None
        if timeout is not None:
            deadline = asyncio.get_running_loop().time() + timeout

        result = await self.workflow.ainvoke({
            "question": ask_input.question,
            "requested_conversation_id": ask_input.conversation_id,
            "deadline": deadline,
        })

        return AskOutput(answer=result["answer"], conversation_id=result["conversation_id"])
