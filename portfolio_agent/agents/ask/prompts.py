"""
Ask prompt templates and message assembly
"""

from typing import List, Sequence

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from portfolio_agent.models.domain import ConversationMessage, PromptContext


BEHAVIOR_RULES = [
    "1) Answer only the current user question in this request.",
    "2) Use first-person voice as the portfolio owner.",
    "3) Keep responses professional and concise.",
    "4) Use only resume, interests, and completed conversation history as sources.",
    "5) Treat questions unrelated to recruiting for a professional role as off-topic.",
    "6) If required information is unavailable, respond exactly: \"I don't have that information.\"",
]

OUTPUT_CONTRACT = (
    "Return JSON only with keys in_scope (boolean) and answer (string). "
    "If out of scope, return in_scope=false and answer=\"\". "
    "If in scope, return in_scope=true and provide the final user-facing answer in answer."
)


def build_policy_prompt() -> str:
    """Fixed role, source and output rules sent as the first system message."""
    return "\n".join([
        "Role:",
        "You are answering as the portfolio owner in first person.",
        "",
        "Task:",
        "Determine whether the current question is relevant to recruiting for a professional role.",
        "If relevant, answer using only the approved sources.",
        "If not relevant, return out of scope.",
        "",
        "Approved Sources:",
        "- Resume content provided in this request",
        "- Interests provided in this request",
        "- Completed prior conversation turns in this request",
        "",
        "Behavior Rules:",
        "\n".join(BEHAVIOR_RULES),
        "",
        "Output Contract:",
        OUTPUT_CONTRACT,
    ])


def normalize_prompt_input(text: str) -> str:
    """Collapse internal whitespace runs to single spaces and trim."""
    return " ".join((text or "").split())


def build_profile_context_prompt(ctx: PromptContext) -> str:
    """Pinned prompt followed by the normalized resume and interests."""
    return (
        f"{(ctx.pinned_prompt or '').strip()}\n\n"
        f"Portfolio Context:\n\n"
        f"Resume:\n{normalize_prompt_input(ctx.resume)}\n\n"
        f"Interests:\n{normalize_prompt_input(ctx.interests)}"
    )


def history_to_prompt_messages(record: ConversationMessage) -> List[BaseMessage]:
    """Replay a completed turn as a user/assistant pair; anything else yields nothing."""
    if not record.is_complete:
        return []
    question = (record.text or "").strip()
    answer = (record.answer or "").strip()
    if not question or not answer:
        return []
    return [HumanMessage(content=question), AIMessage(content=answer)]


def build_prompt_messages(
    ctx: PromptContext,
    question: str,
    history: Sequence[ConversationMessage],
) -> List[BaseMessage]:
    """
    Assemble the full message list for the scoped answer call.

    Layout: policy system message, profile system message, one user/assistant
    pair per eligible history record (oldest first), then the current question.
    History is sorted by created_at; the sort is stable so records without a
    timestamp keep the order they were given in.
    """
    messages: List[BaseMessage] = [
        SystemMessage(content=build_policy_prompt()),
        SystemMessage(content=build_profile_context_prompt(ctx)),
    ]

    for record in sorted(history, key=lambda m: m.created_at or ""):
        messages.extend(history_to_prompt_messages(record))

    messages.append(HumanMessage(content=question))
    return messages
