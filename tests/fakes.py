"""
Shared fakes for the ask workflow collaborators
"""

import asyncio
import json

from portfolio_agent.models.domain import ConversationMessage, MessageStatus
from portfolio_agent.utils.errors import ParameterNotFoundError, StoreError


PREFIX = "/portfolio-agent"

PROFILE_PARAMS = {
    f"{PREFIX}/resume": "Senior engineer.\n\n  Built   payment   systems in Go and Python.",
    f"{PREFIX}/interests": "Distributed systems,\n  climbing,   coffee.",
    f"{PREFIX}/pinned_prompt": "  Keep answers under 120 words.  ",
    f"{PREFIX}/config/openai_model": " gpt-4o-mini ",
}


def scoped(in_scope: bool, answer: str) -> str:
    return json.dumps({"inScope": in_scope, "answer": answer})


class FakeParameterSource:
    """In-memory parameter source that records every lookup"""

    def __init__(self, values=None, fail_on=None, delay: float = 0.0):
        self.values = dict(PROFILE_PARAMS if values is None else values)
        self.fail_on = set(fail_on or [])
        self.delay = delay
        self.calls = []

    async def get_parameter(self, name: str) -> str:
        self.calls.append(name)
        if self.delay:
            await asyncio.sleep(self.delay)
        if name in self.fail_on:
            raise ConnectionError(f"parameter backend unavailable for {name}")
        if name not in self.values:
            raise ParameterNotFoundError(f"parameter not found: {name}")
        return self.values[name]


class FakeLLM:
    """Scripted chat + moderation client"""

    def __init__(
        self,
        response: str = None,
        flagged: bool = False,
        moderation_error: Exception = None,
        chat_error: Exception = None,
        chat_delay: float = 0.0,
    ):
        self.response = response if response is not None else scoped(True, "I am a software engineer.")
        self.flagged = flagged
        self.moderation_error = moderation_error
        self.chat_error = chat_error
        self.chat_delay = chat_delay
        self.chat_calls = []
        self.moderation_calls = []

    async def chat(self, model, messages):
        self.chat_calls.append((model, list(messages)))
        if self.chat_delay:
            await asyncio.sleep(self.chat_delay)
        if self.chat_error is not None:
            raise self.chat_error
        return self.response

    async def moderate(self, text):
        self.moderation_calls.append(text)
        if self.moderation_error is not None:
            raise self.moderation_error
        return self.flagged


class FakeStateStore:
    """In-memory state store; history is returned in the order it was seeded"""

    def __init__(self, turns=None, history=None, fail_turns=False, fail_history=False, fail_save=False):
        self.turns = dict(turns or {})
        self.history = dict(history or {})
        self.fail_turns = fail_turns
        self.fail_history = fail_history
        self.fail_save = fail_save
        self.turn_count_calls = []
        self.history_calls = []
        self.saved = []

    async def get_turn_count(self, conversation_id):
        self.turn_count_calls.append(conversation_id)
        if self.fail_turns:
            raise StoreError("turn count unavailable")
        return self.turns.get(conversation_id, 0)

    async def get_history(self, conversation_id, limit):
        self.history_calls.append((conversation_id, limit))
        if self.fail_history:
            raise StoreError("history unavailable")
        return list(self.history.get(conversation_id, []))[:limit]

    async def save_completed_turn(self, conversation_id, question, answer, turns):
        if self.fail_save:
            raise StoreError("write conflict")
        self.saved.append({
            "conversation_id": conversation_id,
            "question": question,
            "answer": answer,
            "turns": turns,
            "status": MessageStatus.COMPLETE.value,
        })
        self.turns[conversation_id] = turns


def complete_message(conversation_id, text, answer, created_at):
    return ConversationMessage(
        conversation_id=conversation_id,
        text=text,
        answer=answer,
        status=MessageStatus.COMPLETE.value,
        created_at=created_at,
    )
