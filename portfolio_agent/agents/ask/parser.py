"""
Structured response parser - strict decoding of the model's scoped answer
"""

from pydantic import ValidationError

from portfolio_agent.models.domain import ScopedAnswer
from portfolio_agent.utils.errors import MalformedResponseError


def parse_scoped_answer(raw: str) -> ScopedAnswer:
    """
    Decode raw model text as exactly one ScopedAnswer JSON object.

    Unknown keys, missing keys, wrong types, trailing content after the
    object and a blank answer for an in-scope question are all rejected.
    Surrounding whitespace is ignored.

    Raises:
        MalformedResponseError: if the text does not satisfy the contract
    """
    if not isinstance(raw, str):
        raise MalformedResponseError(f"scoped answer must be text, got {type(raw).__name__}")

    try:
        return ScopedAnswer.model_validate_json(raw.strip())
    except ValidationError as e:
        raise MalformedResponseError(
            f"decode scoped answer: {e.error_count()} error(s), first: {e.errors()[0]['type']}"
        ) from e
