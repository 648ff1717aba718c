"""
Ask endpoint models for the public API contract
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class AskRequest(BaseModel):
    """
    Question from the portfolio site.

    conversationId is optional; omit it to start a new conversation.
    Question length and blankness are checked by the workflow, not here,
    so those failures carry their own reasons; a missing question counts
    as empty.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "question": "Which programming languages appear on the resume?",
                    "conversationId": "3f2b1a8e-5c1d-4e7a-9a57-1b7f0c6e2d41",
                }
            ]
        },
    )

    question: Optional[str] = Field(default=None, description="The visitor's question")
    conversation_id: Optional[str] = Field(
        default=None,
        alias="conversationId",
        description="Conversation to continue",
    )


class AskResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    answer: str
    conversation_id: str = Field(..., alias="conversationId")


class ErrorResponse(BaseModel):
    """Error body: error is the error kind, reason the machine-readable cause"""
    error: str
    reason: str
