"""
Ask endpoint

Answers one portfolio question and maps classified failures to HTTP
status codes.
"""

import time
import uuid

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from loguru import logger

from portfolio_agent.agents.ask import AskWorkflow
from portfolio_agent.api.dependencies import get_ask_workflow, get_correlation_id
from portfolio_agent.api.schemas import AskRequest, AskResponse, ErrorResponse
from portfolio_agent.config.settings import settings
from portfolio_agent.models.domain import AskInput
from portfolio_agent.utils.errors import AskError, ErrorCode


router = APIRouter(prefix="/api", tags=["ask"])

UNEXPECTED_ERROR_REASON = "unexpected_error"

STATUS_BY_CODE = {
    ErrorCode.INVALID_INPUT: 400,
    ErrorCode.INVALID_QUESTION: 400,
    ErrorCode.RATE_LIMITED: 429,
    ErrorCode.UPSTREAM: 502,
    ErrorCode.INTERNAL: 500,
}


def status_for(code: ErrorCode) -> int:
    return STATUS_BY_CODE.get(code, 500)


def error_response(code: ErrorCode, reason: str, status_code: int = None) -> JSONResponse:
    body = ErrorResponse(error=code.value, reason=reason)
    return JSONResponse(
        status_code=status_code or status_for(code),
        content=body.model_dump(),
    )


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


@router.post(
    "/ask",
    response_model=AskResponse,
    responses={
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def ask(
    body: AskRequest,
    workflow: AskWorkflow = Depends(get_ask_workflow),
    correlation_id: str = Depends(get_correlation_id),
):
    """
    Answer a question about the portfolio owner

    Returns the answer and the conversation id to send with follow-ups.
    """
    log = logger.bind(correlation_id=correlation_id, request_id=str(uuid.uuid4()))
    question = body.question or ""
    started = time.perf_counter()

    log.info(
        f"ask.request (question_chars={len(question)}, "
        f"has_conversation_id={bool(body.conversation_id)})"
    )

    try:
        output = await workflow.ask(
            AskInput(question=question, conversation_id=body.conversation_id),
            timeout=settings.request_timeout_seconds,
        )
    except AskError as e:
        status_code = status_for(e.code)
        log.warning(
            f"ask.rejected (error={e.code.value}, reason={e.reason}, "
            f"http_status={status_code}, latency_ms={_elapsed_ms(started)})"
        )
        if e.cause is not None:
            log.debug(f"ask.rejected cause: {type(e.cause).__name__}: {e.cause}")
        return error_response(e.code, e.reason, status_code)
    except Exception as e:
        log.exception(
            f"ask.rejected (error={ErrorCode.INTERNAL.value}, reason={UNEXPECTED_ERROR_REASON}, "
            f"http_status=500, latency_ms={_elapsed_ms(started)}): {type(e).__name__}"
        )
        return error_response(ErrorCode.INTERNAL, UNEXPECTED_ERROR_REASON, 500)

    log.info(
        f"ask.invoked (conversation_id={output.conversation_id}, "
        f"answer_chars={len(output.answer)}, latency_ms={_elapsed_ms(started)})"
    )
    return AskResponse(answer=output.answer, conversation_id=output.conversation_id)
