"""
Interview Router

POST /interview runs one turn of the scripted check-in interview.

Flow:
1. Strip the opening greeting from the client-owned history
2. Stage engine picks the reply template and the next stage
3. Optional: Interview Conductor agent rephrases the reply (template on failure)
4. Return the turn plus stage/completion metadata
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from checkin.config.runtime import get_runtime_config
from checkin.config.settings import Settings, get_settings
from checkin.engines.agent_client import AgentBackendProtocol, build_agent
from checkin.engines.stage_engine import (
    STAGE_DESCRIPTIONS,
    StageAdvance,
    advance,
    exchange_history,
)
from checkin.errors import UpstreamAgentError
from checkin.models.schemas import (
    ErrorResponse,
    InterviewRequest,
    InterviewResponse,
    InterviewTurn,
    Message,
    utc_now_iso,
)

logger = logging.getLogger(__name__)

_runtime = get_runtime_config()

router = APIRouter(tags=["interview"])


def get_interview_agent(
    settings: Settings = Depends(get_settings),
) -> AgentBackendProtocol | None:
    return build_agent(
        settings.mistral_api_key,
        model=settings.mistral_model,
        agent_id=settings.mistral_agent_id_interview,
        timeout_seconds=settings.agent_timeout_seconds,
    )


@router.post(
    "/interview",
    response_model=InterviewResponse,
    responses={500: {"model": ErrorResponse}},
)
async def interview_turn(
    request: InterviewRequest,
    agent: AgentBackendProtocol | None = Depends(get_interview_agent),
) -> Any:
    """
    Advance the interview by one user message.

    The client owns the conversation: send the full history on every call and
    append the returned agent message locally.
    """
    try:
        history = exchange_history(request.conversation_history)
        outcome = advance(request.stage, history, request.message)

        agent_message = outcome.agent_message
        source = "template"
        if agent is not None and not outcome.complete:
            try:
                agent_message = await _delegate_reply(
                    agent,
                    request=request,
                    outcome=outcome,
                )
                source = "agent"
            except UpstreamAgentError as exc:
                logger.warning(
                    "Interview agent unavailable for %s, using template reply: %s",
                    request.interview_id,
                    exc,
                )

        turn = InterviewTurn(
            agent_message=agent_message,
            next_stage=outcome.next_stage_index,
            interview_complete=outcome.complete,
            status=outcome.status,
            confidence=_runtime.interview.confidence,
            metadata={
                "stage": outcome.next_stage,
                "messagesCount": len(request.conversation_history) + 1,
                "timestamp": utc_now_iso(),
                "source": source,
            },
        )
        return InterviewResponse(response=turn, raw_response=agent_message)
    except Exception as exc:
        logger.exception("Interview API error for %s", request.interview_id)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(
                error="Failed to process interview response",
                details=str(exc) or exc.__class__.__name__,
            ).model_dump(),
        )


async def _delegate_reply(
    agent: AgentBackendProtocol,
    *,
    request: InterviewRequest,
    outcome: StageAdvance,
) -> str:
    prompt = _build_conductor_prompt(
        history=request.conversation_history,
        user_message=request.message,
        stage=request.stage,
        outcome=outcome,
    )
    reply = (await agent.generate(prompt)).strip()
    if not reply:
        raise UpstreamAgentError("Interview agent returned an empty reply")
    return reply


def _build_conductor_prompt(
    *,
    history: Sequence[Message],
    user_message: str,
    stage: str,
    outcome: StageAdvance,
) -> str:
    limit = _runtime.agent.max_history_messages
    clipped = list(history)[-limit:] if limit else []
    history_block = "\n".join(
        f"{'AGENT' if item.role == 'agent' else 'USER'}: {item.content.strip()}"
        for item in clipped
        if item.content.strip()
    ) or "(no prior messages)"

    if outcome.next_stage != stage:
        instruction = (
            f"Briefly acknowledge their answer, then move the interview to the topic "
            f"'{outcome.next_stage}' ({STAGE_DESCRIPTIONS.get(outcome.next_stage, '')})."
        )
    else:
        instruction = (
            f"Briefly acknowledge their answer and stay on the topic '{stage}'."
        )

    return (
        "You are the Interview Conductor for a team check-in. You interview one team member "
        "about their projects, progress, challenges and plans. Keep replies to 2-3 sentences, "
        "warm and professional, and always end with exactly one question.\n\n"
        f"CURRENT STAGE: {stage}\n\n"
        f"CONVERSATION SO FAR:\n{history_block}\n\n"
        f"TEAM MEMBER'S LATEST MESSAGE:\n{user_message.strip()}\n\n"
        f"{instruction}\n"
        "Reference reply (keep its question, you may rephrase the rest):\n"
        f"{outcome.agent_message}\n\n"
        "Respond with the reply text only."
    )
