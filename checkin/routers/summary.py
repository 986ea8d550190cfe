"""
Summary Router

POST /summary aggregates completed interview transcripts into the leadership
summary. The Insights Aggregator agent is used when configured; the keyword
analysis fills in whatever the agent does not deliver, and a fixed report is
returned if aggregation fails altogether.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from checkin.config.settings import Settings, get_settings
from checkin.engines.agent_client import AgentBackendProtocol, build_agent
from checkin.engines.insight_extractor import (
    InsightReport,
    Transcript,
    analyze,
    build_aggregator_prompt,
    fallback_report,
    merge_agent_insights,
    parse_agent_payload,
)
from checkin.errors import UpstreamAgentError, ValidationError
from checkin.models.schemas import ErrorResponse, SummaryRequest, SummaryResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["summary"])

NO_INTERVIEWS_ERROR = "No interviews provided"
FALLBACK_ERROR = "Used fallback analysis"
FALLBACK_RAW_RESPONSE = "Generated default insights due to processing error"


def get_insights_agent(
    settings: Settings = Depends(get_settings),
) -> AgentBackendProtocol | None:
    return build_agent(
        settings.mistral_api_key,
        model=settings.mistral_model,
        agent_id=settings.mistral_agent_id_insights,
        timeout_seconds=settings.agent_timeout_seconds,
    )


@router.post(
    "/summary",
    response_model=SummaryResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}},
)
async def generate_summary(
    request: SummaryRequest,
    agent: AgentBackendProtocol | None = Depends(get_insights_agent),
) -> Any:
    """
    Build the summary report for the supplied transcripts.

    Never answers 500: internal failures degrade to the fixed fallback report.
    """
    if not request.interviews:
        return _no_interviews_response()

    try:
        transcripts = [
            Transcript(name=item.name, text=item.transcript or "")
            for item in request.interviews
        ]
        report, raw_response = await _aggregate(transcripts, agent)
        return SummaryResponse(
            response=report.to_summary_report(),
            raw_response=raw_response,
            interview_count=len(transcripts),
        )
    except ValidationError:
        return _no_interviews_response()
    except Exception:
        logger.exception("Summary API error, returning fallback analysis")
        return SummaryResponse(
            response=fallback_report().to_summary_report(),
            raw_response=FALLBACK_RAW_RESPONSE,
            error=FALLBACK_ERROR,
            interview_count=0,
        )


async def _aggregate(
    transcripts: Sequence[Transcript],
    agent: AgentBackendProtocol | None,
) -> tuple[InsightReport, str]:
    if agent is None:
        report = analyze(transcripts)
        return report, report.full_report

    try:
        raw_output = await agent.generate(build_aggregator_prompt(transcripts))
        payload = parse_agent_payload(raw_output)
    except UpstreamAgentError as exc:
        logger.warning("Insights agent unavailable, using keyword analysis: %s", exc)
        report = analyze(transcripts)
        return report, report.full_report

    return merge_agent_insights(payload, transcripts), raw_output


def _no_interviews_response() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "error": NO_INTERVIEWS_ERROR},
    )
