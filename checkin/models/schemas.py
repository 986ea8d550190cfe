from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# ---------------------------------------------------------------------------
# Shared config helper
# ---------------------------------------------------------------------------

def _camel_config() -> ConfigDict:
    return ConfigDict(alias_generator=to_camel, populate_by_name=True)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def epoch_ms() -> int:
    return int(time.time() * 1000)


InterviewStatus = Literal["pending", "in-progress", "completed"]
MessageRole = Literal["agent", "user"]


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------

class Message(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(default_factory=lambda: f"msg_{uuid.uuid4().hex[:12]}")
    role: MessageRole
    content: str
    timestamp: str = Field(default_factory=utc_now_iso)


class InterviewRecord(BaseModel):
    model_config = _camel_config()

    id: str = Field(default_factory=lambda: f"interview_{epoch_ms()}_{uuid.uuid4().hex[:6]}")
    team_member_id: str = Field(default_factory=lambda: f"user_{epoch_ms()}_{uuid.uuid4().hex[:6]}")
    team_member_name: str
    status: InterviewStatus = "in-progress"
    started_at: str = Field(default_factory=utc_now_iso)
    completed_at: str | None = None
    transcript: str | None = None
    duration: int | None = Field(
        default=None,
        description="Interview length in whole minutes, set on completion",
    )
    messages: list[Message] = Field(default_factory=list)


class SummaryReport(BaseModel):
    model_config = _camel_config()

    id: str = Field(default_factory=lambda: f"summary_{epoch_ms()}")
    created_at: str = Field(default_factory=utc_now_iso)
    themes: list[str]
    blockers: list[str]
    achievements: list[str]
    recommendations: list[str]
    full_report: str


class InterviewCollection(BaseModel):
    """Everything the session store persists: all interviews plus the live summary."""

    model_config = _camel_config()

    interviews: list[InterviewRecord] = Field(default_factory=list)
    summary: SummaryReport | None = None


# ---------------------------------------------------------------------------
# Request / Response models for POST /interview
# ---------------------------------------------------------------------------

class InterviewRequest(BaseModel):
    model_config = _camel_config()

    message: str
    interview_id: str
    stage: str
    conversation_history: list[Message] = Field(
        default_factory=list,
        description="All prior messages, oldest first. The client owns history.",
    )


class InterviewTurn(BaseModel):
    model_config = _camel_config()

    agent_message: str
    next_stage: int
    interview_complete: bool
    status: Literal["in-progress", "completed"]
    confidence: float = Field(ge=0.0, le=1.0)
    metadata: dict[str, Any] = Field(default_factory=dict)


class InterviewResponse(BaseModel):
    model_config = _camel_config()

    success: bool = True
    response: InterviewTurn
    raw_response: str


# ---------------------------------------------------------------------------
# Request / Response models for POST /summary
# ---------------------------------------------------------------------------

class TranscriptInput(BaseModel):
    model_config = _camel_config()

    name: str
    transcript: str | None = ""


class SummaryRequest(BaseModel):
    model_config = _camel_config()

    interviews: list[TranscriptInput] | None = None


class SummaryResponse(BaseModel):
    model_config = _camel_config()

    success: bool = True
    response: SummaryReport
    raw_response: str | None = None
    interview_count: int
    timestamp: str = Field(default_factory=utc_now_iso)
    error: str | None = None


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    details: str | None = None
