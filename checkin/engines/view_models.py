"""Pure helpers behind the dashboard, interview chat and transcript viewer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Sequence

from checkin.models.schemas import InterviewRecord, Message

from .session_store import parse_iso
from .stage_engine import STAGES

STATUS_FILTERS = ("all", "completed", "in-progress", "pending")
DATE_FILTERS = ("all", "today", "week", "month")

_DATE_FILTER_MAX_DAYS = {"today": 0, "week": 7, "month": 30}

KEY_POINT_KEYWORDS = (
    "completed",
    "finished",
    "achieved",
    "delivered",
    "launched",
    "blocked",
    "challenge",
    "issue",
    "problem",
    "planning",
    "upcoming",
    "next",
)

ACTION_ITEM_MARKERS = ("will", "need to")

MAX_KEY_POINTS = 5
MAX_ACTION_ITEMS = 5


@dataclass(frozen=True)
class InterviewStats:
    completed: int
    in_progress: int
    pending: int
    total: int


def filter_interviews(
    interviews: Sequence[InterviewRecord],
    status: str = "all",
    date_range: str = "all",
    now: datetime | None = None,
) -> list[InterviewRecord]:
    if status not in STATUS_FILTERS:
        raise ValueError(f"Unsupported status filter: {status}")
    if date_range not in DATE_FILTERS:
        raise ValueError(f"Unsupported date filter: {date_range}")

    now = now or datetime.now(timezone.utc)
    selected: list[InterviewRecord] = []
    for record in interviews:
        if status != "all" and record.status != status:
            continue
        if date_range != "all":
            days = (now - parse_iso(record.started_at)).days
            if days > _DATE_FILTER_MAX_DAYS[date_range]:
                continue
        selected.append(record)
    return selected


def interview_stats(interviews: Sequence[InterviewRecord]) -> InterviewStats:
    return InterviewStats(
        completed=sum(1 for i in interviews if i.status == "completed"),
        in_progress=sum(1 for i in interviews if i.status == "in-progress"),
        pending=sum(1 for i in interviews if i.status == "pending"),
        total=len(interviews),
    )


def stage_progress(stage_index: int) -> tuple[str, float]:
    """Header label and completion percentage for the interview chat."""
    index = max(0, min(stage_index, len(STAGES) - 1))
    label = f"Stage {index + 1} of {len(STAGES)}: {STAGES[index]}"
    return label, (index + 1) / len(STAGES) * 100


def extract_key_points(transcript: str) -> list[str]:
    blocks = transcript.split("\n\n")
    points = [
        block
        for block in blocks
        if any(keyword in block.lower() for keyword in KEY_POINT_KEYWORDS)
    ]
    return points[:MAX_KEY_POINTS]


def extract_action_items(transcript: str) -> list[str]:
    blocks = transcript.split("\n\n")
    items = [
        block
        for block in blocks
        if any(marker in block.lower() for marker in ACTION_ITEM_MARKERS)
    ]
    return items[:MAX_ACTION_ITEMS]


def search_messages(messages: Sequence[Message], query: str) -> list[Message]:
    needle = query.strip().lower()
    if not needle:
        return list(messages)
    return [message for message in messages if needle in message.content.lower()]
