"""
Interview Session Store

Keyed collection of interview records plus the single live summary report,
kept in a key-value collaborator (JSON files on disk, or memory in tests).
Every mutation reads the whole collection, changes it and writes it back:
no partial patches, last writer wins.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol, Sequence

from pydantic import ValidationError as SchemaValidationError

from checkin.errors import InternalError, InterviewNotFoundError
from checkin.models.schemas import (
    InterviewCollection,
    InterviewRecord,
    Message,
    SummaryReport,
    utc_now_iso,
)

logger = logging.getLogger(__name__)

INTERVIEWS_KEY = "interviews"
SUMMARY_KEY = "summary"


class KeyValueStore(Protocol):
    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...


class InMemoryKeyValueStore:
    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value


class JsonFileKeyValueStore:
    """One `<key>.json` file per key under the storage root."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def get_item(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(value, encoding="utf-8")

    def _path(self, key: str) -> Path:
        return self.root / f"{key}.json"


class InterviewSessionStore:
    def __init__(self, backend: KeyValueStore) -> None:
        self.backend = backend

    # ------------------------------------------------------------------
    # Wholesale load / save
    # ------------------------------------------------------------------

    def load(self) -> InterviewCollection:
        raw_interviews = self.backend.get_item(INTERVIEWS_KEY)
        raw_summary = self.backend.get_item(SUMMARY_KEY)

        try:
            interviews = json.loads(raw_interviews) if raw_interviews else []
            summary = json.loads(raw_summary) if raw_summary else None
            return InterviewCollection.model_validate(
                {"interviews": interviews, "summary": summary}
            )
        except (json.JSONDecodeError, SchemaValidationError) as exc:
            raise InternalError(f"Stored interview data is unreadable: {exc}") from exc

    def save(self, collection: InterviewCollection) -> None:
        payload = collection.model_dump(by_alias=True, mode="json")
        self.backend.set_item(INTERVIEWS_KEY, json.dumps(payload["interviews"], indent=2))
        self.backend.set_item(SUMMARY_KEY, json.dumps(payload["summary"], indent=2))

    # ------------------------------------------------------------------
    # Record operations
    # ------------------------------------------------------------------

    def list_interviews(self) -> list[InterviewRecord]:
        return self.load().interviews

    def completed_interviews(self) -> list[InterviewRecord]:
        return [record for record in self.list_interviews() if record.status == "completed"]

    def get(self, interview_id: str) -> InterviewRecord:
        for record in self.list_interviews():
            if record.id == interview_id:
                return record
        raise InterviewNotFoundError(f"Interview {interview_id} not found")

    def create_interview(self, team_member_name: str | None = None) -> InterviewRecord:
        collection = self.load()
        name = (team_member_name or "").strip() or f"Team Member {len(collection.interviews) + 1}"
        record = InterviewRecord(team_member_name=name, status="in-progress")
        collection.interviews.append(record)
        self.save(collection)
        logger.info("Started interview %s for %s", record.id, name)
        return record

    def save_progress(self, interview_id: str, messages: Sequence[Message]) -> InterviewRecord:
        """Store the conversation so far without changing the status."""
        collection = self.load()
        record = _find(collection, interview_id)
        record.messages = list(messages)
        record.transcript = render_transcript(record.messages)
        self.save(collection)
        return record

    def complete_interview(
        self,
        interview_id: str,
        messages: Sequence[Message],
        completed_at: str | None = None,
    ) -> InterviewRecord:
        collection = self.load()
        record = _find(collection, interview_id)
        record.messages = list(messages)
        record.transcript = render_transcript(record.messages)
        if record.status != "completed":
            record.status = "completed"
            record.completed_at = completed_at or utc_now_iso()
            record.duration = duration_minutes(record.started_at, record.completed_at)
        self.save(collection)
        logger.info("Completed interview %s (%s min)", record.id, record.duration)
        return record

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def load_summary(self) -> SummaryReport | None:
        return self.load().summary

    def save_summary(self, report: SummaryReport) -> None:
        collection = self.load()
        collection.summary = report
        self.save(collection)


def render_transcript(messages: Sequence[Message]) -> str:
    return "\n\n".join(
        f"{'Agent' if message.role == 'agent' else 'User'}: {message.content}"
        for message in messages
    )


def duration_minutes(started_at: str, completed_at: str) -> int:
    elapsed = parse_iso(completed_at) - parse_iso(started_at)
    return max(0, round(elapsed.total_seconds() / 60))


def parse_iso(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _find(collection: InterviewCollection, interview_id: str) -> InterviewRecord:
    for record in collection.interviews:
        if record.id == interview_id:
            return record
    raise InterviewNotFoundError(f"Interview {interview_id} not found")
