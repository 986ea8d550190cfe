from __future__ import annotations

import argparse
import sys
from pathlib import Path

if __package__ in {None, ""}:
    sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from checkin.cli import load_dotenv_if_available
from checkin.config.settings import get_settings
from checkin.engines import InterviewSessionStore, JsonFileKeyValueStore, render_transcript
from checkin.engines.view_models import (
    extract_action_items,
    extract_key_points,
    search_messages,
)
from checkin.errors import InternalError, InterviewNotFoundError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Show the transcript of one check-in interview with key points and action items."
    )
    parser.add_argument("--interview-id", required=True, help="Interview record ID")
    parser.add_argument(
        "--storage-root",
        default=get_settings().storage_path,
        help="Interview storage root directory",
    )
    parser.add_argument(
        "--search",
        default="",
        help="Only show messages containing this text (case-insensitive)",
    )
    return parser


def run(args: argparse.Namespace) -> int:
    store = InterviewSessionStore(JsonFileKeyValueStore(args.storage_root))
    try:
        record = store.get(args.interview_id)
    except InterviewNotFoundError as exc:
        print(f"[error] {exc}")
        return 1

    print("=" * 72)
    print(f"{record.team_member_name} ({record.id})")
    print(f"Status: {record.status}  Started: {record.started_at}")
    if record.completed_at:
        print(f"Completed: {record.completed_at}  Duration: {record.duration} min")
    print("=" * 72)

    messages = search_messages(record.messages, args.search)
    if args.search.strip():
        print(f"{len(messages)} of {len(record.messages)} messages match '{args.search.strip()}'")
    for message in messages:
        speaker = "Agent" if message.role == "agent" else record.team_member_name
        print(f"\n[{message.timestamp}] {speaker}:\n{message.content}")

    transcript = record.transcript or render_transcript(record.messages)

    key_points = extract_key_points(transcript)
    print("\nKey points:")
    if not key_points:
        print("  (none found)")
    for point in key_points:
        print(f"  - {point}")

    action_items = extract_action_items(transcript)
    print("\nAction items:")
    if not action_items:
        print("  (none found)")
    for item in action_items:
        print(f"  - {item}")
    return 0


def main() -> int:
    load_dotenv_if_available()
    parser = build_parser()
    args = parser.parse_args()
    try:
        return run(args)
    except InternalError as exc:
        print(f"[error] {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
