from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

if __package__ in {None, ""}:
    sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from fastapi.responses import JSONResponse

from checkin.cli import load_dotenv_if_available
from checkin.cli.interview_chat import chat_loop
from checkin.config.runtime import get_runtime_config
from checkin.config.settings import get_settings
from checkin.engines import InterviewSessionStore, JsonFileKeyValueStore
from checkin.engines.view_models import (
    DATE_FILTERS,
    STATUS_FILTERS,
    filter_interviews,
    interview_stats,
)
from checkin.errors import InternalError
from checkin.models.schemas import (
    SummaryReport,
    SummaryRequest,
    TranscriptInput,
    epoch_ms,
    utc_now_iso,
)
from checkin.routers.interview import get_interview_agent
from checkin.routers.summary import generate_summary, get_insights_agent

_runtime = get_runtime_config()
_cli_runtime = _runtime.cli


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Team check-in dashboard: interviews, stats and the leadership summary."
    )
    parser.add_argument(
        "--storage-root",
        default=get_settings().storage_path,
        help="Interview storage root directory",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Never call the Mistral agents, use the local analysis only",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List interviews")
    list_parser.add_argument("--status", choices=STATUS_FILTERS, default="all")
    list_parser.add_argument("--date", choices=DATE_FILTERS, default="all")

    subparsers.add_parser("stats", help="Show interview counts by status")

    start_parser = subparsers.add_parser("start", help="Start a new interview")
    start_parser.add_argument(
        "--name",
        default=None,
        help="Team member name (defaults to 'Team Member N')",
    )

    subparsers.add_parser(
        "summary",
        help=f"Generate the team summary (needs {_cli_runtime.min_completed_for_summary}+ completed interviews)",
    )
    subparsers.add_parser("report", help="Print the stored team summary")
    return parser


def run(args: argparse.Namespace) -> int:
    store = InterviewSessionStore(JsonFileKeyValueStore(args.storage_root))

    if args.command == "list":
        return _list_interviews(store, status=args.status, date_range=args.date)
    if args.command == "stats":
        return _show_stats(store)
    if args.command == "start":
        record = store.create_interview(args.name)
        print(f"[info] Started interview {record.id} for {record.team_member_name}")
        agent = None if args.offline else get_interview_agent(get_settings())
        return chat_loop(store, record, agent)
    if args.command == "summary":
        return _generate_summary(store, offline=args.offline)
    if args.command == "report":
        summary = store.load_summary()
        if summary is None:
            print("[info] No summary yet. Run `checkin-dashboard summary` first.")
            return 0
        _print_summary(summary)
        return 0

    print(f"[error] Unknown command: {args.command}")
    return 1


def _list_interviews(store: InterviewSessionStore, *, status: str, date_range: str) -> int:
    interviews = filter_interviews(store.list_interviews(), status=status, date_range=date_range)
    if not interviews:
        print("No interviews found.")
        return 0

    for record in interviews:
        line = f"{record.id}  {record.team_member_name:<24} {record.status:<12} started {record.started_at}"
        if record.duration is not None:
            line += f"  ({record.duration} min)"
        print(line)
    return 0


def _show_stats(store: InterviewSessionStore) -> int:
    stats = interview_stats(store.list_interviews())
    print(f"Completed:   {stats.completed}")
    print(f"In progress: {stats.in_progress}")
    print(f"Pending:     {stats.pending}")
    print(f"Total:       {stats.total}")
    return 0


def _generate_summary(store: InterviewSessionStore, *, offline: bool) -> int:
    completed = store.completed_interviews()
    required = _cli_runtime.min_completed_for_summary
    if len(completed) < required:
        print(
            f"[error] Need at least {required} completed interviews to generate a summary "
            f"(have {len(completed)})."
        )
        return 1

    request = SummaryRequest(
        interviews=[
            TranscriptInput(name=record.team_member_name, transcript=record.transcript)
            for record in completed
        ]
    )
    agent = None if offline else get_insights_agent(get_settings())
    result = asyncio.run(generate_summary(request, agent))
    if isinstance(result, JSONResponse):
        print(f"[error] Summary generation failed: {result.body.decode('utf-8')}")
        return 1

    if result.error:
        print(f"[info] {result.error}")

    report = result.response.model_copy(
        update={"id": f"summary_{epoch_ms()}", "created_at": utc_now_iso()}
    )
    store.save_summary(report)
    print(f"[info] Summary generated from {len(completed)} interviews.")
    _print_summary(report)
    return 0


def _print_summary(summary: SummaryReport) -> None:
    print("=" * 72)
    print(f"Team summary ({summary.id}, {summary.created_at})")
    print("=" * 72)
    for title, items in (
        ("Key themes", summary.themes),
        ("Blockers", summary.blockers),
        ("Achievements", summary.achievements),
        ("Recommendations", summary.recommendations),
    ):
        print(f"\n{title}:")
        for item in items:
            print(f"  - {item}")
    print("\nFull report:\n")
    print(summary.full_report)


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
