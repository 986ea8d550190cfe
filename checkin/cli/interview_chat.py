from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

if __package__ in {None, ""}:
    sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from fastapi.responses import JSONResponse

from checkin.cli import load_dotenv_if_available
from checkin.config.settings import get_settings
from checkin.engines import (
    AgentBackendProtocol,
    InterviewSessionStore,
    JsonFileKeyValueStore,
    STAGES,
    exchange_history,
    opening_message,
    stage_index_for_history,
)
from checkin.engines.view_models import stage_progress
from checkin.errors import InternalError, InterviewNotFoundError
from checkin.models.schemas import InterviewRecord, InterviewRequest, Message
from checkin.routers.interview import get_interview_agent, interview_turn

TURN_ERROR_MESSAGE = "Sorry, I encountered an error. Please try again."


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run (or resume) a team check-in interview in the terminal."
    )
    target_group = parser.add_mutually_exclusive_group(required=True)
    target_group.add_argument(
        "--interview-id",
        help="Resume an existing interview record",
    )
    target_group.add_argument(
        "--name",
        help="Start a new interview for this team member",
    )
    parser.add_argument(
        "--storage-root",
        default=get_settings().storage_path,
        help="Interview storage root directory",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Never call the Mistral agent, use the scripted replies only",
    )
    return parser


def run(args: argparse.Namespace) -> int:
    store = InterviewSessionStore(JsonFileKeyValueStore(args.storage_root))
    try:
        if args.interview_id:
            record = store.get(args.interview_id)
        else:
            record = store.create_interview(args.name)
    except InterviewNotFoundError as exc:
        print(f"[error] {exc}")
        return 1

    agent = None if args.offline else get_interview_agent(get_settings())
    return chat_loop(store, record, agent)


def chat_loop(
    store: InterviewSessionStore,
    record: InterviewRecord,
    agent: AgentBackendProtocol | None,
) -> int:
    """Interactive interview for one record. Returns a process exit code."""
    if record.status == "completed":
        print(f"[info] Interview {record.id} is already completed.")
        print(f"       View it with: checkin-transcript --interview-id {record.id}")
        return 0

    messages = list(record.messages)
    if not messages:
        messages.append(Message(role="agent", content=opening_message(record.team_member_name)))
        store.save_progress(record.id, messages)

    stage_index = stage_index_for_history(len(exchange_history(messages)))

    _print_banner(record, stage_index)
    for message in messages:
        _print_message(message)

    while True:
        try:
            user_text = input("You > ").strip()
        except (EOFError, KeyboardInterrupt):
            store.save_progress(record.id, messages)
            print("\n[info] Progress saved. Exiting.")
            return 0

        if not user_text:
            continue

        if user_text.startswith("/"):
            command = user_text.lower()
            if command in {"/exit", "/quit"}:
                store.save_progress(record.id, messages)
                print("[info] Progress saved. Exiting.")
                return 0
            if command == "/save":
                store.save_progress(record.id, messages)
                print(f"[info] Progress saved. Resume with: checkin-interview --interview-id {record.id}")
                return 0
            if command == "/progress":
                _print_progress(stage_index)
                continue
            if command == "/help":
                _print_help()
                continue
            print("[error] Unknown command. Type /help.")
            continue

        history = list(messages)
        user_message = Message(role="user", content=user_text)
        messages.append(user_message)

        result = asyncio.run(
            interview_turn(
                InterviewRequest(
                    message=user_text,
                    interview_id=record.id,
                    stage=STAGES[stage_index],
                    conversation_history=history,
                ),
                agent,
            )
        )

        if isinstance(result, JSONResponse):
            error_message = Message(role="agent", content=TURN_ERROR_MESSAGE)
            messages.append(error_message)
            _print_message(error_message)
            continue

        turn = result.response
        agent_message = Message(role="agent", content=turn.agent_message)
        messages.append(agent_message)
        _print_message(agent_message)

        if turn.next_stage >= 0:
            stage_index = turn.next_stage

        if turn.interview_complete:
            completed = store.complete_interview(record.id, messages)
            print(
                f"\n[info] Interview completed in {completed.duration} min. "
                "It is now available for the team summary."
            )
            return 0

        store.save_progress(record.id, messages)


def _print_banner(record: InterviewRecord, stage_index: int) -> None:
    print("=" * 72)
    print(f"Team check-in: {record.team_member_name} ({record.id})")
    _print_progress(stage_index)
    print("Commands: /save, /progress, /help, /exit")
    print("=" * 72)


def _print_progress(stage_index: int) -> None:
    label, percent = stage_progress(stage_index)
    print(f"{label} ({percent:.0f}% complete)")


def _print_help() -> None:
    print("/save      Save progress and exit (resume later with --interview-id)")
    print("/progress  Show the current stage")
    print("/help      Show this help")
    print("/exit      Save progress and exit")


def _print_message(message: Message) -> None:
    speaker = "Agent" if message.role == "agent" else "You"
    print(f"\n{speaker} > {message.content}\n")


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
