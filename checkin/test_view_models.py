from __future__ import annotations

import unittest
from datetime import datetime, timezone

from checkin.engines.view_models import (
    extract_action_items,
    extract_key_points,
    filter_interviews,
    interview_stats,
    search_messages,
    stage_progress,
)
from checkin.models.schemas import InterviewRecord, Message

NOW = datetime(2024, 5, 31, 12, 0, tzinfo=timezone.utc)


def _records() -> list[InterviewRecord]:
    return [
        InterviewRecord(team_member_name="Today", status="completed", started_at="2024-05-31T09:00:00Z"),
        InterviewRecord(team_member_name="ThisWeek", status="in-progress", started_at="2024-05-28T12:00:00Z"),
        InterviewRecord(team_member_name="ThisMonth", status="pending", started_at="2024-05-11T12:00:00Z"),
        InterviewRecord(team_member_name="Older", status="completed", started_at="2024-04-21T12:00:00Z"),
    ]


def _names(records: list[InterviewRecord]) -> list[str]:
    return [record.team_member_name for record in records]


class DashboardFilterTests(unittest.TestCase):
    def test_status_filter(self) -> None:
        self.assertEqual(_names(filter_interviews(_records(), status="completed", now=NOW)), ["Today", "Older"])
        self.assertEqual(_names(filter_interviews(_records(), status="pending", now=NOW)), ["ThisMonth"])
        self.assertEqual(len(filter_interviews(_records(), now=NOW)), 4)

    def test_date_filters(self) -> None:
        self.assertEqual(_names(filter_interviews(_records(), date_range="today", now=NOW)), ["Today"])
        self.assertEqual(
            _names(filter_interviews(_records(), date_range="week", now=NOW)),
            ["Today", "ThisWeek"],
        )
        self.assertEqual(
            _names(filter_interviews(_records(), date_range="month", now=NOW)),
            ["Today", "ThisWeek", "ThisMonth"],
        )

    def test_status_and_date_filters_combine(self) -> None:
        selected = filter_interviews(_records(), status="completed", date_range="month", now=NOW)

        self.assertEqual(_names(selected), ["Today"])

    def test_unknown_filter_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            filter_interviews(_records(), status="archived")
        with self.assertRaises(ValueError):
            filter_interviews(_records(), date_range="year")

    def test_stats(self) -> None:
        stats = interview_stats(_records())

        self.assertEqual((stats.completed, stats.in_progress, stats.pending, stats.total), (2, 1, 1, 4))


class InterviewChatViewTests(unittest.TestCase):
    def test_stage_progress_label_and_percentage(self) -> None:
        self.assertEqual(stage_progress(0), ("Stage 1 of 4: Projects", 25.0))
        self.assertEqual(stage_progress(3), ("Stage 4 of 4: Plans", 100.0))

    def test_stage_progress_clamps_out_of_range_index(self) -> None:
        self.assertEqual(stage_progress(-1)[0], "Stage 1 of 4: Projects")
        self.assertEqual(stage_progress(9)[0], "Stage 4 of 4: Plans")


class TranscriptViewTests(unittest.TestCase):
    transcript = "\n\n".join(
        [
            "Agent: What are you working on?",
            "User: We launched the referral program last week.",
            "Agent: What challenges are you facing?",
            "User: Legal review is a blocker, so we need to escalate it.",
            "Agent: What are your upcoming plans?",
            "User: I will start the Q3 roadmap.",
        ]
    )

    def test_key_points_pick_blocks_with_keywords(self) -> None:
        points = extract_key_points(self.transcript)

        self.assertIn("User: We launched the referral program last week.", points)
        self.assertIn("Agent: What challenges are you facing?", points)
        self.assertIn("Agent: What are your upcoming plans?", points)
        self.assertNotIn("Agent: What are you working on?", points)

    def test_key_points_are_capped(self) -> None:
        blocks = "\n\n".join(f"User: item {index} is completed" for index in range(8))

        self.assertEqual(len(extract_key_points(blocks)), 5)

    def test_action_items(self) -> None:
        self.assertEqual(
            extract_action_items(self.transcript),
            [
                "User: Legal review is a blocker, so we need to escalate it.",
                "User: I will start the Q3 roadmap.",
            ],
        )

    def test_search_is_case_insensitive(self) -> None:
        messages = [
            Message(role="agent", content="What are you working on?"),
            Message(role="user", content="The Referral program."),
        ]

        self.assertEqual(search_messages(messages, "referral"), [messages[1]])
        self.assertEqual(search_messages(messages, "  "), messages)
        self.assertEqual(search_messages(messages, "budget"), [])


if __name__ == "__main__":
    unittest.main()
