from __future__ import annotations

import unittest

from checkin.engines.stage_engine import (
    CLOSING_MESSAGE,
    COMPLETION_HISTORY_LENGTH,
    GENERIC_ACKNOWLEDGMENT,
    STAGE_QUESTIONS,
    STAGES,
    advance,
    exchange_history,
    follow_up_question,
    opening_message,
    should_advance_stage,
    stage_index_for_history,
)
from checkin.models.schemas import Message


def _history(length: int) -> list[Message]:
    return [
        Message(role="user" if index % 2 == 0 else "agent", content=f"message {index}")
        for index in range(length)
    ]


def _run_interview(answer: str = "Working on the Q3 campaign launch.") -> tuple[list[Message], list[int]]:
    """Drive a full interview the way the chat view does, starting from the greeting."""
    messages = [Message(role="agent", content=opening_message("Dana"))]
    stage_index = 0
    visited: list[int] = []
    for _ in range(40):
        history = exchange_history(messages)
        outcome = advance(STAGES[stage_index], history, answer)
        messages.append(Message(role="user", content=answer))
        messages.append(Message(role="agent", content=outcome.agent_message))
        visited.append(stage_index)
        stage_index = outcome.next_stage_index
        if outcome.complete:
            return messages, visited
    raise AssertionError("interview never completed")


class AdvanceTests(unittest.TestCase):
    def test_first_projects_answer_is_acknowledged_with_first_question(self) -> None:
        outcome = advance("Projects", [], "We are building a landing page")

        self.assertEqual(
            outcome.agent_message,
            "That's great! We are building a landing page sounds like important work. "
            + STAGE_QUESTIONS["Projects"][0],
        )
        self.assertEqual(outcome.next_stage, "Projects")
        self.assertEqual(outcome.next_stage_index, 0)
        self.assertFalse(outcome.complete)
        self.assertEqual(outcome.status, "in-progress")

    def test_projects_excerpt_is_truncated_and_whitespace_normalized(self) -> None:
        text = "We are   rebuilding\nthe onboarding flow for enterprise customers and partners"
        outcome = advance("Projects", [], text)

        normalized = " ".join(text.split())
        self.assertIn(f"{normalized[:50]}... sounds like important work.", outcome.agent_message)

    def test_advance_is_deterministic(self) -> None:
        for stage in STAGES:
            for length in range(0, 36):
                history = _history(length)
                first = advance(stage, history, "Same answer")
                second = advance(stage, list(history), "Same answer")
                self.assertEqual(first, second, msg=f"{stage} at {length}")

    def test_follow_up_question_cycles_with_history_length(self) -> None:
        questions = STAGE_QUESTIONS["Progress"]
        outcome = advance("Progress", _history(14), "We hit two milestones")

        self.assertTrue(outcome.agent_message.startswith("Excellent progress!"))
        self.assertTrue(outcome.agent_message.endswith(questions[14 % len(questions)]))
        self.assertEqual(follow_up_question("Progress", 14), questions[14 % len(questions)])

    def test_transition_message_names_next_stage_and_its_first_question(self) -> None:
        outcome = advance("Projects", _history(12), "That's the scope")

        self.assertEqual(outcome.next_stage, "Progress")
        self.assertEqual(outcome.next_stage_index, 1)
        self.assertEqual(
            outcome.agent_message,
            "Great insights on projects! Now let's move to the next topic: Progress. "
            + STAGE_QUESTIONS["Progress"][0],
        )

    def test_no_transition_before_first_full_interval(self) -> None:
        self.assertFalse(should_advance_stage(0))
        self.assertFalse(should_advance_stage(6))
        self.assertTrue(should_advance_stage(12))
        self.assertFalse(should_advance_stage(13))

    def test_unknown_stage_gets_generic_acknowledgment(self) -> None:
        outcome = advance("Retrospective", _history(12), "Anything")

        self.assertEqual(outcome.agent_message, GENERIC_ACKNOWLEDGMENT)
        self.assertEqual(outcome.next_stage, "Retrospective")
        self.assertEqual(outcome.next_stage_index, -1)
        self.assertFalse(outcome.complete)

    def test_final_stage_completion_is_sticky(self) -> None:
        for length in range(COMPLETION_HISTORY_LENGTH, COMPLETION_HISTORY_LENGTH + 12):
            outcome = advance("Plans", _history(length), "Next sprint we ship v2")
            self.assertTrue(outcome.complete, msg=f"length {length}")
            self.assertEqual(outcome.agent_message, CLOSING_MESSAGE)
            self.assertEqual(outcome.status, "completed")
            self.assertEqual(outcome.next_stage_index, len(STAGES) - 1)

    def test_final_stage_completion_is_monotone_in_history_length(self) -> None:
        completions = [
            advance("Plans", _history(length), "Next sprint we ship v2").complete
            for length in range(0, COMPLETION_HISTORY_LENGTH + 12, 2)
        ]
        first_complete = completions.index(True)

        self.assertTrue(all(completions[first_complete:]))
        self.assertFalse(any(completions[:first_complete]))
        self.assertEqual(first_complete * 2, COMPLETION_HISTORY_LENGTH)

    def test_final_stage_never_transitions_before_completion(self) -> None:
        for length in (6, 12, 18, 24, 26, 28):
            outcome = advance("Plans", _history(length), "Next sprint we ship v2")
            self.assertFalse(outcome.complete, msg=f"length {length}")
            self.assertEqual(outcome.next_stage, "Plans")
            self.assertTrue(outcome.agent_message.startswith("Those are solid plans"))


class InterviewFlowTests(unittest.TestCase):
    def test_full_interview_completes_after_three_exchanges_in_plans(self) -> None:
        messages, visited = _run_interview()

        self.assertEqual(visited.count(STAGES.index("Plans")), 3)
        self.assertEqual(messages[-1].content, CLOSING_MESSAGE)
        self.assertEqual(len(exchange_history(messages)), COMPLETION_HISTORY_LENGTH + 2)

    def test_stage_index_never_decreases(self) -> None:
        _, visited = _run_interview()

        self.assertEqual(visited, sorted(visited))
        self.assertEqual(set(visited), set(range(len(STAGES))))

    def test_resumed_stage_matches_live_stage(self) -> None:
        messages = [Message(role="agent", content=opening_message("Dana"))]
        stage_index = 0
        while True:
            self.assertEqual(
                stage_index_for_history(len(exchange_history(messages))),
                stage_index,
            )
            outcome = advance(STAGES[stage_index], exchange_history(messages), "Answer")
            messages.append(Message(role="user", content="Answer"))
            messages.append(Message(role="agent", content=outcome.agent_message))
            stage_index = outcome.next_stage_index
            if outcome.complete:
                break

    def test_stage_index_for_history_boundaries(self) -> None:
        self.assertEqual(stage_index_for_history(0), 0)
        self.assertEqual(stage_index_for_history(13), 0)
        self.assertEqual(stage_index_for_history(14), 1)
        self.assertEqual(stage_index_for_history(20), 2)
        self.assertEqual(stage_index_for_history(26), 3)
        self.assertEqual(stage_index_for_history(60), 3)


class HistoryHelperTests(unittest.TestCase):
    def test_opening_message_greets_by_name(self) -> None:
        greeting = opening_message("Team Member 3")

        self.assertTrue(greeting.startswith("Hi Team Member 3!"))
        self.assertIn("What are you working on?", greeting)

    def test_exchange_history_drops_only_leading_greeting(self) -> None:
        greeting = Message(role="agent", content="Hi")
        user = Message(role="user", content="Hello")
        reply = Message(role="agent", content="Tell me more")

        self.assertEqual(exchange_history([greeting, user, reply]), [user, reply])
        self.assertEqual(exchange_history([user, reply]), [user, reply])
        self.assertEqual(exchange_history([]), [])


if __name__ == "__main__":
    unittest.main()
