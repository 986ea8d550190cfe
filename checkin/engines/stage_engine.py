"""
Interview Stage Engine

Scripted four-stage check-in interview: Projects -> Progress -> Challenges -> Plans.
The reply text and the stage transition are pure functions of the current
stage, the number of exchange messages so far and the user's latest message,
so the same input always yields the same turn.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from checkin.models.schemas import Message

STAGES: tuple[str, ...] = ("Projects", "Progress", "Challenges", "Plans")

STAGE_DESCRIPTIONS: dict[str, str] = {
    "Projects": "What are you working on?",
    "Progress": "What progress have you made?",
    "Challenges": "What challenges are you facing?",
    "Plans": "What are your upcoming plans?",
}

STAGE_QUESTIONS: dict[str, tuple[str, ...]] = {
    "Projects": (
        "Can you tell me more about the scope and goals of this project?",
        "What are the key deliverables you're aiming for?",
        "Who are the main stakeholders involved in this project?",
        "How long is this project expected to take?",
    ),
    "Progress": (
        "What specific milestones have you reached recently?",
        "How are you tracking progress compared to your initial timeline?",
        "What's working well so far?",
        "Have you had any quick wins to celebrate?",
        "What metrics are you using to measure success?",
    ),
    "Challenges": (
        "What specific obstacles are you facing?",
        "How is this affecting your project timeline?",
        "Have you identified any resource constraints?",
        "What support or tools would help you overcome this?",
        "Is this something you can handle internally or do you need escalation?",
    ),
    "Plans": (
        "What are your priorities for the next sprint or period?",
        "How are you planning to build on the progress you've made?",
        "What dependencies do you need to watch for?",
        "How will you measure success going forward?",
        "Any skills or training you'd like to develop?",
    ),
}

GENERIC_ACKNOWLEDGMENT = "Thank you for that response. Can you tell me more?"

CLOSING_MESSAGE = (
    "Thank you for sharing such detailed information! That concludes our interview. "
    "Your insights have been recorded and will be included in the team summary report. "
    "Great work!"
)

EXCHANGES_PER_STAGE = 3
MESSAGES_PER_EXCHANGE = 2  # one user message + one agent reply
ADVANCE_INTERVAL = EXCHANGES_PER_STAGE * MESSAGES_PER_EXCHANGE

# The final stage completes once the history reaches this length, which is
# where its third exchange lands when every transition happened on schedule.
COMPLETION_HISTORY_LENGTH = ADVANCE_INTERVAL * (len(STAGES) + 1)

_PROJECT_EXCERPT_CHARS = 50


@dataclass(frozen=True)
class StageAdvance:
    """Outcome of one interview turn."""

    agent_message: str
    next_stage: str
    next_stage_index: int  # -1 when the incoming stage was not recognised
    complete: bool

    @property
    def status(self) -> str:
        return "completed" if self.complete else "in-progress"


def advance(stage: str, history: Sequence[Message], new_user_text: str) -> StageAdvance:
    """Produce the agent reply for one user message and decide the next stage."""
    history_length = len(history)

    if stage not in STAGE_QUESTIONS:
        return StageAdvance(
            agent_message=GENERIC_ACKNOWLEDGMENT,
            next_stage=stage,
            next_stage_index=-1,
            complete=False,
        )

    stage_index = STAGES.index(stage)
    is_last_stage = stage_index == len(STAGES) - 1

    if is_last_stage and history_length >= COMPLETION_HISTORY_LENGTH:
        return StageAdvance(
            agent_message=CLOSING_MESSAGE,
            next_stage=stage,
            next_stage_index=stage_index,
            complete=True,
        )

    if not is_last_stage and should_advance_stage(history_length):
        next_index = stage_index + 1
        next_name = STAGES[next_index]
        return StageAdvance(
            agent_message=(
                f"Great insights on {stage.lower()}! Now let's move to the next topic: "
                f"{next_name}. {follow_up_question(next_name, 0)}"
            ),
            next_stage=next_name,
            next_stage_index=next_index,
            complete=False,
        )

    question = follow_up_question(stage, history_length)
    return StageAdvance(
        agent_message=f"{_acknowledge(stage, new_user_text)} {question}",
        next_stage=stage,
        next_stage_index=stage_index,
        complete=False,
    )


def should_advance_stage(history_length: int) -> bool:
    """Advance after every third completed exchange, never before the first full stage."""
    return history_length > ADVANCE_INTERVAL and history_length % ADVANCE_INTERVAL == 0


def follow_up_question(stage: str, message_count: int) -> str:
    questions = STAGE_QUESTIONS.get(stage) or ("Tell me more.",)
    return questions[message_count % len(questions)]


def opening_message(team_member_name: str) -> str:
    """Greeting that seeds a fresh interview before the first user message."""
    first_stage = STAGES[0]
    return (
        f"Hi {team_member_name}! I'm here to conduct a quick interview about your current "
        f"projects and progress. Let's start with the first topic: "
        f"{STAGE_DESCRIPTIONS[first_stage]}"
    )


def exchange_history(messages: Sequence[Message]) -> list[Message]:
    """Drop the opening greeting so only user/agent exchanges are counted."""
    items = list(messages)
    if items and items[0].role == "agent":
        return items[1:]
    return items


def stage_index_for_history(history_length: int) -> int:
    """
    Stage index reached after `history_length` exchange messages.

    Mirrors the transitions `advance` performs: each scheduled transition
    happens on the call that sees that history length, and is visible once
    the corresponding exchange (two more messages) has been stored.
    """
    transitions = [
        ADVANCE_INTERVAL * step
        for step in range(2, len(STAGES) + 1)
    ]
    reached = sum(1 for length in transitions if length + MESSAGES_PER_EXCHANGE <= history_length)
    return min(reached, len(STAGES) - 1)


def _acknowledge(stage: str, user_text: str) -> str:
    if stage == "Projects":
        text = " ".join(user_text.split())
        excerpt = text[:_PROJECT_EXCERPT_CHARS]
        if len(text) > _PROJECT_EXCERPT_CHARS:
            excerpt = f"{excerpt}..."
        return f"That's great! {excerpt} sounds like important work."
    if stage == "Progress":
        return "Excellent progress! It sounds like you've made meaningful strides."
    if stage == "Challenges":
        return "I understand - those are common challenges."
    if stage == "Plans":
        return "Those are solid plans moving forward."
    return GENERIC_ACKNOWLEDGMENT
