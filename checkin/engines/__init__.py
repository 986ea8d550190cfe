"""Engine modules for the team check-in service."""

from .agent_client import AgentBackendProtocol, MistralAgentClient, MistralAgentConfig, build_agent
from .insight_extractor import InsightReport, Transcript, analyze, fallback_report, merge_agent_insights
from .session_store import (
    InMemoryKeyValueStore,
    InterviewSessionStore,
    JsonFileKeyValueStore,
    KeyValueStore,
    render_transcript,
)
from .stage_engine import STAGES, StageAdvance, advance, exchange_history, opening_message, stage_index_for_history

__all__ = [
    "AgentBackendProtocol",
    "MistralAgentClient",
    "MistralAgentConfig",
    "build_agent",
    "InsightReport",
    "Transcript",
    "analyze",
    "fallback_report",
    "merge_agent_insights",
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "InterviewSessionStore",
    "render_transcript",
    "STAGES",
    "StageAdvance",
    "advance",
    "exchange_history",
    "opening_message",
    "stage_index_for_history",
]
