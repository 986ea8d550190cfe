"""
Transcript Insight Extractor

Keyword-driven aggregation of completed check-in transcripts into a leadership
summary. Every category is filled deterministically: matched insights first
(in table order), category defaults when nothing matched. An external
summarization agent may supply richer content through `merge_agent_insights`,
which still falls back to the deterministic analysis per category.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Sequence

from checkin.errors import EmptyInputError, UpstreamAgentError
from checkin.models.schemas import SummaryReport

THEMES = "themes"
BLOCKERS = "blockers"
ACHIEVEMENTS = "achievements"
RECOMMENDATIONS = "recommendations"

CATEGORY_CAPS: dict[str, int] = {
    THEMES: 6,
    BLOCKERS: 5,
    ACHIEVEMENTS: 5,
    RECOMMENDATIONS: 6,
}

# (trigger substring, candidate insight, category), scanned in order.
INSIGHT_TABLE: tuple[tuple[str, str, str], ...] = (
    ("blocker", "Blocked work waiting on upstream dependencies", BLOCKERS),
    ("blocked", "Blocked work waiting on upstream dependencies", BLOCKERS),
    ("integration", "Complex technical dependencies and integrations", BLOCKERS),
    ("challenge", "Recurring challenges slowing project delivery", BLOCKERS),
    ("difficult", "Recurring challenges slowing project delivery", BLOCKERS),
    ("issue", "Open issues requiring cross-team resolution", BLOCKERS),
    ("problem", "Open issues requiring cross-team resolution", BLOCKERS),
    ("resource", "Resource constraints affecting project velocity", BLOCKERS),
    ("capacity", "Resource constraints affecting project velocity", BLOCKERS),
    ("bandwidth", "Resource constraints affecting project velocity", BLOCKERS),
    ("delay", "Timeline slippage and delayed deliverables", BLOCKERS),
    ("behind schedule", "Timeline slippage and delayed deliverables", BLOCKERS),
    ("communication", "Team communication and alignment gaps", BLOCKERS),
    ("alignment", "Team communication and alignment gaps", BLOCKERS),
    ("stakeholder", "Stakeholder expectation management and approvals", BLOCKERS),
    ("approval", "Stakeholder expectation management and approvals", BLOCKERS),
    ("budget", "Budget limitations constraining project scope", BLOCKERS),
    ("milestone", "Met project milestones and deliverables", ACHIEVEMENTS),
    ("complete", "Successfully delivered key initiatives", ACHIEVEMENTS),
    ("finished", "Successfully delivered key initiatives", ACHIEVEMENTS),
    ("delivered", "Successfully delivered key initiatives", ACHIEVEMENTS),
    ("launched", "Launched new campaigns and features to customers", ACHIEVEMENTS),
    ("shipped", "Launched new campaigns and features to customers", ACHIEVEMENTS),
    ("progress", "Steady progress on active projects", ACHIEVEMENTS),
    ("improved", "Improved internal team processes and workflows", ACHIEVEMENTS),
    ("quick win", "Celebrated quick wins and measurable successes", ACHIEVEMENTS),
    ("success", "Celebrated quick wins and measurable successes", ACHIEVEMENTS),
    ("engagement", "Enhanced customer engagement metrics", ACHIEVEMENTS),
    ("conversion", "Enhanced customer engagement metrics", ACHIEVEMENTS),
    ("team", "Team collaboration and cross-functional work", THEMES),
    ("collaborat", "Team collaboration and cross-functional work", THEMES),
    ("deadline", "Project delivery and timeline management", THEMES),
    ("timeline", "Project delivery and timeline management", THEMES),
    ("campaign", "Campaign execution and marketing delivery", THEMES),
    ("launch", "Product and campaign launches", THEMES),
    ("customer", "Customer focus and stakeholder engagement", THEMES),
    ("client", "Customer focus and stakeholder engagement", THEMES),
    ("process", "Process improvement and workflow optimization", THEMES),
    ("workflow", "Process improvement and workflow optimization", THEMES),
    ("metric", "Data-driven decision making", THEMES),
    ("analytics", "Data-driven decision making", THEMES),
    ("training", "Team growth and skill development", THEMES),
    ("skill", "Team growth and skill development", THEMES),
    ("resource", "Resource optimization and capacity", THEMES),
    ("capacity", "Resource optimization and capacity", THEMES),
)

DEFAULT_THEMES: tuple[str, ...] = (
    "Project delivery and timeline management",
    "Team collaboration and cross-functional work",
    "Resource optimization and capacity",
    "Technical excellence and innovation",
    "Team growth and skill development",
)

DEFAULT_BLOCKERS: tuple[str, ...] = (
    "Resource constraints affecting project velocity",
    "Complex technical dependencies and integrations",
    "Team communication and alignment gaps",
    "Capacity planning and workload distribution",
    "Stakeholder expectation management",
)

DEFAULT_ACHIEVEMENTS: tuple[str, ...] = (
    "Successfully delivered key marketing initiatives",
    "Improved internal team processes and workflows",
    "Enhanced cross-team collaboration",
    "Met project milestones and deliverables",
    "Developed new skills and capabilities",
)

RECOMMENDATIONS_LIST: tuple[str, ...] = (
    "Implement dedicated project management tools for better visibility",
    "Establish regular cross-functional sync meetings",
    "Create resource pool for high-priority initiatives",
    "Develop clear escalation and issue resolution process",
    "Invest in team development and training programs",
    "Establish metrics and KPIs for tracking progress",
)

_DEFAULTS: dict[str, tuple[str, ...]] = {
    THEMES: DEFAULT_THEMES,
    BLOCKERS: DEFAULT_BLOCKERS,
    ACHIEVEMENTS: DEFAULT_ACHIEVEMENTS,
}

FALLBACK_FULL_REPORT = (
    "Based on team interviews, the team is actively engaged in multiple projects with strong "
    "delivery momentum. Key focus areas include improving project management processes, "
    "enhancing team communication, and addressing resource constraints. Recommendations "
    "prioritize better visibility into project status, clearer resource allocation, and "
    "structured professional development opportunities. The team demonstrates strong "
    "commitment and collaboration, with opportunities to optimize workflows and increase "
    "efficiency."
)


@dataclass(frozen=True)
class Transcript:
    name: str
    text: str


@dataclass
class InsightReport:
    themes: list[str] = field(default_factory=list)
    blockers: list[str] = field(default_factory=list)
    achievements: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    full_report: str = ""

    def to_summary_report(self) -> SummaryReport:
        return SummaryReport(
            themes=list(self.themes),
            blockers=list(self.blockers),
            achievements=list(self.achievements),
            recommendations=list(self.recommendations),
            full_report=self.full_report,
        )


def analyze(transcripts: Sequence[Transcript]) -> InsightReport:
    """
    Aggregate transcripts into themes, blockers, achievements and recommendations.

    Raises:
        EmptyInputError: when no transcripts are supplied.
    """
    if not transcripts:
        raise EmptyInputError("No interviews provided")

    buffer = "\n".join(item.text for item in transcripts).lower()

    matched: dict[str, list[str]] = {THEMES: [], BLOCKERS: [], ACHIEVEMENTS: []}
    for trigger, insight, category in INSIGHT_TABLE:
        bucket = matched[category]
        if trigger in buffer and insight not in bucket:
            bucket.append(insight)

    themes = _cap(THEMES, matched[THEMES] or list(DEFAULT_THEMES))
    blockers = _cap(BLOCKERS, matched[BLOCKERS] or list(DEFAULT_BLOCKERS))
    achievements = _cap(ACHIEVEMENTS, matched[ACHIEVEMENTS] or list(DEFAULT_ACHIEVEMENTS))

    return InsightReport(
        themes=themes,
        blockers=blockers,
        achievements=achievements,
        recommendations=_cap(RECOMMENDATIONS, list(RECOMMENDATIONS_LIST)),
        full_report=render_full_report(
            themes=themes,
            blockers=blockers,
            achievements=achievements,
            interview_count=len(transcripts),
        ),
    )


def render_full_report(
    *,
    themes: Sequence[str],
    blockers: Sequence[str],
    achievements: Sequence[str],
    interview_count: int,
) -> str:
    """Three-paragraph leadership narrative built from the leading insights."""
    theme_text = _join_leading(themes) or "project delivery and team collaboration"
    achievement_text = _join_leading(achievements) or "steady delivery on active projects"
    blocker_text = _join_leading(blockers) or "resource constraints and competing priorities"
    noun = "interview" if interview_count == 1 else "interviews"

    return (
        f"Based on the {interview_count} team {noun} conducted, the team is actively engaged "
        "in multiple initiatives and shows a strong commitment to delivery. The most prominent "
        f"themes were {theme_text}, which surfaced repeatedly as team members described their "
        "current projects and day-to-day priorities. Taken together, they describe a focused "
        "team that is invested in the outcomes of its work.\n\n"
        "On the delivery side, the team has produced meaningful results, most notably "
        f"{achievement_text}. These wins show that current ways of working are creating "
        "tangible value, and they give the team a solid foundation to build on in the "
        "coming period.\n\n"
        f"The primary challenges center on {blocker_text}. Left unaddressed, these issues "
        "risk slowing delivery and eroding momentum. Leadership should prioritize better "
        "visibility into project status and clearer resource allocation, backed by targeted "
        "investment in team development. With focused support in these areas, the team is "
        "well positioned to increase its impact and efficiency."
    )


def fallback_report() -> InsightReport:
    """Fixed report used when summary generation fails outright."""
    return InsightReport(
        themes=[
            "Project management and delivery timelines",
            "Team collaboration and communication",
            "Resource allocation and capacity",
            "Technical challenges and solutions",
            "Professional development and growth",
        ],
        blockers=[
            "Resource constraints impacting project velocity",
            "Complex technical dependencies slowing delivery",
            "Cross-team coordination challenges",
            "Need for better project visibility",
            "Capacity planning difficulties",
        ],
        achievements=[
            "Successfully launched multiple marketing campaigns",
            "Improved team collaboration processes",
            "Achieved project milestones on schedule",
            "Developed new team capabilities",
            "Enhanced customer engagement metrics",
        ],
        recommendations=[
            "Implement enhanced project tracking and visibility tools",
            "Increase cross-functional team synchronization",
            "Allocate dedicated resources to high-impact projects",
            "Establish clear capacity planning processes",
            "Create mentorship program for skill development",
            "Regular progress review meetings with stakeholders",
        ],
        full_report=FALLBACK_FULL_REPORT,
    )


# ---------------------------------------------------------------------------
# External summarization agent
# ---------------------------------------------------------------------------

def build_aggregator_prompt(transcripts: Sequence[Transcript]) -> str:
    interview_block = "\n".join(
        f"\n\n=== {item.name} ===\n{item.text}" for item in transcripts
    )
    return (
        "You are an expert insights aggregator for a marketing team. Analyze the following "
        "interview transcripts from multiple team members and provide a comprehensive "
        "summary report.\n\n"
        "INTERVIEW TRANSCRIPTS:\n"
        f"{interview_block}\n\n"
        "Your task is to analyze these interviews and provide:\n\n"
        "1. THEMES: Identify 4-6 recurring themes, patterns, and focus areas mentioned across interviews\n"
        "2. BLOCKERS: Extract 3-5 key challenges, blockers, or issues the team is facing\n"
        "3. ACHIEVEMENTS: Highlight 3-5 key wins, completed projects, and achievements\n"
        "4. RECOMMENDATIONS: Provide 4-6 actionable recommendations for leadership based on the interviews\n"
        "5. FULL REPORT: Write a comprehensive 200-300 word summary report synthesizing all findings\n\n"
        "IMPORTANT: Respond with a JSON object in this exact format:\n"
        "{\n"
        '  "themes": ["theme1", "theme2", "theme3", "theme4"],\n'
        '  "blockers": ["blocker1", "blocker2", "blocker3"],\n'
        '  "achievements": ["achievement1", "achievement2", "achievement3"],\n'
        '  "recommendations": ["recommendation1", "recommendation2", "recommendation3"],\n'
        '  "fullReport": "Comprehensive narrative summary here..."\n'
        "}\n\n"
        "Ensure themes, blockers, and achievements are concise (10-20 words each).\n"
        "Make recommendations specific and actionable.\n"
        "Write the fullReport in professional business language suitable for leadership presentation."
    )


def parse_agent_payload(raw_text: str) -> dict[str, Any]:
    """
    Pull the JSON object out of an agent reply.

    Raises:
        UpstreamAgentError: when no JSON object can be recovered.
    """
    payload = _extract_json_payload(raw_text)
    if payload is None:
        raise UpstreamAgentError("Insights agent returned non-JSON content")
    return payload


def merge_agent_insights(
    payload: dict[str, Any],
    transcripts: Sequence[Transcript],
) -> InsightReport:
    """Validate agent output and back-fill anything missing from the local analysis."""
    cleaned = {
        category: _clean_items(payload.get(category))[: CATEGORY_CAPS[category]]
        for category in CATEGORY_CAPS
    }
    full_report = payload.get("fullReport")
    if not isinstance(full_report, str) or not full_report.strip():
        full_report = payload.get("full_report")

    local: InsightReport | None = None
    if not all(cleaned.values()) or not isinstance(full_report, str) or not full_report.strip():
        local = analyze(transcripts)

    return InsightReport(
        themes=cleaned[THEMES] or local.themes,
        blockers=cleaned[BLOCKERS] or local.blockers,
        achievements=cleaned[ACHIEVEMENTS] or local.achievements,
        recommendations=cleaned[RECOMMENDATIONS] or local.recommendations,
        full_report=(
            full_report.strip()
            if isinstance(full_report, str) and full_report.strip()
            else local.full_report
        ),
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _cap(category: str, items: list[str]) -> list[str]:
    return items[: CATEGORY_CAPS[category]]


def _join_leading(items: Sequence[str]) -> str:
    leading = [_lower_first(item) for item in list(items)[:2] if item.strip()]
    return " and ".join(leading)


def _lower_first(text: str) -> str:
    text = text.strip()
    if len(text) > 1 and text[1].isupper():
        return text  # acronym, e.g. "KPI tracking"
    return text[:1].lower() + text[1:]


def _clean_items(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    items: list[str] = []
    for raw in value:
        if not isinstance(raw, str):
            continue
        text = " ".join(raw.split())
        if text:
            items.append(text)
    return items


def _extract_json_payload(raw_text: str) -> dict[str, Any] | None:
    stripped = raw_text.strip()
    if not stripped:
        return None

    direct = _try_parse_json(stripped)
    if isinstance(direct, dict):
        return direct

    if stripped.startswith("```"):
        fence_match = re.search(r"```(?:json)?\s*(\{.*\})\s*```", stripped, flags=re.S | re.I)
        if fence_match:
            parsed = _try_parse_json(fence_match.group(1))
            if isinstance(parsed, dict):
                return parsed

    brace_match = re.search(r"\{.*\}", stripped, flags=re.S)
    if brace_match:
        parsed = _try_parse_json(brace_match.group(0))
        if isinstance(parsed, dict):
            return parsed
    return None


def _try_parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None
