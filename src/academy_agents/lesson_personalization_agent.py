"""
lesson_personalization_agent.py — Learning Path Advisor
========================================================
Recommends a personalised learning path through the Academy curriculum
from the learner's role, maturity level and completed lessons.

  Input:   a free-text request, e.g. "I want to get better at business cases"
  Output:  LessonPersonalizationOutput

Only a short, relevant slice of the curriculum is put in the prompt.  The
caller may pass the lessons it retrieved in ``AgentContext.available_lessons``;
when it passes none, the built-in LESSON_CATALOGUE is filtered to lessons
open to the learner's role within one maturity level of theirs.
"""

from __future__ import annotations

import textwrap
from typing import Any, Optional

from academy_agents.agent import (
    Agent,
    AgentVariant,
    build_conversation_context,
    render_output_instructions,
)
from academy_agents.config import Settings
from academy_agents.generation import GenerationClient, make_generation_client
from academy_agents.models import (
    AgentConfiguration,
    AgentContext,
    LessonPersonalizationOutput,
    LessonRef,
    SessionState,
    UserProfile,
)

_SYSTEM_PROMPT = textwrap.dedent("""
    You are a VOS Learning Path Advisor. Your role is to recommend personalized learning paths based on:

    1. User's current role (Sales, CS, Marketing, Product, Executive, VE)
    2. Current maturity level (0-5)
    3. Completed lessons and quiz scores
    4. Career goals and focus areas

    VOS Academy Structure:
    - 6 Roles × 6 Maturity Levels = 36 possible learning paths
    - 10 Pillars covering the full VOS methodology
    - Lessons can target specific roles or "All"

    Recommendation Strategy:
    - Prioritize lessons at current maturity level
    - Show "next level" preview for motivation
    - Balance role-specific and cross-functional content
    - Identify skill gaps based on quiz performance
""").strip()

DEFAULT_CONFIG = AgentConfiguration(
    model="gpt-4",
    temperature=0.3,   # lower for consistent recommendations
    max_tokens=800,
    system_prompt=_SYSTEM_PROMPT,
)


# ─── Sample curriculum slice ─────────────────────────────────────────────────

LESSON_CATALOGUE: tuple[LessonRef, ...] = (
    LessonRef(
        id="pillar-1-outcome-economics-intro",
        title="Outcome Economics: The Value Triad",
        target_roles=("All",),
        min_maturity=1,
    ),
    LessonRef(
        id="pillar-1-kpi-modeling",
        title="KPI Modeling & Benchmarks",
        target_roles=("All",),
        min_maturity=1,
    ),
    LessonRef(
        id="pillar-2-discovery-intro",
        title="Discovery Excellence",
        target_roles=("All",),
        min_maturity=2,
    ),
    LessonRef(
        id="pillar-2-pain-to-value",
        title="Pain to Value Hypotheses",
        target_roles=("Sales", "CS"),
        min_maturity=2,
    ),
    LessonRef(
        id="pillar-1-advanced-modeling",
        title="Advanced ROI Modeling for Value Engineers",
        target_roles=("VE", "Executive"),
        min_maturity=3,
    ),
)

_OUTPUT_SHAPE: dict[str, Any] = {
    "recommendedLessons": [
        {
            "lessonId": "pillar-1-outcome-economics-intro",
            "relevanceScore": 95,
            "reasoning": "Foundational for all roles, addresses gap in outcome thinking",
        }
    ],
    "learningPath": ["lesson-id-1", "lesson-id-2", "lesson-id-3"],
    "focusAreas": ["Discovery Excellence", "KPI Modeling", "Business Case Development"],
}

_MOCK_PAYLOAD: dict[str, Any] = {
    "recommendedLessons": [
        {
            "lessonId": "pillar-1-kpi-modeling",
            "relevanceScore": 90,
            "reasoning": "Builds the KPI vocabulary every later pillar relies on.",
        }
    ],
    "learningPath": ["pillar-1-kpi-modeling", "pillar-2-discovery-intro"],
    "focusAreas": ["KPI Modeling", "Discovery Excellence"],
}


def relevant_lessons(profile: UserProfile, catalogue: tuple[LessonRef, ...] = LESSON_CATALOGUE) -> list[LessonRef]:
    """Lessons open to the learner's role, within one maturity level of theirs."""
    return [
        lesson for lesson in catalogue
        if ("All" in lesson.target_roles or profile.role in lesson.target_roles)
        and lesson.min_maturity <= profile.maturity_level + 1
    ]


def _lesson_context(context: AgentContext) -> str:
    lessons = list(context.available_lessons) or relevant_lessons(context.user_profile)
    if not lessons:
        return "(no lessons available)"
    return "\n".join(
        f'- {lesson.id}: "{lesson.title}" '
        f"(Roles: {', '.join(lesson.target_roles)}, Level: {lesson.min_maturity})"
        for lesson in lessons
    )


def build_prompt(
    user_input: str,
    context: AgentContext,
    session_state: SessionState,
    configuration: AgentConfiguration,
    history_window: int = 10,
) -> str:
    profile   = context.user_profile
    completed = profile.completed_lessons
    history   = build_conversation_context(session_state, history_window) or "(no previous messages)"

    return "\n".join([
        configuration.system_prompt,
        "",
        "USER PROFILE:",
        f"- Role: {profile.role}",
        f"- Maturity Level: {profile.maturity_level}",
        f"- Completed Lessons: {len(completed)} ({', '.join(completed)})",
        "",
        "CONVERSATION HISTORY:",
        history,
        "",
        "USER REQUEST:",
        f'"{user_input}"',
        "",
        "AVAILABLE LESSONS:",
        _lesson_context(context),
        "",
        render_output_instructions(_OUTPUT_SHAPE, "Recommend a personalized learning path"),
    ])


LESSON_PERSONALIZATION = AgentVariant(
    name="lesson_personalization",
    configuration=DEFAULT_CONFIG,
    output_schema=LessonPersonalizationOutput,
    build_prompt=build_prompt,
    mock_payload=_MOCK_PAYLOAD,
)


def create_lesson_personalization_agent(
    client: Optional[GenerationClient] = None,
    settings: Optional[Settings] = None,
    **config_overrides: Any,
) -> Agent[LessonPersonalizationOutput]:
    variant = LESSON_PERSONALIZATION.with_configuration(**config_overrides)
    if client is None:
        client = make_generation_client(variant.configuration, settings, variant.mock_payload)
    return Agent(variant=variant, client=client, settings=settings)
