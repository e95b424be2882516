"""
discovery_coach_agent.py — Discovery Coach
===========================================
Gives real-time feedback on a learner's discovery question so they can
practise outcome-based discovery.  Each reply rates the question
(excellent | good | needs_improvement), explains the rating, lists concrete
improvements and may suggest a follow-up question and a 0–100 score.

  Input:   the learner's discovery question
  Output:  DiscoveryCoachOutput
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
    DiscoveryCoachOutput,
    SessionState,
)

_SYSTEM_PROMPT = textwrap.dedent("""
    You are a VOS Discovery Coach. Your role is to help sales professionals master outcome-based discovery.

    Core VOS Principles:
    1. Start with role-owned KPIs
    2. Quantify current state vs. benchmark
    3. Identify blockers to KPI progress
    4. Calculate business impact
    5. Map to Revenue, Cost, or Risk

    Evaluate discovery questions on:
    - Specificity (avoids vague "tell me about..." questions)
    - Quantification (seeks numbers, not just stories)
    - Outcome-focus (ties to business KPIs, not features)
    - Follow-through (builds on previous answers)

    Provide constructive feedback that helps the learner improve.
""").strip()

DEFAULT_CONFIG = AgentConfiguration(
    model="gpt-4",
    temperature=0.7,
    max_tokens=500,
    system_prompt=_SYSTEM_PROMPT,
)

# Shape shown to the model; enum members are spelled out as alternatives.
_OUTPUT_SHAPE: dict[str, Any] = {
    "response": "Your conversational response to the learner",
    "feedback": {
        "quality": "excellent | good | needs_improvement",
        "reasoning": "Why you rated it this way",
        "improvements": ["Specific suggestion 1", "Specific suggestion 2"],
    },
    "nextPrompt": "A suggested follow-up question the learner could ask",
    "score": 85,
}

_MOCK_PAYLOAD: dict[str, Any] = {
    "response": "Good start. Anchor the question on a KPI the buyer owns.",
    "feedback": {
        "quality": "good",
        "reasoning": "The question is open but does not ask for a number.",
        "improvements": ["Ask for the current value of the KPI", "Ask what a target value would be worth"],
    },
    "nextPrompt": "What is your current time-to-close, and where would you like it to be?",
    "score": 70,
}


def build_prompt(
    user_input: str,
    context: AgentContext,
    session_state: SessionState,
    configuration: AgentConfiguration,
    history_window: int = 10,
) -> str:
    profile = context.user_profile
    lesson  = context.current_lesson.title if context.current_lesson else "Discovery Practice"
    history = build_conversation_context(session_state, history_window) or "(no previous messages)"

    return "\n".join([
        configuration.system_prompt,
        "",
        "LEARNER CONTEXT:",
        f"- Role: {profile.role}",
        f"- Maturity Level: {profile.maturity_level}",
        f"- Current Lesson: {lesson}",
        "",
        "CONVERSATION HISTORY:",
        history,
        "",
        "LEARNER'S DISCOVERY QUESTION:",
        f'"{user_input}"',
        "",
        render_output_instructions(
            _OUTPUT_SHAPE, "Evaluate this discovery question and provide feedback",
        ),
    ])


DISCOVERY_COACH = AgentVariant(
    name="discovery_coach",
    configuration=DEFAULT_CONFIG,
    output_schema=DiscoveryCoachOutput,
    build_prompt=build_prompt,
    mock_payload=_MOCK_PAYLOAD,
)


def create_discovery_coach_agent(
    client: Optional[GenerationClient] = None,
    settings: Optional[Settings] = None,
    **config_overrides: Any,
) -> Agent[DiscoveryCoachOutput]:
    """Build a coach agent; without *client* the backend is chosen from settings."""
    variant = DISCOVERY_COACH.with_configuration(**config_overrides)
    if client is None:
        client = make_generation_client(variant.configuration, settings, variant.mock_payload)
    return Agent(variant=variant, client=client, settings=settings)
