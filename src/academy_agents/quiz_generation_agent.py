"""
quiz_generation_agent.py — Quiz Generation Agent
=================================================
Generates scenario-based multiple-choice questions for the current lesson,
pitched at the learner's role and maturity level.

  Input:   a free-text generation request, e.g. "number of questions: 5,
           focus on KPI discovery"
  Output:  QuizGenerationOutput (ids unique, correctAnswer is an option id)

Question count: the first integer in the request when it mentions a number
of questions, otherwise DEFAULT_QUESTION_COUNT; clamped to 1–20.
"""

from __future__ import annotations

import re
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
    QuizGenerationOutput,
    SessionState,
)

DEFAULT_QUESTION_COUNT = 3
MAX_QUESTION_COUNT     = 20

_SYSTEM_PROMPT = textwrap.dedent("""
    You are a VOS Assessment Designer. Create quiz questions that test understanding of VOS principles, not just memorization.

    Question Design Principles:
    1. Scenario-based: Use realistic business situations
    2. Outcome-focused: Test ability to apply VOS frameworks
    3. Progressive difficulty: Match user's maturity level
    4. Actionable feedback: Explanations should teach, not just correct

    Question Types:
    - Application: "Given this scenario, which approach aligns with VOS?"
    - Analysis: "What's the primary issue with this discovery question?"
    - Synthesis: "How would you quantify this pain point?"

    Avoid:
    - Pure definition questions ("What is the Value Triad?")
    - Trick questions with ambiguous answers
    - Questions requiring external knowledge not covered in the lesson
""").strip()

DEFAULT_CONFIG = AgentConfiguration(
    model="gpt-4",
    temperature=0.5,
    max_tokens=1500,
    system_prompt=_SYSTEM_PROMPT,
)

_OUTPUT_SHAPE: dict[str, Any] = {
    "questions": [
        {
            "id": "q1",
            "text": (
                "A customer says 'We need better reporting.' "
                "Which question best translates this to outcome language?"
            ),
            "options": [
                {"id": "a", "text": "What reporting features do you need?"},
                {"id": "b", "text": "What decision are you trying to make faster with that data?"},
                {"id": "c", "text": "How many reports do you run per week?"},
                {"id": "d", "text": "What tools do you currently use?"},
            ],
            "correctAnswer": "b",
            "explanation": (
                "Outcome-focused questions dig into the business impact "
                "(faster decisions) rather than features."
            ),
            "difficulty": "easy | medium | hard",
        }
    ]
}

_MOCK_PAYLOAD: dict[str, Any] = {
    "questions": [
        {
            "id": "q1",
            "text": "Which question uncovers a role-owned KPI?",
            "options": [
                {"id": "a", "text": "Which features matter most to you?"},
                {"id": "b", "text": "Which metric are you measured on this quarter?"},
            ],
            "correctAnswer": "b",
            "explanation": "KPIs are the metrics a role is measured on.",
            "difficulty": "easy",
        }
    ]
}

_COUNT_HINT = re.compile(r"\b(number|questions?)\b", re.IGNORECASE)
_INTEGER    = re.compile(r"\d+")


def requested_question_count(user_input: str) -> int:
    """Number of questions asked for in *user_input* (see module docstring)."""
    if _COUNT_HINT.search(user_input):
        match = _INTEGER.search(user_input)
        if match:
            return max(1, min(MAX_QUESTION_COUNT, int(match.group())))
    return DEFAULT_QUESTION_COUNT


def build_prompt(
    user_input: str,
    context: AgentContext,
    session_state: SessionState,
    configuration: AgentConfiguration,
    history_window: int = 10,
) -> str:
    profile = context.user_profile
    lesson  = context.current_lesson.title if context.current_lesson else "VOS Fundamentals"
    count   = requested_question_count(user_input)
    history = build_conversation_context(session_state, history_window) or "(no previous messages)"

    return "\n".join([
        configuration.system_prompt,
        "",
        "LESSON CONTEXT:",
        f"- Title: {lesson}",
        f"- Target Role: {profile.role}",
        f"- Maturity Level: {profile.maturity_level}",
        "",
        "CONVERSATION HISTORY:",
        history,
        "",
        "GENERATION REQUEST:",
        f'"{user_input}"',
        "",
        f"Generate {count} questions with unique ids; correctAnswer must be one of the option ids.",
        render_output_instructions(_OUTPUT_SHAPE, "Generate quiz questions"),
    ])


QUIZ_GENERATION = AgentVariant(
    name="quiz_generation",
    configuration=DEFAULT_CONFIG,
    output_schema=QuizGenerationOutput,
    build_prompt=build_prompt,
    mock_payload=_MOCK_PAYLOAD,
)


def create_quiz_generation_agent(
    client: Optional[GenerationClient] = None,
    settings: Optional[Settings] = None,
    **config_overrides: Any,
) -> Agent[QuizGenerationOutput]:
    variant = QUIZ_GENERATION.with_configuration(**config_overrides)
    if client is None:
        client = make_generation_client(variant.configuration, settings, variant.mock_payload)
    return Agent(variant=variant, client=client, settings=settings)
