"""
agent.py — Stateless agent template
====================================
Every agent variant is a small strategy record (AgentVariant) holding its
configuration, output contract and prompt builder.  One shared function
runs the pipeline for all of them:

    sanitize → build prompt → generate → parse_with_retry → typed output

Nothing is kept between calls.  Conversation continuity lives entirely in
the SessionState argument; ``run_agent`` returns an updated copy and never
touches the snapshot it was given.

Public API
----------
  AgentVariant                       strategy record per variant
  execute_agent(variant, client, …)  → typed output
  run_agent(variant, client, …)      → AgentRun(output, session_state, trace, guardrails)
  update_session_state(state, …)     → new SessionState with user + agent turns
  build_conversation_context(state)  → "ROLE: content" transcript of recent turns
  render_output_instructions(shape)  → JSON-shape instructions closing each prompt
  Agent                              immutable (variant, client) façade
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Generic, Optional, TypeVar

from pydantic import BaseModel

from academy_agents.agent_trace import ExecutionTrace, elapsed_ms, new_trace
from academy_agents.config import Settings, get_settings
from academy_agents.generation import (
    AzureOpenAIGenerationClient,
    GenerationClient,
    MockGenerationClient,
    call_generation,
)
from academy_agents.guardrails import GuardrailResult, InputSanitizer
from academy_agents.models import AgentConfiguration, AgentContext, MessageRole, SessionState
from academy_agents.retry import parse_with_retry

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

# (sanitized_input, context, session_state, configuration, history_window) -> prompt
PromptBuilder = Callable[[str, AgentContext, SessionState, AgentConfiguration, int], str]


@dataclass(frozen=True)
class AgentVariant(Generic[T]):
    """Everything that distinguishes one agent from another."""
    name:          str
    configuration: AgentConfiguration
    output_schema: type[T]
    build_prompt:  PromptBuilder
    mock_payload:  dict[str, Any] = field(default_factory=dict)

    def with_configuration(self, **overrides: Any) -> "AgentVariant[T]":
        return replace(self, configuration=self.configuration.with_overrides(**overrides))


@dataclass(frozen=True)
class AgentRun(Generic[T]):
    output:        T
    session_state: SessionState
    trace:         ExecutionTrace
    guardrails:    GuardrailResult


# ─── Prompt helpers ──────────────────────────────────────────────────────────

def build_conversation_context(session_state: SessionState, max_messages: int = 10) -> str:
    """Most recent *max_messages* turns, oldest first, one "ROLE: content" per line."""
    return "\n".join(
        f"{msg.role.value.upper()}: {msg.content}"
        for msg in session_state.recent_messages(max_messages)
    )


def render_output_instructions(shape: dict[str, Any], preamble: str) -> str:
    return (
        f"{preamble} in the following JSON format:\n"
        f"{json.dumps(shape, indent=2)}\n"
        "\n"
        "Respond ONLY with valid JSON, no additional text."
    )


# ─── Session state ───────────────────────────────────────────────────────────

def update_session_state(
    current_state: SessionState,
    user_input: str,
    agent_response: str,
    timestamp: Optional[int] = None,
) -> SessionState:
    """Return a new SessionState with the user turn and agent reply appended."""
    if timestamp is None:
        timestamp = int(time.time() * 1000)
    last = current_state.last_timestamp
    if last is not None and timestamp < last:
        timestamp = last
    return (
        current_state
        .append(MessageRole.USER, user_input, timestamp)
        .append(MessageRole.AGENT, agent_response, timestamp + 1)
    )


# ─── Template ────────────────────────────────────────────────────────────────

def _client_mode(client: GenerationClient) -> str:
    if isinstance(client, AzureOpenAIGenerationClient):
        return "live"
    if isinstance(client, MockGenerationClient):
        return "mock"
    return type(client).__name__


def _execute(
    variant: AgentVariant[T],
    client: GenerationClient,
    user_input: str,
    context: AgentContext,
    session_state: SessionState,
    settings: Settings,
) -> tuple[T, str, ExecutionTrace, GuardrailResult]:
    agent_settings = settings.agents
    trace = new_trace(variant.name, session_state.session_id, _client_mode(client))
    start = time.perf_counter()

    sanitizer  = InputSanitizer(agent_settings.max_input_chars)
    guardrails = sanitizer.check(user_input)
    trace.warnings.extend(v.message for v in guardrails.violations)
    sanitized  = sanitizer.sanitize(user_input)

    prompt = variant.build_prompt(
        sanitized, context, session_state, variant.configuration, agent_settings.history_window,
    )
    trace.prompt_chars = len(prompt)
    logger.debug("%s: prompt built (%d chars)", variant.name, len(prompt))

    try:
        raw = call_generation(client.generate, prompt)
        output = parse_with_retry(
            client.generate,
            raw,
            variant.output_schema,
            max_retries    = agent_settings.max_retries,
            attempt_repair = agent_settings.attempt_repair,
            trace          = trace,
        )
    finally:
        trace.total_ms = elapsed_ms(start)

    logger.info(
        "%s completed in %.0f ms (%d correction(s))",
        variant.name, trace.total_ms, trace.correction_count,
    )
    return output, sanitized, trace, guardrails


def execute_agent(
    variant: AgentVariant[T],
    client: GenerationClient,
    user_input: str,
    context: AgentContext,
    session_state: SessionState,
    settings: Optional[Settings] = None,
) -> T:
    """
    Run one agent call and return its contract-valid output.

    Raises:
        TerminalParseFailure – the model never produced a valid reply.
        UnexpectedFailure    – the generation backend failed.
    """
    output, _, _, _ = _execute(
        variant, client, user_input, context, session_state, settings or get_settings(),
    )
    return output


def run_agent(
    variant: AgentVariant[T],
    client: GenerationClient,
    user_input: str,
    context: AgentContext,
    session_state: SessionState,
    settings: Optional[Settings] = None,
    timestamp: Optional[int] = None,
) -> AgentRun[T]:
    """Like execute_agent, but also returns the updated session and the trace."""
    output, sanitized, trace, guardrails = _execute(
        variant, client, user_input, context, session_state, settings or get_settings(),
    )
    reply = output.model_dump_json(by_alias=True, exclude_none=True)
    new_state = update_session_state(session_state, sanitized, reply, timestamp)
    return AgentRun(output=output, session_state=new_state, trace=trace, guardrails=guardrails)


@dataclass(frozen=True)
class Agent(Generic[T]):
    """Binds a variant to a generation client.  Holds no per-call state."""
    variant:  AgentVariant[T]
    client:   GenerationClient
    settings: Optional[Settings] = None

    @property
    def name(self) -> str:
        return self.variant.name

    @property
    def configuration(self) -> AgentConfiguration:
        return self.variant.configuration

    def build_prompt(self, user_input: str, context: AgentContext, session_state: SessionState) -> str:
        settings = self.settings or get_settings()
        return self.variant.build_prompt(
            user_input, context, session_state, self.variant.configuration,
            settings.agents.history_window,
        )

    def execute(self, user_input: str, context: AgentContext, session_state: SessionState) -> T:
        return execute_agent(self.variant, self.client, user_input, context, session_state, self.settings)

    def run(
        self,
        user_input: str,
        context: AgentContext,
        session_state: SessionState,
        timestamp: Optional[int] = None,
    ) -> AgentRun[T]:
        return run_agent(
            self.variant, self.client, user_input, context, session_state, self.settings, timestamp,
        )
