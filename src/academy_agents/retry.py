"""
retry.py — Retry-with-correction loop
======================================
State machine per execute() call:

    Attempting ──ok──────────────────────────────▶ Success(value)
        │
        └─ ParseError, attempt < max_retries ─▶ Retryable
                 correction prompt → generate() → attempt += 1 → Attempting
        └─ ParseError, attempt == max_retries ─▶ TerminalParseFailure

Attempts are strictly sequential.  Backend failures raised while asking for
a correction are converted to UnexpectedFailure and are never retried here.
With the default ``max_retries=2`` a reply is parsed at most three times and
at most two correction prompts are sent.
"""

from __future__ import annotations

import logging
import time
from typing import Optional, TypeVar

from pydantic import BaseModel

from academy_agents.agent_trace import AttemptRecord, ExecutionTrace, elapsed_ms
from academy_agents.errors import ParseError, TerminalParseFailure
from academy_agents.generation import GenerateFn, call_generation
from academy_agents.json_parser import parse_llm_output

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

DEFAULT_MAX_RETRIES = 2


def build_correction_prompt(error: ParseError, previous_content: object) -> str:
    """Prompt asking the model to fix its previous reply."""
    return (
        f"Your previous response had a JSON formatting error: {error.message}\n"
        "\n"
        "Please provide a corrected response that is valid JSON.\n"
        "\n"
        "Your previous response was:\n"
        f"{previous_content}\n"
        "\n"
        "Provide ONLY the corrected JSON, with no additional text or markdown."
    )


def parse_with_retry(
    generate: GenerateFn,
    initial_content: str,
    schema: type[T],
    max_retries: int = DEFAULT_MAX_RETRIES,
    attempt_repair: bool = True,
    trace: Optional[ExecutionTrace] = None,
) -> T:
    """
    Parse *initial_content* against *schema*, asking *generate* for a
    corrected reply after each content-level failure.

    Raises:
        TerminalParseFailure – every attempt failed; carries the last raw text
                               and the last ParseError as cause.
        UnexpectedFailure    – *generate* itself failed.
        ValueError           – max_retries is negative.
    """
    if max_retries < 0:
        raise ValueError(f"max_retries must be >= 0, got {max_retries}")

    content = initial_content
    last_error: Optional[ParseError] = None

    for attempt in range(max_retries + 1):
        start = time.perf_counter()
        try:
            value = parse_llm_output(content, schema, attempt_repair)
        except ParseError as exc:
            last_error = exc
            exhausted  = attempt == max_retries
            if trace is not None:
                trace.append(AttemptRecord(
                    attempt       = attempt,
                    status        = "exhausted" if exhausted else "retry",
                    duration_ms   = elapsed_ms(start),
                    raw_chars     = len(content) if isinstance(content, str) else 0,
                    error_type    = type(exc).__name__,
                    error_message = exc.message,
                ))
            if exhausted:
                break
            logger.warning(
                "%s on attempt %d/%d for %s; requesting correction",
                type(exc).__name__, attempt + 1, max_retries + 1, schema.__name__,
            )
            content = call_generation(generate, build_correction_prompt(exc, content))
            continue

        if trace is not None:
            trace.append(AttemptRecord(
                attempt     = attempt,
                status      = "success",
                duration_ms = elapsed_ms(start),
                raw_chars   = len(content),
            ))
        if attempt:
            logger.info("%s parsed after %d correction(s)", schema.__name__, attempt)
        return value

    attempts = max_retries + 1
    logger.error(
        "Giving up on %s after %d attempt(s): %s",
        schema.__name__, attempts, last_error.message if last_error else "unknown error",
    )
    raise TerminalParseFailure(
        f"Failed to obtain valid {schema.__name__} after {attempts} attempt(s): "
        f"{last_error.message if last_error else 'unknown error'}",
        content if isinstance(content, str) else repr(content),
        cause=last_error,
        attempts=attempts,
    ) from last_error
