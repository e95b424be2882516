"""
json_parser.py — Defensive parsing of model output
===================================================
Model replies are untrusted: they arrive wrapped in markdown fences,
surrounded by prose, with trailing commas or truncated structures.  This
module turns such text into a contract-valid pydantic model or raises a
ParseError subclass that the retry loop can feed back to the model.

Pipeline (strictly ordered)
---------------------------
  1. clean_markdown()   strip ```json / ``` fences; if fences remain, keep
                        what sits between the first and the last fence
  2. extract_json()     first '{' … last '}', else first '[' … last ']'
                        (a lone opener yields the truncated tail)
                        → StructuralExtractionFailure when neither exists
  3. repair_json()      trailing commas before '}' / ']' are dropped
  4. json.loads()       → JsonSyntaxFailure carrying the ORIGINAL raw text
  5. validate()         → SchemaValidationFailure (see validation.py)

Repair is limited to trailing commas.  Anything else the model gets wrong
is a JsonSyntaxFailure and goes back to the model as a correction request.

Public API
----------
  extract_structured_data(content, attempt_repair=True) → Any
  parse_llm_output(content, schema, attempt_repair=True) → schema instance
  is_valid_json(text)                                   → bool
  parse_multiple_json(text, schema)                     → list[schema]
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, TypeVar

from pydantic import BaseModel

from academy_agents.errors import JsonSyntaxFailure, StructuralExtractionFailure
from academy_agents.validation import validate

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


# ─── Patterns ────────────────────────────────────────────────────────────────

_LEADING_FENCE  = re.compile(r"^\s*```[ \t]*(?:[A-Za-z0-9_+-]+)?[ \t]*\n?")
_TRAILING_FENCE = re.compile(r"\n?[ \t]*```\s*$")
# Greedy: spans from the first fence to the last one.
_FENCED_BLOCK   = re.compile(r"```(?:json)?\s*(.*)```", re.IGNORECASE | re.DOTALL)

_TRAILING_COMMA = re.compile(r",(\s*[}\]])")

# Objects nested at most one level deep.
_SHALLOW_OBJECT = re.compile(r"\{[^{}]*(?:\{[^{}]*\}[^{}]*)*\}")


# ─── Stages ──────────────────────────────────────────────────────────────────

def clean_markdown(content: str) -> str:
    """Remove markdown code fences around a JSON payload."""
    cleaned = _LEADING_FENCE.sub("", content, count=1)
    cleaned = _TRAILING_FENCE.sub("", cleaned, count=1).strip()

    if "```" in cleaned:
        match = _FENCED_BLOCK.search(cleaned)
        if match:
            cleaned = match.group(1).strip()

    return cleaned


def extract_json(content: str) -> str:
    """
    Slice the outermost object (or, failing that, array) out of *content*.

    Only text with no '{' or '[' at all is reported as having no structure.
    An opener with no closer after it, including prose with stray braces such
    as ``"I cannot answer } that {"``, yields the tail from that opener and
    fails later as a syntax error.
    """
    first_brace = content.find("{")
    last_brace  = content.rfind("}")
    if first_brace != -1 and last_brace != -1 and first_brace < last_brace:
        return content[first_brace:last_brace + 1]

    first_bracket = content.find("[")
    last_bracket  = content.rfind("]")
    if first_bracket != -1 and last_bracket != -1 and first_bracket < last_bracket:
        return content[first_bracket:last_bracket + 1]

    # An opener without its closer is a truncated structure: hand the tail to
    # json.loads() so it is reported as a syntax failure, not a missing one.
    openers = [
        i for i, closer in ((first_brace, "}"), (first_bracket, "]"))
        if i != -1 and content.find(closer, i) == -1
    ]
    if openers:
        return content[min(openers):]

    raise StructuralExtractionFailure("No valid JSON structure found", content)


def is_valid_json(content: str) -> bool:
    try:
        json.loads(content)
    except (TypeError, ValueError):
        return False
    return True


def repair_json(candidate: str) -> str:
    """
    Drop trailing commas before a closing brace or bracket.

    Text that already parses is returned unchanged, so commas inside valid
    string values are never touched.  The result is NOT guaranteed to parse.
    """
    if is_valid_json(candidate):
        return candidate
    return _TRAILING_COMMA.sub(r"\1", candidate)


# ─── Pipeline ────────────────────────────────────────────────────────────────

def extract_structured_data(content: str, attempt_repair: bool = True) -> Any:
    """Run fence stripping, boundary extraction, repair and json.loads()."""
    if not isinstance(content, str):
        raise StructuralExtractionFailure(
            f"Model output is {type(content).__name__}, not text", repr(content)
        )

    cleaned   = clean_markdown(content)
    candidate = extract_json(cleaned)
    if attempt_repair:
        candidate = repair_json(candidate)

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise JsonSyntaxFailure(
            f"Failed to parse JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})",
            content,
            exc,
        ) from exc

    logger.debug("Extracted %s from %d chars of model output", type(data).__name__, len(content))
    return data


def parse_llm_output(content: str, schema: type[T], attempt_repair: bool = True) -> T:
    """
    Parse raw model text and validate it against *schema*.

    Raises:
        StructuralExtractionFailure – no JSON structure in the text.
        JsonSyntaxFailure           – structure found but unparsable.
        SchemaValidationFailure     – parsed but violates the contract.
    """
    data = extract_structured_data(content, attempt_repair)
    return validate(data, schema, raw_content=content).unwrap()


def parse_multiple_json(content: str, schema: type[T]) -> list[T]:
    """Return every shallow JSON object in *content* that satisfies *schema*."""
    results: list[T] = []
    for match in _SHALLOW_OBJECT.findall(content or ""):
        try:
            data = json.loads(match)
        except json.JSONDecodeError:
            continue
        outcome = validate(data, schema, raw_content=match)
        if outcome.ok:
            results.append(outcome.value)
    return results
