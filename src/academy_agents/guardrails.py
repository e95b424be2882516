"""
guardrails.py – Input sanitising layer
=======================================
Bounds the cost of every agent call and strips the most obvious hostile
patterns from learner text before it reaches a prompt.  This is
defence-in-depth, not a security boundary.

Guardrail levels
----------------
WARN    – Soft-stop: the caller proceeds with a visible warning.
INFO    – Advisory: informational note logged in the execution trace.

Checks implemented (InputSanitizer.check)
-----------------------------------------
  S-01  Script markup present (stripped)              WARN
  S-02  SQL keyword present (stripped)                INFO
  S-03  Input longer than the bound (truncated)       INFO
  S-04  Nothing usable left after sanitising          WARN

sanitize_input() always returns a string and never raises; the checks are
advisory and never stop an agent run.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


DEFAULT_MAX_INPUT_CHARS = 2000


# ─── Enums & data models ─────────────────────────────────────────────────────

class GuardrailLevel(str, Enum):
    WARN  = "WARN"
    INFO  = "INFO"


@dataclass
class GuardrailViolation:
    code:    str
    level:   GuardrailLevel
    message: str
    field:   str = ""   # which field triggered the violation


@dataclass
class GuardrailResult:
    passed:     bool
    violations: list[GuardrailViolation] = field(default_factory=list)

    @property
    def warnings(self) -> list[GuardrailViolation]:
        return [v for v in self.violations if v.level == GuardrailLevel.WARN]

    def summary(self) -> str:
        if not self.violations:
            return "✅ All guardrails passed."
        lines = [f"{'⚠️' if v.level == GuardrailLevel.WARN else 'ℹ️'} [{v.code}] {v.message}" for v in self.violations]
        return "\n".join(lines)


# ─── Patterns ────────────────────────────────────────────────────────────────

_SCRIPT_PATTERN = re.compile(
    r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>",
    re.IGNORECASE | re.DOTALL,
)

_SQL_KEYWORDS = ("SELECT", "INSERT", "UPDATE", "DELETE", "DROP", "CREATE", "ALTER")

_SQL_PATTERN = re.compile(
    r"\b(" + "|".join(_SQL_KEYWORDS) + r")\b",
    re.IGNORECASE,
)


# ─── Sanitiser ───────────────────────────────────────────────────────────────

def sanitize_input(raw: Any, max_length: int = DEFAULT_MAX_INPUT_CHARS) -> str:
    """
    Strip script blocks and SQL keywords, trim, and truncate to *max_length*.

    Pure and total: ``None`` or non-string input yields a string too.
    """
    if raw is None:
        return ""
    text = raw if isinstance(raw, str) else str(raw)
    text = _SCRIPT_PATTERN.sub("", text)
    text = _SQL_PATTERN.sub("", text)
    return text.strip()[:max(0, max_length)]


class InputSanitizer:
    """S-01 – S-04: reports what sanitize_input() removes from learner text."""

    def __init__(self, max_length: int = DEFAULT_MAX_INPUT_CHARS) -> None:
        self.max_length = max_length

    def sanitize(self, raw: Any) -> str:
        return sanitize_input(raw, self.max_length)

    def check(self, raw: Any, field_name: str = "input") -> GuardrailResult:
        violations: list[GuardrailViolation] = []
        text = "" if raw is None else (raw if isinstance(raw, str) else str(raw))

        # S-01 Script markup
        scripts = _SCRIPT_PATTERN.findall(text)
        if scripts:
            violations.append(GuardrailViolation(
                code="S-01",
                level=GuardrailLevel.WARN,
                message=f"{len(scripts)} script block(s) removed from input.",
                field=field_name,
            ))

        # S-02 SQL keywords
        keywords = sorted({m.upper() for m in _SQL_PATTERN.findall(_SCRIPT_PATTERN.sub("", text))})
        if keywords:
            violations.append(GuardrailViolation(
                code="S-02",
                level=GuardrailLevel.INFO,
                message=f"SQL keyword(s) removed: {', '.join(keywords)}.",
                field=field_name,
            ))

        # S-03 Length bound
        stripped = _SQL_PATTERN.sub("", _SCRIPT_PATTERN.sub("", text)).strip()
        if len(stripped) > self.max_length:
            violations.append(GuardrailViolation(
                code="S-03",
                level=GuardrailLevel.INFO,
                message=f"Input truncated from {len(stripped)} to {self.max_length} characters.",
                field=field_name,
            ))

        # S-04 Empty result
        if not stripped:
            violations.append(GuardrailViolation(
                code="S-04",
                level=GuardrailLevel.WARN,
                message="Input is empty after sanitising.",
                field=field_name,
            ))

        return GuardrailResult(passed=not violations, violations=violations)
