"""
agent_trace.py — Lightweight audit log for one agent execution
===============================================================
Every parse attempt inside the retry loop emits an AttemptRecord.  The
agent template collects them into an ExecutionTrace that is returned to the
caller alongside the output (see agent.run_agent).  A trace belongs to a
single call and is never shared between calls.

Key fields
----------
  AttemptRecord.status        "success" | "retry" | "exhausted"
  AttemptRecord.duration_ms   Wall-clock milliseconds spent parsing
  AttemptRecord.error_type    ParseError subclass name when the attempt failed
  ExecutionTrace.mode         "live" | "mock" | client class name
  ExecutionTrace.total_ms     End-to-end wall time of the execute() call
"""

from __future__ import annotations

import datetime
import time
import uuid
from dataclasses import dataclass, field

@dataclass
class AttemptRecord:
    """One Extractor → Validator pass over a model reply."""
    attempt:       int
    status:        str               # "success" | "retry" | "exhausted"
    duration_ms:   float
    raw_chars:     int
    error_type:    str = ""
    error_message: str = ""


@dataclass
class ExecutionTrace:
    """Full trace for a single execute() call."""
    run_id:        str
    agent_name:    str
    session_id:    str
    timestamp:     str
    mode:          str
    total_ms:      float = 0.0
    prompt_chars:  int   = 0
    attempts:      list[AttemptRecord] = field(default_factory=list)
    warnings:      list[str] = field(default_factory=list)

    def append(self, record: AttemptRecord) -> None:
        self.attempts.append(record)

    @property
    def correction_count(self) -> int:
        """Number of correction prompts sent (every attempt after the first)."""
        return max(0, len(self.attempts) - 1)

    @property
    def succeeded(self) -> bool:
        return bool(self.attempts) and self.attempts[-1].status == "success"


def new_trace(agent_name: str, session_id: str, mode: str) -> ExecutionTrace:
    return ExecutionTrace(
        run_id     = str(uuid.uuid4())[:8].upper(),
        agent_name = agent_name,
        session_id = session_id,
        timestamp  = datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        mode       = mode,
    )


def elapsed_ms(start: float) -> float:
    """Milliseconds since *start* (a time.perf_counter() reading)."""
    return round((time.perf_counter() - start) * 1000, 2)
