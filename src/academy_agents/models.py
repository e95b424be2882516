"""
Data models for the Academy agent pipeline.

Three groups live here:

  Configuration     AgentConfiguration (frozen, one per agent variant)
  Session / context MessageRole, Message, SessionState, UserProfile,
                    LessonRef, AgentContext — caller-owned, immutable values
  Output contracts  DiscoveryCoachOutput, QuizGenerationOutput,
                    LessonPersonalizationOutput, AgentResponse

Output contracts accept the camelCase wire names the prompts ask for
(``nextPrompt``, ``correctAnswer`` …) as well as the snake_case attribute
names, and serialise back to camelCase with ``model_dump(by_alias=True)``.
Numeric contract fields are strict: ``"85"`` or ``true`` for a score is a
validation failure, never coerced to a number.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ─── Agent configuration ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class AgentConfiguration:
    """Generation parameters and system prompt for one agent variant."""
    model:         str
    temperature:   float
    max_tokens:    int
    system_prompt: str

    def with_overrides(self, **changes: Any) -> "AgentConfiguration":
        """Return a new configuration with *changes* applied (None values ignored)."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


# ─── Enumerations ────────────────────────────────────────────────────────────

class MessageRole(str, Enum):
    USER   = "user"
    AGENT  = "agent"
    SYSTEM = "system"


class FeedbackQuality(str, Enum):
    """Discovery-question rating produced by the coach."""
    EXCELLENT         = "excellent"
    GOOD              = "good"
    NEEDS_IMPROVEMENT = "needs_improvement"


class QuestionDifficulty(str, Enum):
    EASY   = "easy"
    MEDIUM = "medium"
    HARD   = "hard"


class FeedbackType(str, Enum):
    POSITIVE     = "positive"
    CONSTRUCTIVE = "constructive"
    CRITICAL     = "critical"


class NextAction(str, Enum):
    CONTINUE = "continue"
    QUIZ     = "quiz"
    COMPLETE = "complete"
    RETRY    = "retry"


# ─── Session state (persisted by the caller, never by this package) ──────────

class Message(BaseModel):
    """One conversational turn."""
    model_config = ConfigDict(frozen=True)

    role:      MessageRole
    content:   str
    timestamp: int = Field(ge=0, description="Milliseconds since the epoch")


class SessionState(BaseModel):
    """
    Caller-owned conversation history for one agent session.

    Instances are immutable; ``append`` returns a new SessionState and the
    original snapshot is left untouched.
    """
    model_config = ConfigDict(frozen=True)

    session_id:           str
    user_id:              str
    lesson_id:            Optional[str] = None
    conversation_history: tuple[Message, ...] = ()
    current_context:      dict[str, Any] = Field(default_factory=dict)
    metadata:             dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _timestamps_non_decreasing(self) -> "SessionState":
        previous = None
        for msg in self.conversation_history:
            if previous is not None and msg.timestamp < previous:
                raise ValueError(
                    f"conversation_history timestamps must be non-decreasing "
                    f"({msg.timestamp} after {previous})"
                )
            previous = msg.timestamp
        return self

    @property
    def last_timestamp(self) -> Optional[int]:
        return self.conversation_history[-1].timestamp if self.conversation_history else None

    def recent_messages(self, limit: int = 10) -> tuple[Message, ...]:
        """Last *limit* messages, oldest first."""
        if limit <= 0:
            return ()
        return self.conversation_history[-limit:]

    def append(self, role: MessageRole | str, content: str, timestamp: int) -> "SessionState":
        last = self.last_timestamp
        if last is not None and timestamp < last:
            raise ValueError(f"timestamp {timestamp} precedes last message ({last})")
        message = Message(role=MessageRole(role), content=content, timestamp=timestamp)
        return self.model_copy(
            update={"conversation_history": self.conversation_history + (message,)}
        )


# ─── Per-call context (transient) ────────────────────────────────────────────

_CONTEXT_HISTORY_LIMIT = 20


class UserProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    role:              str
    maturity_level:    int = Field(ge=0, le=5)
    completed_lessons: tuple[str, ...] = ()


class LessonRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    id:           str
    title:        str
    target_roles: tuple[str, ...] = ("All",)
    min_maturity: int = Field(default=0, ge=0, le=5)


class ContextMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role:    MessageRole
    content: str


class AgentContext(BaseModel):
    """Learner profile data plus a bounded window of recent history."""
    model_config = ConfigDict(frozen=True)

    user_profile:         UserProfile
    current_lesson:       Optional[LessonRef] = None
    conversation_history: tuple[ContextMessage, ...] = ()
    available_lessons:    tuple[LessonRef, ...] = ()

    @field_validator("conversation_history")
    @classmethod
    def _bound_history(cls, value: tuple[ContextMessage, ...]) -> tuple[ContextMessage, ...]:
        return value[-_CONTEXT_HISTORY_LIMIT:]


# ─── Output contracts ────────────────────────────────────────────────────────

class _Contract(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict using the camelCase names the prompts request."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class CoachFeedback(_Contract):
    quality:      FeedbackQuality
    reasoning:    str
    improvements: list[str]


class DiscoveryCoachOutput(_Contract):
    """Feedback on one discovery question."""
    response:    str
    feedback:    CoachFeedback
    next_prompt: Optional[str]   = Field(default=None, alias="nextPrompt")
    score:       Optional[float] = Field(default=None, ge=0, le=100, strict=True)


class QuizOption(_Contract):
    id:   str
    text: str


class QuizQuestion(_Contract):
    id:             str
    text:           str
    options:        list[QuizOption] = Field(min_length=2)
    correct_answer: str = Field(alias="correctAnswer")
    explanation:    str
    difficulty:     Optional[QuestionDifficulty] = None

    @model_validator(mode="after")
    def _answer_is_an_option(self) -> "QuizQuestion":
        option_ids = [o.id for o in self.options]
        if self.correct_answer not in option_ids:
            raise ValueError(
                f"correctAnswer '{self.correct_answer}' is not one of the option ids {option_ids}"
            )
        return self


class QuizGenerationOutput(_Contract):
    questions: list[QuizQuestion] = Field(min_length=1)

    @model_validator(mode="after")
    def _unique_ids(self) -> "QuizGenerationOutput":
        ids = [q.id for q in self.questions]
        if len(ids) != len(set(ids)):
            raise ValueError("question ids must be unique")
        return self


class RecommendedLesson(_Contract):
    lesson_id:       str   = Field(alias="lessonId")
    relevance_score: float = Field(alias="relevanceScore", strict=True)
    reasoning:       str


class LessonPersonalizationOutput(_Contract):
    recommended_lessons: list[RecommendedLesson] = Field(alias="recommendedLessons")
    learning_path:       list[str] = Field(alias="learningPath")
    focus_areas:         list[str] = Field(alias="focusAreas")


class ResponseFeedback(_Contract):
    type:    FeedbackType
    content: str


class AgentResponse(_Contract):
    """Generic conversational reply envelope."""
    message:     str
    suggestions: Optional[list[str]]      = None
    feedback:    Optional[ResponseFeedback] = None
    next_action: Optional[NextAction]     = Field(default=None, alias="nextAction")
    metadata:    Optional[dict[str, Any]] = None
