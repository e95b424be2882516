"""
Unit tests for data models (models.py).
Run: python -m pytest tests/test_models.py -v
"""
import pytest
from pydantic import ValidationError

from factories import coach_payload, make_session, path_payload, quiz_payload

from academy_agents.models import (
    AgentConfiguration,
    AgentContext,
    ContextMessage,
    DiscoveryCoachOutput,
    LessonPersonalizationOutput,
    Message,
    MessageRole,
    QuizGenerationOutput,
    SessionState,
    UserProfile,
)


class TestAgentConfiguration:
    def test_with_overrides_returns_new_instance(self):
        base = AgentConfiguration(model="gpt-4", temperature=0.7, max_tokens=500, system_prompt="s")
        new  = base.with_overrides(temperature=0.2)
        assert new.temperature == 0.2
        assert base.temperature == 0.7

    def test_none_overrides_ignored(self):
        base = AgentConfiguration(model="gpt-4", temperature=0.7, max_tokens=500, system_prompt="s")
        assert base.with_overrides(model=None) == base


class TestSessionState:
    def test_append_is_non_mutating(self):
        state = make_session(messages=2)
        new   = state.append(MessageRole.USER, "next", 2_000)
        assert len(state.conversation_history) == 2
        assert len(new.conversation_history) == 3
        assert new.conversation_history[-1].content == "next"
        assert new.session_id == state.session_id

    def test_append_accepts_role_string(self):
        state = make_session().append("agent", "hello", 1)
        assert state.conversation_history[0].role is MessageRole.AGENT

    def test_append_rejects_earlier_timestamp(self):
        state = make_session(messages=2)   # last timestamp 1001
        with pytest.raises(ValueError):
            state.append(MessageRole.USER, "late", 999)

    def test_equal_timestamps_allowed(self):
        state = make_session(messages=2)
        assert state.append(MessageRole.USER, "same ms", 1_001).last_timestamp == 1_001

    def test_decreasing_history_rejected(self):
        with pytest.raises(ValidationError):
            SessionState(
                session_id="s",
                user_id="u",
                conversation_history=(
                    Message(role=MessageRole.USER, content="a", timestamp=5),
                    Message(role=MessageRole.AGENT, content="b", timestamp=4),
                ),
            )

    def test_negative_timestamp_rejected(self):
        with pytest.raises(ValidationError):
            Message(role=MessageRole.USER, content="a", timestamp=-1)

    def test_recent_messages(self):
        state = make_session(messages=5)
        assert [m.content for m in state.recent_messages(2)] == ["turn 3", "turn 4"]
        assert state.recent_messages(0) == ()
        assert len(state.recent_messages(50)) == 5

    def test_frozen(self):
        state = make_session()
        with pytest.raises(ValidationError):
            state.session_id = "other"

    def test_last_timestamp_empty(self):
        assert make_session().last_timestamp is None

    def test_json_round_trip_for_persistence(self):
        state = make_session(messages=3).model_copy(update={"metadata": {"source": "web"}})
        restored = SessionState.model_validate(state.model_dump(mode="json"))
        assert restored == state


class TestAgentContext:
    def test_history_bounded_to_twenty(self):
        msgs = tuple(ContextMessage(role=MessageRole.USER, content=str(i)) for i in range(30))
        ctx  = AgentContext(user_profile=UserProfile(role="Sales", maturity_level=1), conversation_history=msgs)
        assert len(ctx.conversation_history) == 20
        assert ctx.conversation_history[0].content == "10"

    def test_maturity_range(self):
        with pytest.raises(ValidationError):
            UserProfile(role="Sales", maturity_level=6)


class TestOutputContracts:
    def test_coach_accepts_camel_and_snake(self):
        camel = DiscoveryCoachOutput.model_validate(coach_payload())
        payload = coach_payload()
        payload["next_prompt"] = payload.pop("nextPrompt")
        snake = DiscoveryCoachOutput.model_validate(payload)
        assert camel == snake

    def test_coach_optional_fields(self):
        out = DiscoveryCoachOutput.model_validate(
            {k: v for k, v in coach_payload(score=None).items() if k != "nextPrompt"}
        )
        assert out.score is None
        assert out.next_prompt is None
        assert "score" not in out.to_wire()

    def test_extra_keys_ignored(self):
        payload = coach_payload()
        payload["confidence"] = "high"
        assert DiscoveryCoachOutput.model_validate(payload).to_wire().get("confidence") is None

    def test_to_wire_uses_camel_case(self):
        wire = QuizGenerationOutput.model_validate(quiz_payload(1)).to_wire()
        assert wire["questions"][0]["correctAnswer"] == "b"
        assert wire["questions"][0]["difficulty"] == "medium"

    def test_quiz_requires_a_question(self):
        with pytest.raises(ValidationError):
            QuizGenerationOutput.model_validate({"questions": []})

    def test_quiz_requires_two_options(self):
        payload = quiz_payload(1)
        payload["questions"][0]["options"] = [{"id": "b", "text": "only"}]
        with pytest.raises(ValidationError):
            QuizGenerationOutput.model_validate(payload)

    def test_path_aliases(self):
        out = LessonPersonalizationOutput.model_validate(path_payload())
        assert out.recommended_lessons[0].lesson_id == "pillar-2-discovery-intro"
        assert out.recommended_lessons[0].relevance_score == 92
        assert out.focus_areas == ["Discovery Excellence"]

    def test_path_missing_learning_path(self):
        payload = path_payload()
        del payload["learningPath"]
        with pytest.raises(ValidationError):
            LessonPersonalizationOutput.model_validate(payload)
