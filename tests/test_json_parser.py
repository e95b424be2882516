"""
Tests for the defensive model-output parser (json_parser.py + validation.py).
Run: python -m pytest tests/ -v
"""
import json

import pytest
from pydantic import BaseModel

from factories import coach_payload, path_payload, quiz_payload

from academy_agents.errors import (
    JsonSyntaxFailure,
    ParseError,
    SchemaValidationFailure,
    StructuralExtractionFailure,
)
from academy_agents.json_parser import (
    clean_markdown,
    extract_json,
    extract_structured_data,
    is_valid_json,
    parse_llm_output,
    parse_multiple_json,
    repair_json,
)
from academy_agents.models import (
    AgentResponse,
    DiscoveryCoachOutput,
    FeedbackQuality,
    LessonPersonalizationOutput,
    QuizGenerationOutput,
)
from academy_agents.validation import validate


class NumberA(BaseModel):
    a: int


class QualityOnly(BaseModel):
    quality: FeedbackQuality


# ─── Stage 1: fences ─────────────────────────────────────────────────────────

class TestCleanMarkdown:
    def test_json_fence_removed(self):
        assert clean_markdown('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence_removed(self):
        assert clean_markdown('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_unfenced_text_untouched(self):
        assert clean_markdown('  {"a": 1}  ') == '{"a": 1}'

    def test_prose_around_fence_falls_back_to_inner_block(self):
        text = 'Sure, here it is:\n```json\n{"a": 1}\n```\nLet me know!'
        assert clean_markdown(text) == '{"a": 1}'


# ─── Stage 2: boundaries ─────────────────────────────────────────────────────

class TestExtractJson:
    def test_object_inside_prose(self):
        assert extract_json('Result: {"a": {"b": 2}} done.') == '{"a": {"b": 2}}'

    def test_array_fallback(self):
        assert extract_json("items: [1, 2, 3] end") == "[1, 2, 3]"

    def test_object_preferred_over_array(self):
        assert extract_json('[{"a": 1}]') == '{"a": 1}'

    def test_no_structure_raises(self):
        with pytest.raises(StructuralExtractionFailure):
            extract_json("no json here")

    def test_reversed_braces_fall_back_to_tail(self):
        assert extract_json('} oops {"a": 1') == '{"a": 1'

    def test_stray_braces_in_prose_are_a_syntax_failure(self):
        raw = "I cannot answer } that {"
        assert extract_json(raw) == "{"
        with pytest.raises(JsonSyntaxFailure) as exc_info:
            parse_llm_output(raw, NumberA)
        assert exc_info.value.raw_content == raw


# ─── Stage 3: repair ─────────────────────────────────────────────────────────

class TestRepairJson:
    def test_trailing_comma_in_object(self):
        assert json.loads(repair_json('{"a": 1,}')) == {"a": 1}

    def test_trailing_comma_in_array(self):
        assert json.loads(repair_json('{"a": [1, 2, ]}')) == {"a": [1, 2]}

    def test_valid_json_with_comma_in_string_untouched(self):
        text = '{"a": "x,}"}'
        assert repair_json(text) == text

    def test_unrepairable_returned_as_is(self):
        assert repair_json('{"a": "unterminated') == '{"a": "unterminated'


# ─── Full pipeline ───────────────────────────────────────────────────────────

class TestParseLlmOutput:
    def test_fence_tolerance_with_trailing_comma(self):
        result = parse_llm_output('```json\n{"a":1,}\n```', NumberA)
        assert result == NumberA(a=1)

    def test_no_structure(self):
        with pytest.raises(StructuralExtractionFailure) as exc_info:
            parse_llm_output("no json here", NumberA)
        assert exc_info.value.raw_content == "no json here"

    def test_unrepairable_syntax(self):
        raw = '{"a": "unterminated'
        with pytest.raises(JsonSyntaxFailure) as exc_info:
            parse_llm_output(raw, NumberA)
        assert exc_info.value.raw_content == raw
        assert isinstance(exc_info.value.cause, json.JSONDecodeError)

    def test_syntax_failure_keeps_original_raw_text(self):
        raw = 'Here:\n```json\n{"a": 1 "b": 2}\n```'
        with pytest.raises(JsonSyntaxFailure) as exc_info:
            parse_llm_output(raw, NumberA)
        assert exc_info.value.raw_content == raw

    def test_repair_disabled_leaves_trailing_comma_fatal(self):
        with pytest.raises(JsonSyntaxFailure):
            parse_llm_output('{"a": 1,}', NumberA, attempt_repair=False)

    def test_schema_rejection_names_field(self):
        with pytest.raises(SchemaValidationFailure) as exc_info:
            parse_llm_output('{"quality":"bad"}', QualityOnly)
        assert "quality" in str(exc_info.value)
        assert exc_info.value.fields == ["quality"]

    def test_all_failures_are_parse_errors(self):
        for raw in ("nothing", '{"a": ', '{"a": "x"}'):
            with pytest.raises(ParseError):
                parse_llm_output(raw, NumberA)

    def test_non_text_output_is_structural_failure(self):
        with pytest.raises(StructuralExtractionFailure):
            extract_structured_data(None)  # type: ignore[arg-type]

    def test_idempotent(self):
        raw = "Feedback below.\n" + json.dumps(coach_payload())
        first  = parse_llm_output(raw, DiscoveryCoachOutput)
        second = parse_llm_output(raw, DiscoveryCoachOutput)
        assert first == second

    @pytest.mark.parametrize("schema, payload", [
        (DiscoveryCoachOutput,        coach_payload()),
        (QuizGenerationOutput,        quiz_payload(3)),
        (LessonPersonalizationOutput, path_payload()),
    ])
    def test_round_trip(self, schema, payload):
        original = schema.model_validate(payload)
        text = json.dumps(original.to_wire())
        assert parse_llm_output(text, schema) == original


# ─── Schema validator ────────────────────────────────────────────────────────

class TestValidate:
    def test_success_is_typed(self):
        outcome = validate(coach_payload(), DiscoveryCoachOutput)
        assert outcome.ok
        assert outcome.value.feedback.quality is FeedbackQuality.GOOD
        assert outcome.value.next_prompt == "What is your current churn rate?"

    def test_score_out_of_range(self):
        outcome = validate(coach_payload(score=140), DiscoveryCoachOutput)
        assert not outcome.ok
        assert "score" in outcome.error.fields

    @pytest.mark.parametrize("score", ["85", True])
    def test_score_not_coerced(self, score):
        with pytest.raises(SchemaValidationFailure) as exc_info:
            parse_llm_output(json.dumps(coach_payload(score=score)), DiscoveryCoachOutput)
        assert exc_info.value.fields == ["score"]

    def test_integer_score_accepted(self):
        assert validate(coach_payload(score=85), DiscoveryCoachOutput).value.score == 85.0

    def test_relevance_score_not_coerced(self):
        payload = path_payload()
        payload["recommendedLessons"][0]["relevanceScore"] = "90"
        outcome = validate(payload, LessonPersonalizationOutput)
        assert not outcome.ok
        assert outcome.error.fields == ["recommendedLessons.0.relevanceScore"]

    def test_nested_enum_path(self):
        outcome = validate(coach_payload(quality="bad"), DiscoveryCoachOutput)
        assert outcome.error.fields == ["feedback.quality"]
        with pytest.raises(SchemaValidationFailure):
            outcome.unwrap()

    def test_input_not_mutated(self):
        payload = coach_payload()
        snapshot = json.dumps(payload, sort_keys=True)
        validate(payload, DiscoveryCoachOutput)
        assert json.dumps(payload, sort_keys=True) == snapshot

    def test_missing_required_field(self):
        payload = coach_payload()
        del payload["response"]
        outcome = validate(payload, DiscoveryCoachOutput)
        assert "response" in outcome.error.fields

    def test_quiz_answer_must_be_an_option(self):
        payload = quiz_payload(1)
        payload["questions"][0]["correctAnswer"] = "z"
        assert not validate(payload, QuizGenerationOutput).ok

    def test_quiz_duplicate_ids_rejected(self):
        payload = quiz_payload(2)
        payload["questions"][1]["id"] = "q1"
        assert not validate(payload, QuizGenerationOutput).ok

    def test_quiz_difficulty_enum(self):
        payload = quiz_payload(1)
        payload["questions"][0]["difficulty"] = "impossible"
        outcome = validate(payload, QuizGenerationOutput)
        assert any(f.endswith("difficulty") for f in outcome.error.fields)

    def test_array_top_level_rejected_for_object_contract(self):
        assert not validate([1, 2], NumberA).ok

    def test_generic_agent_response(self):
        outcome = validate(
            {"message": "Well done", "nextAction": "quiz", "feedback": {"type": "positive", "content": "ok"}},
            AgentResponse,
        )
        assert outcome.ok
        assert outcome.value.next_action.value == "quiz"


# ─── Utilities ───────────────────────────────────────────────────────────────

class TestUtilities:
    def test_is_valid_json(self):
        assert is_valid_json('{"a": 1}')
        assert is_valid_json("[]")
        assert not is_valid_json("{a: 1}")
        assert not is_valid_json("")

    def test_parse_multiple_json_keeps_valid_objects_in_order(self):
        text = 'first {"a": 1} junk {"a": "x"} then {"a": 3} and {broken'
        results = parse_multiple_json(text, NumberA)
        assert [r.a for r in results] == [1, 3]

    def test_parse_multiple_json_handles_one_nesting_level(self):
        text = 'a {"quality": "good", "extra": {"k": 1}} b'
        assert len(parse_multiple_json(text, QualityOnly)) == 1

    def test_parse_multiple_json_empty(self):
        assert parse_multiple_json("nothing here", NumberA) == []
