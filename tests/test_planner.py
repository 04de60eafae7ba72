"""
Tests for the conversation planner and the deterministic interpreter
"""
import pytest

from welfare_assistant.agent import (
    DONE,
    MANDATORY_FIELDS,
    default_question,
    field_for_question,
    interpret,
    missing_fields,
    next_field,
)
from welfare_assistant.memory import Profile


COMPLETE = {
    "age": 30,
    "gender": "female",
    "state": "Kerala",
    "occupation": "teacher",
    "income": 150000,
    "caste": "general",
    "marital_status": "married",
}


class TestNextField:
    def test_empty_profile_starts_with_age(self):
        assert next_field(Profile()) == "age"

    def test_priority_order(self):
        profile = Profile(age=30, gender="female")
        assert next_field(profile) == "state"

    def test_occupation_asked_before_farmer_question(self):
        profile = Profile(age=30, gender="male", state="Bihar")
        assert next_field(profile) == "occupation"

    def test_optional_fields_gate_completion(self):
        profile = Profile(**{k: v for k, v in COMPLETE.items() if k != "marital_status"})
        assert next_field(profile) == "marital_status"

    def test_done_when_everything_answered(self):
        assert next_field(Profile(**COMPLETE)) == DONE

    def test_legacy_income_range_answers_income(self):
        data = dict(COMPLETE, income=None, income_range="1-3L")
        assert next_field(Profile(**data)) == DONE

    @pytest.mark.parametrize("answered", [
        {},
        {"age": 40},
        {"age": 40, "state": "Goa"},
        {"gender": "other", "income": 0},
        dict(COMPLETE, caste=None),
    ])
    def test_never_returns_an_answered_field(self, answered):
        profile = Profile(**answered)
        field_name = next_field(profile)
        assert field_name == DONE or not profile.is_set(field_name)

    def test_done_implies_mandatory_fields_set(self):
        profile = Profile(**COMPLETE)
        assert next_field(profile) == DONE
        assert all(profile.is_set(f) for f in MANDATORY_FIELDS)

    def test_missing_fields_in_priority_order(self):
        assert missing_fields(Profile(age=30, state="Goa")) == [
            "gender", "occupation", "income", "caste", "marital_status"
        ]


class TestFieldForQuestion:
    @pytest.mark.parametrize("question,expected", [
        ("How old are you? Please tell me your AGE.", "age"),
        ("What is your gender?", "gender"),
        ("Which State do you live in?", "state"),
        ("Are you a farmer?", "is_farmer"),
        ("What is your occupation?", "occupation"),
        ("What is your annual family income?", "income"),
        ("Tell me more about yourself.", None),
    ])
    def test_keyword_mapping(self, question, expected):
        assert field_for_question(question) == expected

    def test_no_question(self):
        assert field_for_question(None) is None
        assert field_for_question("") is None

    def test_first_keyword_wins(self):
        assert field_for_question("Besides your age, what is your state?") == "age"

    @pytest.mark.parametrize("field_name", ["age", "gender", "state", "occupation", "income"])
    def test_default_question_maps_back_to_its_field(self, field_name):
        assert field_for_question(default_question(field_name)) == field_name

    def test_default_question_template(self):
        assert default_question("gender") == "Could you please tell me your gender?"


class TestInterpret:
    def test_no_expected_field_defers_to_extractor(self):
        assert interpret("yes", None) == {}

    @pytest.mark.parametrize("reply", ["no", "No", "  nope ", "I am not a farmer"])
    def test_negative_farmer_replies(self, reply):
        assert interpret(reply, "is_farmer") == {"is_farmer": False}

    @pytest.mark.parametrize("reply", ["yes", "Yeah", "yep"])
    def test_affirmative_farmer_replies(self, reply):
        assert interpret(reply, "is_farmer") == {"is_farmer": True}

    def test_other_boolean_fields(self):
        assert interpret("yes", "has_disability") == {"has_disability": True}
        assert interpret("no", "is_bpl") == {"is_bpl": False}

    def test_free_text_left_to_extractor(self):
        assert interpret("I grow rice on two acres", "is_farmer") == {}

    def test_non_boolean_fields_ignored(self):
        assert interpret("yes", "age") == {}
