import sys, pathlib; sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1]))
import pytest

from llm_lead_quiz_gen.core.errors import SchemaValidationError
from llm_lead_quiz_gen.core.schema import Ok, raise_for_result, validate
from llm_lead_quiz_gen.core.types import ExpectedShape, SchemaKind


def _result(name="The Planner"):
    return {"name": name, "emoji": "🎯", "summary": "You plan.", "traits": ["Calm"], "recommendation": "Rest."}


def _unified(result_index=0):
    return {
        "title": "Coffee Quiz",
        "subtitle": "Find your brew",
        "questions": [
            {
                "questionText": "Morning?",
                "answers": [
                    {"answerText": "Espresso", "resultIndex": 0},
                    {"answerText": "Latte", "resultIndex": result_index},
                ],
            }
        ],
        "results": [_result("A"), _result("B")],
    }


def test_questions_accept_plain_string_answers():
    payload = {"questions": [{"questionText": "Pick?", "answers": ["One", "Two", "Three"]}]}
    result = validate(payload, SchemaKind.QUESTIONS, ExpectedShape(question_count=1))
    assert isinstance(result, Ok)
    assert [a.text for a in result.value[0].answers] == ["One", "Two", "Three"]
    assert all(a.result_index is None for a in result.value[0].answers)


def test_questions_count_mismatch():
    payload = {"questions": [{"questionText": "Pick?", "answers": ["One", "Two"]}]}
    result = validate(payload, SchemaKind.QUESTIONS, ExpectedShape(question_count=2))
    assert isinstance(result, SchemaValidationError)
    assert result.path == "questions"


def test_question_needs_two_answers():
    payload = {"questions": [{"questionText": "Pick?", "answers": ["Only"]}]}
    result = validate(payload, SchemaKind.QUESTIONS, ExpectedShape(question_count=1))
    assert isinstance(result, SchemaValidationError)
    assert result.path == "questions[0].answers"


def test_results_missing_summary():
    bad = _result()
    del bad["summary"]
    result = validate({"results": [bad]}, SchemaKind.RESULTS, ExpectedShape(result_count=1))
    assert isinstance(result, SchemaValidationError)
    assert result.path == "results[0].summary"


def test_unified_ok():
    result = validate(_unified(1), SchemaKind.UNIFIED_QUIZ, ExpectedShape(question_count=1, result_count=2))
    assert isinstance(result, Ok)
    quiz = result.value
    assert quiz.title == "Coffee Quiz"
    assert [a.result_index for a in quiz.questions[0].answers] == [0, 1]
    assert quiz.results[1].name == "B"


@pytest.mark.parametrize("bad_index", [2, -1, "1", True, None])
def test_unified_rejects_bad_result_index(bad_index):
    result = validate(_unified(bad_index), SchemaKind.UNIFIED_QUIZ, ExpectedShape(question_count=1, result_count=2))
    assert isinstance(result, SchemaValidationError)
    assert result.path == "questions[0].answers[1].resultIndex"


def test_top_level_must_be_object():
    result = validate([1, 2], SchemaKind.QUESTIONS, ExpectedShape(question_count=1))
    assert isinstance(result, SchemaValidationError)
    assert result.path == "$"


def test_email_sequence_needs_five_emails():
    email = {"title": "Hi", "subject": "S", "body_text": "t", "body_html": "<p>t</p>"}
    assert isinstance(validate({"emails": [email] * 5}, SchemaKind.EMAIL_SEQUENCE), Ok)
    result = validate({"emails": [email] * 4}, SchemaKind.EMAIL_SEQUENCE)
    assert isinstance(result, SchemaValidationError)
    assert result.path == "emails"


def test_business_analysis_optional_lists_default_empty():
    payload = {
        "business_summary": "Sells bread.",
        "icp": "Bakers",
        "category": "Food",
        "pain_points": ["Stale bread"],
        "benefits": ["Fresh bread"],
    }
    result = validate(payload, SchemaKind.BUSINESS_ANALYSIS)
    assert isinstance(result, Ok)
    assert result.value.keywords == []


def test_outline_section_requires_purpose():
    payload = {"title_options": ["T"], "subtitle_options": [], "sections": [{"title": "S"}], "cta_concept": "c"}
    result = validate(payload, SchemaKind.OUTLINE)
    assert isinstance(result, SchemaValidationError)
    assert result.path == "sections[0].purpose"


def test_landing_page_requires_html():
    payload = {
        "headline": "H",
        "subheadline": "S",
        "benefit_bullets": ["B"],
        "cta": "Go",
        "short_description": "d",
        "html": "",
    }
    result = validate(payload, SchemaKind.LANDING_PAGE)
    assert isinstance(result, SchemaValidationError)
    assert result.path == "html"


def test_raise_for_result():
    assert raise_for_result(Ok(3)) == 3
    with pytest.raises(SchemaValidationError):
        raise_for_result(SchemaValidationError("x", "bad"))
