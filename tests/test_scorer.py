import pathlib
import sys

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1]))
from llm_lead_quiz_gen.core import scorer
from llm_lead_quiz_gen.core.types import AnswerOption, GeneratedQuestion, GeneratedQuiz, GeneratedResult


def _quiz():
    questions = [
        GeneratedQuestion(
            text=f"Q{qi}?",
            answers=[AnswerOption(text=f"A{ai}", result_index=ai % 3) for ai in range(3)],
        )
        for qi in range(3)
    ]
    results = [GeneratedResult(name=name, summary="s") for name in ("Planner", "Dreamer", "Doer")]
    return GeneratedQuiz(title="T", subtitle="S", questions=questions, results=results)


def test_winning_result():
    assert scorer.infer_winning_result({0: 1, 1: 3, 2: 0}) == 1


def test_ties_go_to_earliest_result():
    assert scorer.infer_winning_result({0: 2, 1: 2, 2: 1}) == 0


def test_calculate_quiz_result():
    responses = [scorer.QuizResponse(0, 2), scorer.QuizResponse(1, 2), scorer.QuizResponse(2, 0)]
    assert scorer.calculate_quiz_result(responses, _quiz()).name == "Doer"


def test_out_of_range_responses_are_ignored():
    responses = [scorer.QuizResponse(9, 0), scorer.QuizResponse(0, 9), scorer.QuizResponse(1, 1)]
    hist = scorer.compute_result_histogram(responses, _quiz())
    assert hist == {0: 0, 1: 1, 2: 0}


def test_no_responses_gives_no_result():
    assert scorer.calculate_quiz_result([], _quiz()) is None


def test_unanswered_questions():
    missing = scorer.validate_quiz_responses([scorer.QuizResponse(1, 0)], _quiz())
    assert missing == [0, 2]


def test_result_distribution_percentages():
    rows = scorer.result_distribution([0, 0, 2], _quiz())
    assert [row["count"] for row in rows] == [2, 0, 1]
    assert [row["percentage"] for row in rows] == [67, 0, 33]
    assert rows[2]["result_name"] == "Doer"
