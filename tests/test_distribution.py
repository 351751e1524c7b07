import sys, pathlib; sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1]))
import pytest

from llm_lead_quiz_gen.core.distribution import (
    apply_preserving_existing,
    assign,
    distribution_counts,
    mapping_from_questions,
)
from llm_lead_quiz_gen.core.errors import InputContractViolation
from llm_lead_quiz_gen.core.types import AnswerOption, GeneratedQuestion


def _questions(count, answers_per_question):
    return [
        GeneratedQuestion(
            text=f"Q{qi}?",
            answers=[AnswerOption(text=f"A{ai}") for ai in range(answers_per_question)],
        )
        for qi in range(count)
    ]


def test_every_answer_is_mapped_in_range():
    mapping = assign(_questions(5, 4), 3)
    assert len(mapping) == 20
    assert set(mapping) == {(qi, ai) for qi in range(5) for ai in range(4)}
    assert all(0 <= ri < 3 for ri in mapping.values())


def test_distribution_is_balanced():
    for count, per_question, results in [(5, 4, 3), (8, 4, 5), (3, 2, 4), (7, 3, 3)]:
        counts = distribution_counts(assign(_questions(count, per_question), results), results)
        assert sum(counts) == count * per_question
        assert max(counts) - min(counts) <= 1, (count, per_question, results, counts)


def test_question_reaches_every_result_when_it_has_enough_answers():
    mapping = assign(_questions(4, 4), 3)
    for qi in range(4):
        assert {mapping[(qi, ai)] for ai in range(4)} == {0, 1, 2}


def test_plain_modulo_when_answers_divide_evenly():
    mapping = assign(_questions(3, 4), 4)
    assert all(ri == ai for (qi, ai), ri in mapping.items())


def test_assign_is_deterministic():
    questions = _questions(6, 4)
    assert assign(questions, 5) == assign(questions, 5)


@pytest.mark.parametrize("bad", [0, -1, 2.5, True])
def test_assign_rejects_invalid_result_count(bad):
    with pytest.raises(InputContractViolation):
        assign(_questions(2, 4), bad)


def test_apply_preserves_existing_indices_and_is_idempotent():
    questions = _questions(2, 3)
    questions[0].answers[1].result_index = 2
    mapping = assign(questions, 3)

    once = apply_preserving_existing(questions, mapping)
    twice = apply_preserving_existing(once, mapping)

    assert once[0].answers[1].result_index == 2
    assert once[0].answers[0].result_index == mapping[(0, 0)]
    assert mapping_from_questions(once) == mapping_from_questions(twice)
    # Inputs are left untouched.
    assert questions[0].answers[0].result_index is None


def test_mapping_from_questions_skips_unmapped():
    questions = _questions(1, 2)
    questions[0].answers[0].result_index = 1
    assert mapping_from_questions(questions) == {(0, 0): 1}


def test_single_question_uses_answer_position_modulo():
    mapping = assign(_questions(1, 4), 3)
    assert [mapping[(0, ai)] for ai in range(4)] == [0, 1, 2, 0]


def test_rotation_continues_into_next_question():
    mapping = assign(_questions(2, 4), 3)
    assert [mapping[(1, ai)] for ai in range(4)] == [1, 2, 0, 1]
