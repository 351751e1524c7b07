"""Round-robin assignment of answer options to result buckets.

The rotation runs through every answer of the quiz in order: answer ``i`` of
a question maps to ``(offset + i) % result_count`` where ``offset`` counts the
answers of the questions before it. A question with at least
``result_count`` answers reaches every result, and across the quiz no bucket
holds more than one answer more than any other. When every question has a
multiple of ``result_count`` answers this is plain ``i % result_count``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .errors import InputContractViolation
from .types import AnswerMapping, AnswerOption, GeneratedQuestion

logger = logging.getLogger(__name__)


def assign(questions: Iterable[GeneratedQuestion], result_count: int) -> AnswerMapping:
    if isinstance(result_count, bool) or not isinstance(result_count, int) or result_count <= 0:
        raise InputContractViolation(f"result_count must be a positive integer, got {result_count!r}")
    mapping: AnswerMapping = {}
    offset = 0
    for qi, question in enumerate(questions):
        for ai, _answer in enumerate(question.answers):
            mapping[(qi, ai)] = (offset + ai) % result_count
        offset += len(question.answers)
    logger.info(
        "Generated answer mapping: total=%d distribution=%s",
        len(mapping),
        distribution_counts(mapping, result_count),
    )
    return mapping


def apply_preserving_existing(
    questions: Iterable[GeneratedQuestion], mapping: AnswerMapping
) -> list[GeneratedQuestion]:
    """Fill unset result indices from ``mapping``; set ones are left alone.

    Returns new question objects, so applying the same mapping twice is the
    same as applying it once.
    """
    updated = []
    for qi, question in enumerate(questions):
        answers = []
        for ai, answer in enumerate(question.answers):
            index = answer.result_index
            if index is None:
                index = mapping.get((qi, ai))
            answers.append(AnswerOption(text=answer.text, result_index=index))
        updated.append(GeneratedQuestion(text=question.text, answers=answers))
    return updated


def mapping_from_questions(questions: Iterable[GeneratedQuestion]) -> AnswerMapping:
    return {
        (qi, ai): answer.result_index
        for qi, question in enumerate(questions)
        for ai, answer in enumerate(question.answers)
        if answer.result_index is not None
    }


def distribution_counts(mapping: AnswerMapping, result_count: int) -> list[int]:
    counts = [0] * result_count
    for index in mapping.values():
        if 0 <= index < result_count:
            counts[index] += 1
    return counts
