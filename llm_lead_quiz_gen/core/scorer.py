from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Union

from .types import GeneratedQuiz, GeneratedResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuizResponse:
    question_index: int
    answer_index: int


def compute_result_histogram(responses: Iterable[QuizResponse], quiz: GeneratedQuiz) -> dict[int, int]:
    counter: Counter[int] = Counter({i: 0 for i in range(len(quiz.results))})
    for r in responses:
        if not 0 <= r.question_index < len(quiz.questions):
            logger.warning("Question not found for response: %s", r)
            continue
        answers = quiz.questions[r.question_index].answers
        if not 0 <= r.answer_index < len(answers):
            logger.warning("Answer not found for response: %s", r)
            continue
        index = answers[r.answer_index].result_index
        if index is not None and index in counter:
            counter[index] += 1
    return dict(counter)


def infer_winning_result(hist: dict[int, int]) -> int:
    # Ties go to the earliest result.
    return max(hist, key=lambda index: (hist[index], -index))


def calculate_quiz_result(
    responses: list[QuizResponse], quiz: GeneratedQuiz
) -> Union[GeneratedResult, None]:
    if not quiz.results:
        logger.warning("Quiz has no results defined")
        return None
    if not responses:
        logger.warning("No responses provided for result calculation")
        return None
    hist = compute_result_histogram(responses, quiz)
    winner = infer_winning_result(hist)
    logger.info("Quiz result calculated: index=%d score=%d", winner, hist[winner])
    return quiz.results[winner]


def validate_quiz_responses(responses: Iterable[QuizResponse], quiz: GeneratedQuiz) -> list[int]:
    """Indices of questions the responses leave unanswered."""
    answered = {r.question_index for r in responses}
    return [i for i in range(len(quiz.questions)) if i not in answered]


def result_distribution(result_indices: Iterable[int], quiz: GeneratedQuiz) -> list[dict[str, object]]:
    counts = Counter(result_indices)
    total = sum(counts.values())
    rows = []
    for i, result in enumerate(quiz.results):
        count = counts[i]
        rows.append(
            {
                "result_index": i,
                "result_name": result.name,
                "count": count,
                "percentage": int(count * 100 / total + 0.5) if total else 0,
            }
        )
    return rows
