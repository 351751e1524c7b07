"""Structural contracts for generated content.

``validate`` never raises for bad content: it returns ``Ok(value)`` with the
typed dataclasses, or the first ``SchemaValidationError`` found, carrying a
dotted path such as ``questions[2].answers[1].resultIndex``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Union

from .errors import SchemaValidationError
from .types import (
    EMAIL_SEQUENCE_LENGTH,
    AnswerOption,
    BusinessMeta,
    ContentSection,
    Email,
    EmailSequence,
    ExpectedShape,
    GeneratedQuestion,
    GeneratedQuiz,
    GeneratedResult,
    LandingPageCopy,
    LeadMagnetContent,
    Outline,
    OutlineSection,
    SchemaKind,
)


@dataclass(frozen=True)
class Ok:
    value: Any


ValidationResult = Union[Ok, SchemaValidationError]


class _Violation(Exception):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(path, reason)
        self.path = path
        self.reason = reason


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _text(obj: dict, key: str, path: str) -> str:
    value = obj.get(key)
    if not isinstance(value, str) or not value.strip():
        raise _Violation(_join(path, key), "must be a non-empty string")
    return value.strip()


def _optional_text(obj: dict, key: str, path: str) -> str:
    value = obj.get(key, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        raise _Violation(_join(path, key), "must be a string")
    return value.strip()


def _list(obj: dict, key: str, path: str, exact: Union[int, None] = None, minimum: int = 0) -> list:
    value = obj.get(key)
    if not isinstance(value, list):
        raise _Violation(_join(path, key), "must be a list")
    if exact is not None and len(value) != exact:
        raise _Violation(_join(path, key), f"expected exactly {exact} items, got {len(value)}")
    if len(value) < minimum:
        raise _Violation(_join(path, key), f"expected at least {minimum} items, got {len(value)}")
    return value


def _object(value: Any, path: str) -> dict:
    if not isinstance(value, dict):
        raise _Violation(path, "must be an object")
    return value


def _strings(obj: dict, key: str, path: str, minimum: int = 0) -> list[str]:
    items = _list(obj, key, path, minimum=minimum)
    out = []
    for i, item in enumerate(items):
        if not isinstance(item, (str, int, float)) or isinstance(item, bool):
            raise _Violation(f"{_join(path, key)}[{i}]", "must be a string")
        out.append(str(item).strip())
    return out


def _count(expected: ExpectedShape, name: str) -> int:
    value = getattr(expected, name)
    if value is None:
        raise ValueError(f"expected shape is missing {name}")
    return value


def _answer(raw: Any, path: str, result_count: Union[int, None]) -> AnswerOption:
    if isinstance(raw, str) and result_count is None:
        if not raw.strip():
            raise _Violation(path, "must be a non-empty string")
        return AnswerOption(text=raw.strip())
    obj = _object(raw, path)
    text = _text(obj, "answerText", path)
    if result_count is None:
        return AnswerOption(text=text)
    index = obj.get("resultIndex")
    index_path = _join(path, "resultIndex")
    if isinstance(index, bool) or not isinstance(index, int):
        raise _Violation(index_path, "must be an integer")
    if not 0 <= index < result_count:
        raise _Violation(index_path, f"must be in [0, {result_count}), got {index}")
    return AnswerOption(text=text, result_index=index)


def _questions(payload: dict, count: int, result_count: Union[int, None] = None) -> list[GeneratedQuestion]:
    questions = []
    for qi, raw in enumerate(_list(payload, "questions", "", exact=count)):
        path = f"questions[{qi}]"
        obj = _object(raw, path)
        text = _text(obj, "questionText", path)
        answers = [
            _answer(a, f"{path}.answers[{ai}]", result_count)
            for ai, a in enumerate(_list(obj, "answers", path, minimum=2))
        ]
        questions.append(GeneratedQuestion(text=text, answers=answers))
    return questions


def _results(payload: dict, count: int) -> list[GeneratedResult]:
    results = []
    for ri, raw in enumerate(_list(payload, "results", "", exact=count)):
        path = f"results[{ri}]"
        obj = _object(raw, path)
        results.append(
            GeneratedResult(
                name=_text(obj, "name", path),
                summary=_text(obj, "summary", path),
                emoji=_optional_text(obj, "emoji", path),
                traits=_strings(obj, "traits", path),
                recommendation=_optional_text(obj, "recommendation", path),
            )
        )
    return results


def _validate_questions(payload: dict, expected: ExpectedShape) -> list[GeneratedQuestion]:
    return _questions(payload, _count(expected, "question_count"))


def _validate_results(payload: dict, expected: ExpectedShape) -> list[GeneratedResult]:
    return _results(payload, _count(expected, "result_count"))


def _validate_unified(payload: dict, expected: ExpectedShape) -> GeneratedQuiz:
    result_count = _count(expected, "result_count")
    title = _text(payload, "title", "")
    subtitle = _text(payload, "subtitle", "")
    questions = _questions(payload, _count(expected, "question_count"), result_count)
    results = _results(payload, result_count)
    return GeneratedQuiz(title=title, subtitle=subtitle, questions=questions, results=results)


def _validate_analysis(payload: dict, expected: ExpectedShape) -> BusinessMeta:
    return BusinessMeta(
        business_summary=_text(payload, "business_summary", ""),
        icp=_text(payload, "icp", ""),
        category=_text(payload, "category", ""),
        pain_points=_strings(payload, "pain_points", ""),
        benefits=_strings(payload, "benefits", ""),
        product_service_list=_strings(payload, "product_service_list", "") if "product_service_list" in payload else [],
        tone_indicators=_strings(payload, "tone_indicators", "") if "tone_indicators" in payload else [],
        keywords=_strings(payload, "keywords", "") if "keywords" in payload else [],
    )


def _validate_outline(payload: dict, expected: ExpectedShape) -> Outline:
    title_options = _strings(payload, "title_options", "", minimum=1)
    subtitle_options = _strings(payload, "subtitle_options", "")
    sections = []
    for i, raw in enumerate(_list(payload, "sections", "", minimum=1)):
        path = f"sections[{i}]"
        obj = _object(raw, path)
        sections.append(OutlineSection(title=_text(obj, "title", path), purpose=_text(obj, "purpose", path)))
    return Outline(
        title_options=title_options,
        subtitle_options=subtitle_options,
        sections=sections,
        cta_concept=_text(payload, "cta_concept", ""),
    )


def _validate_content(payload: dict, expected: ExpectedShape) -> LeadMagnetContent:
    title = _text(payload, "title", "")
    subtitle = _text(payload, "subtitle", "")
    sections = []
    for i, raw in enumerate(_list(payload, "sections", "", minimum=1)):
        path = f"sections[{i}]"
        obj = _object(raw, path)
        sections.append(ContentSection(title=_text(obj, "title", path), content=_text(obj, "content", path)))
    return LeadMagnetContent(title=title, subtitle=subtitle, sections=sections, cta=_text(payload, "cta", ""))


def _validate_landing(payload: dict, expected: ExpectedShape) -> LandingPageCopy:
    return LandingPageCopy(
        headline=_text(payload, "headline", ""),
        subheadline=_text(payload, "subheadline", ""),
        benefit_bullets=_strings(payload, "benefit_bullets", "", minimum=1),
        cta=_text(payload, "cta", ""),
        short_description=_text(payload, "short_description", ""),
        html=_text(payload, "html", ""),
    )


def _validate_emails(payload: dict, expected: ExpectedShape) -> EmailSequence:
    emails = []
    for i, raw in enumerate(_list(payload, "emails", "", exact=EMAIL_SEQUENCE_LENGTH)):
        path = f"emails[{i}]"
        obj = _object(raw, path)
        emails.append(
            Email(
                title=_text(obj, "title", path),
                subject=_text(obj, "subject", path),
                body_text=_text(obj, "body_text", path),
                body_html=_text(obj, "body_html", path),
            )
        )
    return EmailSequence(emails=emails)


_VALIDATORS: dict[SchemaKind, Callable[[dict, ExpectedShape], Any]] = {
    SchemaKind.QUESTIONS: _validate_questions,
    SchemaKind.RESULTS: _validate_results,
    SchemaKind.UNIFIED_QUIZ: _validate_unified,
    SchemaKind.BUSINESS_ANALYSIS: _validate_analysis,
    SchemaKind.OUTLINE: _validate_outline,
    SchemaKind.CONTENT: _validate_content,
    SchemaKind.LANDING_PAGE: _validate_landing,
    SchemaKind.EMAIL_SEQUENCE: _validate_emails,
}


def validate(payload: Any, schema: SchemaKind, expected: Union[ExpectedShape, None] = None) -> ValidationResult:
    if not isinstance(payload, dict):
        return SchemaValidationError("$", "top-level value must be a JSON object")
    try:
        return Ok(_VALIDATORS[SchemaKind(schema)](payload, expected or ExpectedShape()))
    except _Violation as violation:
        return SchemaValidationError(violation.path, violation.reason)


def raise_for_result(result: ValidationResult) -> Any:
    if isinstance(result, SchemaValidationError):
        raise result
    return result.value
