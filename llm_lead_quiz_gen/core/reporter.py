from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from .distribution import distribution_counts, mapping_from_questions
from .types import GeneratedQuiz


def render_distribution_table(quiz: GeneratedQuiz) -> str:
    counts = distribution_counts(mapping_from_questions(quiz.questions), len(quiz.results))
    lines = ["| Result | Answers |", "|--------|---------|"]
    for result, count in zip(quiz.results, counts):
        lines.append(f"| {_label(result.emoji, result.name)} | {count} |")
    return "\n".join(lines)


def _label(emoji: str, name: str) -> str:
    return f"{emoji} {name}" if emoji else name


def render_questions_section(quiz: GeneratedQuiz) -> str:
    lines = ["## Questions", ""]
    for qi, question in enumerate(quiz.questions, start=1):
        lines.append(f"{qi}. {question.text}")
        for answer in question.answers:
            if answer.result_index is None:
                target = "unmapped"
            else:
                target = quiz.results[answer.result_index].name
            lines.append(f"   - {answer.text} → {target}")
    return "\n".join(lines)


def render_results_section(quiz: GeneratedQuiz) -> str:
    lines = ["## Results", ""]
    for result in quiz.results:
        lines.append(f"### {_label(result.emoji, result.name)}")
        lines.append("")
        lines.append(result.summary)
        lines.append("")
        lines.extend(_bullets(result.traits))
        if result.recommendation:
            lines.append("")
            lines.append(f"**Recommendation:** {result.recommendation}")
        lines.append("")
    return "\n".join(lines).rstrip()


def _bullets(items: Iterable[str]) -> list[str]:
    return [f"- {item}" for item in items]


def render_quiz_report(quiz: GeneratedQuiz) -> str:
    return "\n\n".join(
        [
            f"# {quiz.title}",
            f"_{quiz.subtitle}_",
            render_questions_section(quiz),
            render_results_section(quiz),
            "## Answer distribution",
            render_distribution_table(quiz),
        ]
    ) + "\n"


def write_quiz_report(quiz: GeneratedQuiz, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_quiz_report(quiz), encoding="utf-8")
    return path
