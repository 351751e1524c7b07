import pathlib
import sys

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1]))

from llm_lead_quiz_gen.core import reporter
from llm_lead_quiz_gen.core.types import AnswerOption, GeneratedQuestion, GeneratedQuiz, GeneratedResult


def _quiz():
    return GeneratedQuiz(
        title="Coffee Quiz",
        subtitle="Find your brew",
        questions=[
            GeneratedQuestion(
                text="Your drink of choice:",
                answers=[AnswerOption("Espresso", 0), AnswerOption("Water with lemon", 1), AnswerOption("Tea")],
            )
        ],
        results=[
            GeneratedResult(name="The Purist", summary="You like it strong.", emoji="☕", traits=["Direct"]),
            GeneratedResult(name="The Minimalist", summary="Less is more.", recommendation="Try cold brew."),
        ],
    )


def test_distribution_table_renders():
    md = reporter.render_distribution_table(_quiz())
    assert "| ☕ The Purist | 1 |" in md
    assert "| The Minimalist | 1 |" in md


def test_questions_section_shows_targets():
    md = reporter.render_questions_section(_quiz())
    assert "Water with lemon → The Minimalist" in md
    assert "Tea → unmapped" in md


def test_results_section_includes_recommendation():
    md = reporter.render_results_section(_quiz())
    assert "### ☕ The Purist" in md
    assert "### The Minimalist" in md
    assert "- Direct" in md
    assert "**Recommendation:** Try cold brew." in md


def test_write_quiz_report(tmp_path):
    path = reporter.write_quiz_report(_quiz(), tmp_path / "reports" / "quiz.md")
    text = path.read_text(encoding="utf-8")
    assert text.startswith("# Coffee Quiz")
    assert "## Answer distribution" in text
