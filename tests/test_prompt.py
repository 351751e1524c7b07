import sys, pathlib; sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1]))
import pytest

from llm_lead_quiz_gen.core.errors import InputContractViolation
from llm_lead_quiz_gen.core.prompt import PDF_URL_PLACEHOLDER, build_prompt, quiz_title_for
from llm_lead_quiz_gen.core.types import (
    AnswerOption,
    BrandProfile,
    BusinessMeta,
    ContentSection,
    GeneratedQuestion,
    GenerationContext,
    LeadMagnetContent,
    Outline,
    OutlineSection,
    StageKind,
)

QUIZ_CTX = GenerationContext(
    audience="busy founders",
    goal="find their productivity style",
    niche="saas",
    question_count=6,
    result_count=4,
)

META = BusinessMeta(
    business_summary="Acme sells bookkeeping for bakeries.",
    icp="Independent bakery owners",
    category="Accounting",
    pain_points=["Messy receipts"],
    benefits=["Clean books"],
)
CONTENT = LeadMagnetContent(
    title="The Bakery Books Guide",
    subtitle="Tidy numbers",
    sections=[ContentSection(title="Receipts", content="Keep them.")],
    cta="Book a call",
)
MAGNET_CTX = GenerationContext(
    audience="bakers",
    goal="get_leads",
    business_content="Acme Bookkeeping helps bakeries.",
    magnet_type="checklist",
    tone="friendly",
    username="acme",
    slug="bakery-books",
)


def test_questions_prompt_states_count_and_context():
    prompt = build_prompt(StageKind.QUESTIONS, QUIZ_CTX)
    assert 'exactly 6 entries in "questions"' in prompt.system
    assert "busy founders" in prompt.system
    assert "Niche/Industry: saas" in prompt.system
    assert "exactly 6" in prompt.user


def test_results_prompt_includes_prior_questions():
    questions = [GeneratedQuestion(text="Morning routine?", answers=[AnswerOption("Run"), AnswerOption("Read")])]
    prompt = build_prompt(StageKind.RESULTS, QUIZ_CTX, {"questions": questions})
    assert 'exactly 4 entries in "results"' in prompt.system
    assert "Morning routine?" in prompt.user
    assert "Run | Read" in prompt.user


def test_results_prompt_requires_questions():
    with pytest.raises(InputContractViolation):
        build_prompt(StageKind.RESULTS, QUIZ_CTX)


def test_unified_prompt_states_counts_and_brand():
    brand = BrandProfile(name="Acme", brand_voice="playful", key_messages=("fast", "fair"))
    ctx = GenerationContext(
        audience="", goal="", topic="coffee", brand=brand, question_count=5, result_count=3
    )
    prompt = build_prompt(StageKind.UNIFIED_QUIZ, ctx)
    assert "Exactly 5 questions and exactly 3 results" in prompt.system
    assert "0 to 2" in prompt.system
    assert "playful" in prompt.system
    assert "BRAND: Acme" in prompt.user
    assert "Key Messages: fast, fair" in prompt.user


@pytest.mark.parametrize(
    "stage,ctx",
    [
        (StageKind.QUESTIONS, GenerationContext(audience="a", goal="g", question_count=0)),
        (StageKind.QUESTIONS, GenerationContext(audience="", goal="g")),
        (StageKind.UNIFIED_QUIZ, GenerationContext(audience="a", goal="g", topic="t", result_count=-2)),
        (StageKind.UNIFIED_QUIZ, GenerationContext(audience="a", goal="g")),
        (StageKind.BUSINESS_ANALYSIS, GenerationContext(audience="a", goal="g")),
    ],
)
def test_invalid_context_is_rejected(stage, ctx):
    with pytest.raises(InputContractViolation):
        build_prompt(stage, ctx)


def test_quiz_title_falls_back_to_topic_or_goal():
    assert quiz_title_for(GenerationContext(audience="a", goal="g", quiz_title="Custom")) == "Custom"
    assert quiz_title_for(GenerationContext(audience="a", goal="g", topic="coffee")) == "What's Your Coffee Style?"
    assert "Saas" in quiz_title_for(QUIZ_CTX)


def test_analysis_prompt_embeds_business_content():
    prompt = build_prompt(StageKind.BUSINESS_ANALYSIS, MAGNET_CTX)
    assert '"business_summary"' in prompt.system
    assert "Acme Bookkeeping helps bakeries." in prompt.user
    assert 'target audience: "bakers"' in prompt.user


def test_outline_prompt_uses_type_description():
    prompt = build_prompt(StageKind.OUTLINE, MAGNET_CTX, {"meta": META})
    assert "checklist" in prompt.system
    assert "10-15 items" in prompt.system
    assert "Independent bakery owners" in prompt.user


def test_content_prompt_lists_outline_sections():
    outline = Outline(
        title_options=["A", "B"],
        subtitle_options=[],
        sections=[OutlineSection(title="Receipts", purpose="p"), OutlineSection(title="Taxes", purpose="p")],
        cta_concept="call",
    )
    prompt = build_prompt(StageKind.CONTENT, MAGNET_CTX, {"meta": META, "outline": outline})
    assert "Warm, approachable" in prompt.system
    assert "Receipts, Taxes" in prompt.user
    assert "A | B" in prompt.user


def test_landing_prompt_points_form_at_subscribe_url():
    prompt = build_prompt(StageKind.LANDING_PAGE, MAGNET_CTX, {"meta": META, "content": CONTENT})
    assert 'action="/public/acme/bakery-books/subscribe"' in prompt.system
    assert "The Bakery Books Guide" in prompt.user


def test_email_prompt_uses_pdf_placeholder_without_url():
    prompt = build_prompt(StageKind.EMAIL_SEQUENCE, MAGNET_CTX, {"meta": META, "content": CONTENT})
    assert 'exactly 5 entries in "emails"' in prompt.system
    assert PDF_URL_PLACEHOLDER in prompt.system


def test_unknown_magnet_type_is_rejected():
    ctx = GenerationContext(audience="a", goal="g", business_content="x", magnet_type="ebook")
    with pytest.raises(InputContractViolation):
        build_prompt(StageKind.OUTLINE, ctx, {"meta": META})


def test_prompt_messages_are_system_then_user():
    prompt = build_prompt(StageKind.QUESTIONS, QUIZ_CTX)
    assert prompt.messages() == [
        {"role": "system", "content": prompt.system},
        {"role": "user", "content": prompt.user},
    ]
    assert not hasattr(prompt, "combined")
