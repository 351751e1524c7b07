from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Union

from .errors import InputContractViolation
from .types import (
    EMAIL_SEQUENCE_LENGTH,
    LEAD_MAGNET_TONES,
    LEAD_MAGNET_TYPES,
    BrandProfile,
    BusinessMeta,
    GeneratedQuestion,
    GenerationContext,
    LeadMagnetContent,
    Outline,
    PromptPair,
    StageKind,
)

QUESTIONS_SYSTEM = (
    "You are an expert quiz designer specializing in personality quizzes that engage users "
    "and provide valuable insights.\n\n"
    "Generate exactly {question_count} multiple-choice questions for a personality quiz.{title_context}\n\n"
    "Context:\n"
    "- Audience: {audience}\n"
    "- Goal: Help them {goal}{niche_line}{brand_voice_line}\n\n"
    "Requirements:\n"
    "- Each question should have exactly 4 answer options\n"
    "- Questions MUST be specific and relevant to the quiz topic (not generic)\n"
    "- Answers should be distinct personality/preference indicators within the topic's domain\n"
    "- Vary question types (preferences, habits, goals, challenges, scenarios) while staying on-topic\n"
    "- Avoid yes/no questions and make answers roughly equal in appeal\n\n"
    "Return as JSON with exactly {question_count} entries in \"questions\":\n"
    '{{"questions": [{{"questionText": "What\'s your ideal Saturday morning?", '
    '"answers": ["Sleeping in", "An early workout", "Catching up on work", "Exploring something new"]}}]}}'
)

QUESTIONS_USER = (
    "Create exactly {question_count} engaging personality quiz questions{title_suffix}\n\n"
    "Context:\n"
    "- Audience: {audience}\n"
    "- Goal: {goal}{niche_line}\n\n"
    "Make sure questions reveal personality traits that can map to distinct result types."
)

RESULTS_SYSTEM = (
    "You are an expert at creating engaging personality quiz results that feel personal and valuable.\n\n"
    'CRITICAL: The quiz title is "{quiz_title}". All {result_count} personality types MUST be directly '
    "related to the topic of this quiz.{niche_line}\n\n"
    "Based on these questions:\n"
    "{questions_text}\n\n"
    "Each result should:\n"
    "1. Have a catchy, relatable name that is SPECIFIC to the quiz topic\n"
    "2. Include an emoji that represents this personality\n"
    '3. Have a 2-3 sentence summary in "you" language\n'
    "4. List 4-5 key traits\n"
    "5. Include a helpful recommendation paragraph{brand_voice_line}\n\n"
    "Return as JSON with exactly {result_count} entries in \"results\":\n"
    '{{"results": [{{"name": "The Strategic Executor", "emoji": "\U0001f3af", '
    '"summary": "You approach challenges with careful planning.", '
    '"traits": ["Plans ahead carefully", "Executes with precision"], '
    '"recommendation": "Focus on projects where planning drives success."}}]}}'
)

RESULTS_USER = (
    "Create exactly {result_count} distinct, engaging personality results tailored to this quiz:\n\n"
    'Quiz Title: "{quiz_title}"{niche_line}\n\n'
    "Questions asked:\n"
    "{questions_text}\n\n"
    "Create results that make sense as outcomes for THIS quiz, not generic personality types."
)

UNIFIED_SYSTEM = (
    "You are an expert quiz creator specializing in personality/assessment quizzes for lead generation.\n\n"
    "QUIZ STRUCTURE:\n"
    "- Exactly {question_count} questions and exactly {result_count} results\n"
    "- Each question should have {answers_per_question} answer options\n"
    "- Each answer maps to one of the {result_count} result types through \"resultIndex\" "
    "(an integer from 0 to {max_index})\n"
    "- Results should feel personalized and actionable\n\n"
    "BRAND ALIGNMENT:\n"
    "- Match the brand's tone ({voice})\n"
    "- Reference relevant products/services subtly in recommendations\n\n"
    "Return a JSON object with this exact structure:\n"
    '{{"title": "Engaging quiz title", "subtitle": "What quiz-takers will discover", '
    '"questions": [{{"questionText": "Question?", "answers": [{{"answerText": "Option", "resultIndex": 0}}]}}], '
    '"results": [{{"name": "Result Type Name", "emoji": "\U0001f3af", "summary": "2-3 sentences", '
    '"traits": ["trait 1"], "recommendation": "Next step relevant to the brand"}}]}}'
)

UNIFIED_USER = (
    'Create a {question_count}-question quiz about: "{topic}"\n\n'
    "{brand_context}\n\n"
    "Generate exactly {question_count} questions and exactly {result_count} distinct result types.\n\n"
    "Ensure:\n"
    "- Answers are distributed across all results (not always result 0)\n"
    "- Results are meaningfully different from each other"
)

ANALYSIS_SYSTEM = (
    "You are an expert business analyst. Analyze the provided website content and extract key "
    "business insights.\n"
    "Return a JSON object with the following structure:\n"
    '{"business_summary": "2-3 sentence summary", "product_service_list": ["..."], '
    '"icp": "Ideal Customer Profile", "pain_points": ["..."], "tone_indicators": ["..."], '
    '"benefits": ["..."], "category": "business category", "keywords": ["..."]}'
)

ANALYSIS_USER = "Analyze this website content{audience_suffix}:\n\n{content}\n\nExtract comprehensive business insights."

OUTLINE_SYSTEM = (
    "You are an expert content strategist specializing in lead magnets.\n"
    "Create an outline for a {magnet_type} lead magnet.\n"
    "{type_description}\n\n"
    "Return a JSON object:\n"
    '{{"title_options": ["3 compelling title options"], "subtitle_options": ["3 subtitle options"], '
    '"sections": [{{"title": "Section title", "purpose": "What this section will cover"}}], '
    '"cta_concept": "The main call-to-action concept"}}'
)

OUTLINE_USER = (
    "Create a {magnet_type} outline for this business:\n\n"
    "{business_block}\n\n"
    "Create an outline that addresses their pain points and positions the business as the solution."
)

CONTENT_SYSTEM = (
    "You are an expert content writer creating a {magnet_type} lead magnet.\n\n"
    "Tone: {tone_description}\n"
    "Length: {length_guide}\n\n"
    "Return a JSON object:\n"
    '{{"title": "The final title", "subtitle": "The subtitle", '
    '"sections": [{{"title": "Section title", "content": "Full section content"}}], '
    '"cta": "Call to action text"}}\n\n'
    "Use markdown formatting in the content."
)

CONTENT_USER = (
    "Write the full content for this {magnet_type}:\n\n"
    "Outline:\n"
    "Title options: {title_options}\n"
    "Sections: {section_titles}\n\n"
    "Business Context:\n"
    "{business_block}\n\n"
    "Write compelling, actionable content for each section."
)

LANDING_SYSTEM = (
    "You are an expert landing page copywriter and web designer.\n"
    "Create compelling landing page copy AND generate the complete HTML.\n\n"
    "Return a JSON object:\n"
    '{{"headline": "...", "subheadline": "...", "benefit_bullets": ["3-5 benefit bullets"], '
    '"cta": "CTA button text", "short_description": "1-2 sentences", "html": "Complete HTML code"}}\n\n'
    "The HTML must use inline CSS only, include an email capture form with "
    'action="{form_action_url}" method="POST", be mobile-responsive and contain no JavaScript.'
)

LANDING_USER = (
    "Create a landing page for this lead magnet:\n\n"
    "Title: {title}\n"
    "Subtitle: {subtitle}\n\n"
    "{business_block}\n\n"
    "Sections covered:\n"
    "{section_lines}\n\n"
    "CTA: {cta}"
)

EMAIL_SYSTEM = (
    "You are an expert email copywriter creating a {email_count}-email nurture sequence.\n\n"
    "Tone: {tone_description}\n\n"
    "Email Sequence:\n"
    "1. Delivery - Deliver the lead magnet with PDF link\n"
    "2. Value - Provide additional value/tips related to the content\n"
    "3. Story/Authority - Share a story or establish authority\n"
    "4. Soft CTA - Gentle mention of how to work together\n"
    "5. Hard CTA - Clear call to action to take next step\n\n"
    "Return a JSON object with exactly {email_count} entries in \"emails\":\n"
    '{{"emails": [{{"title": "Delivery", "subject": "...", "body_text": "...", "body_html": "..."}}]}}\n\n'
    "Include the PDF download link: {pdf_url} in the first email."
)

EMAIL_USER = (
    "Create a {email_count}-email sequence for this lead magnet:\n\n"
    "Lead Magnet: {title}\n"
    "{business_block}\n\n"
    "The sequence should nurture leads toward becoming customers."
)

TYPE_DESCRIPTIONS = {
    "guide": "A comprehensive guide with 5-7 sections, providing in-depth knowledge and actionable advice.",
    "checklist": "A practical checklist with 10-15 items, easy to follow and implement immediately.",
    "mistakes": "An educational piece highlighting 5-7 common mistakes and how to avoid or fix them.",
    "blueprint": "A step-by-step framework with 4-6 phases for achieving a specific outcome.",
    "swipefile": "A collection of 8-12 ready-to-use templates or examples the reader can copy and adapt.",
    "cheatsheet": "A dense one-page reference of the key facts, shortcuts and rules of thumb.",
    "casestudy": "A story-driven breakdown of one customer's problem, approach and measurable result.",
}

LENGTH_GUIDES = {
    "guide": "300-500 words per section.",
    "checklist": "Concise bullet points with brief explanations.",
    "mistakes": "200-300 words per mistake, including the problem and solution.",
    "blueprint": "200-400 words per step.",
    "swipefile": "Each template complete and ready to paste, with a one-line usage note.",
    "cheatsheet": "Short entries, no more than 2 sentences each.",
    "casestudy": "150-300 words per section.",
}

TONE_DESCRIPTIONS = {
    "professional": "Formal, authoritative, and polished.",
    "friendly": "Warm, approachable, and conversational.",
    "expert": "Knowledgeable, detailed, and educational.",
    "persuasive": "Compelling, benefit-focused, and action-oriented.",
}

PDF_URL_PLACEHOLDER = "{{PDF_URL}}"


def _require_count(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InputContractViolation(f"{name} must be a positive integer, got {value!r}")
    return value


def _require_text(name: str, value: Union[str, None]) -> str:
    if not value or not str(value).strip():
        raise InputContractViolation(f"{name} is required")
    return str(value).strip()


def _require_prior(prior: Mapping[str, Any], key: str, stage: StageKind) -> Any:
    value = prior.get(key)
    if not value:
        raise InputContractViolation(f"stage '{stage.value}' requires '{key}' from an earlier stage")
    return value


def validate_quiz_context(ctx: GenerationContext, require_topic: bool = False) -> None:
    """Reject a quiz context before any stage calls the service."""
    _require_count("question_count", ctx.question_count)
    _require_count("result_count", ctx.result_count)
    if require_topic:
        _require_text("topic", ctx.topic or ctx.quiz_title)
    else:
        _require_text("audience", ctx.audience)
        _require_text("goal", ctx.goal)


def validate_lead_magnet_context(ctx: GenerationContext) -> None:
    _require_text("business_content", ctx.business_content)
    _require_magnet_type(ctx)
    _require_tone(ctx)
    _require_text("username", ctx.username)
    _require_text("slug", ctx.slug)


def _niche_line(ctx: GenerationContext) -> str:
    if ctx.niche and ctx.niche != "general":
        return f"\n- Niche/Industry: {ctx.niche}"
    return ""


def _voice(ctx: GenerationContext) -> str:
    if ctx.brand_voice:
        return ctx.brand_voice
    if ctx.brand and ctx.brand.brand_voice:
        return ctx.brand.brand_voice
    return ""


def quiz_title_for(ctx: GenerationContext) -> str:
    if ctx.quiz_title:
        return ctx.quiz_title
    subject = ctx.topic or (ctx.niche if ctx.niche != "general" else "") or ctx.goal
    return f"What's Your {subject.strip().title()} Style?"


def render_brand_context(brand: Union[BrandProfile, None]) -> str:
    if brand is None:
        return ""
    parts = [f"BRAND: {brand.name}"]
    if brand.description:
        parts.append(f"Description: {brand.description}")
    if brand.brand_voice:
        parts.append(f"Voice: {brand.brand_voice}")
    if brand.target_audience:
        parts.append(f"Target Audience: {brand.target_audience}")
    if brand.key_messages:
        parts.append(f"Key Messages: {', '.join(brand.key_messages)}")
    return "\n".join(parts)


def render_questions_text(questions: list[GeneratedQuestion]) -> str:
    lines = []
    for i, q in enumerate(questions, start=1):
        options = " | ".join(a.text for a in q.answers)
        lines.append(f"{i}. {q.text}\n   Options: {options}")
    return "\n".join(lines)


def render_business_block(meta: BusinessMeta) -> str:
    return (
        f"Business: {meta.business_summary}\n"
        f"Target Customer: {meta.icp}\n"
        f"Pain Points: {', '.join(meta.pain_points)}\n"
        f"Benefits: {', '.join(meta.benefits)}\n"
        f"Industry: {meta.category}"
    )


def _questions_prompt(ctx: GenerationContext, prior: Mapping[str, Any]) -> PromptPair:
    count = _require_count("question_count", ctx.question_count)
    audience = _require_text("audience", ctx.audience)
    goal = _require_text("goal", ctx.goal)
    title = ctx.quiz_title or ctx.topic
    title_context = ""
    title_suffix = ""
    if title:
        title_context = (
            f'\n\nIMPORTANT: The quiz title is "{title}". ALL questions must be directly related '
            "to this specific topic."
        )
        title_suffix = f' specifically for: "{title}"'
    voice = _voice(ctx)
    fields = {
        "question_count": count,
        "audience": audience,
        "goal": goal,
        "niche_line": _niche_line(ctx),
        "brand_voice_line": f"\n- Brand voice: {voice}" if voice else "",
        "title_context": title_context,
        "title_suffix": title_suffix,
    }
    return PromptPair(QUESTIONS_SYSTEM.format(**fields), QUESTIONS_USER.format(**fields))


def _results_prompt(ctx: GenerationContext, prior: Mapping[str, Any]) -> PromptPair:
    count = _require_count("result_count", ctx.result_count)
    questions = _require_prior(prior, "questions", StageKind.RESULTS)
    voice = _voice(ctx)
    fields = {
        "result_count": count,
        "quiz_title": quiz_title_for(ctx),
        "questions_text": render_questions_text(questions),
        "niche_line": _niche_line(ctx),
        "brand_voice_line": f"\n\nWrite in this brand voice: {voice}" if voice else "",
    }
    return PromptPair(RESULTS_SYSTEM.format(**fields), RESULTS_USER.format(**fields))


def _unified_prompt(ctx: GenerationContext, prior: Mapping[str, Any]) -> PromptPair:
    questions = _require_count("question_count", ctx.question_count)
    results = _require_count("result_count", ctx.result_count)
    topic = _require_text("topic", ctx.topic or ctx.quiz_title)
    brand_context = render_brand_context(ctx.brand)
    if not brand_context:
        brand_context = f"Audience: {ctx.audience}\nGoal: {ctx.goal}{_niche_line(ctx)}"
    fields = {
        "question_count": questions,
        "result_count": results,
        "max_index": results - 1,
        "answers_per_question": max(2, min(4, results)),
        "voice": _voice(ctx) or "professional",
        "topic": topic,
        "brand_context": brand_context,
    }
    return PromptPair(UNIFIED_SYSTEM.format(**fields), UNIFIED_USER.format(**fields))


def _analysis_prompt(ctx: GenerationContext, prior: Mapping[str, Any]) -> PromptPair:
    content = _require_text("business_content", ctx.business_content)
    suffix = f' for the target audience: "{ctx.audience}"' if ctx.audience else ""
    return PromptPair(ANALYSIS_SYSTEM, ANALYSIS_USER.format(audience_suffix=suffix, content=content))


def _require_magnet_type(ctx: GenerationContext) -> str:
    if ctx.magnet_type not in LEAD_MAGNET_TYPES:
        raise InputContractViolation(
            f"magnet_type must be one of {', '.join(LEAD_MAGNET_TYPES)}, got {ctx.magnet_type!r}"
        )
    return ctx.magnet_type


def _require_tone(ctx: GenerationContext) -> str:
    if ctx.tone not in LEAD_MAGNET_TONES:
        raise InputContractViolation(
            f"tone must be one of {', '.join(LEAD_MAGNET_TONES)}, got {ctx.tone!r}"
        )
    return ctx.tone


def _outline_prompt(ctx: GenerationContext, prior: Mapping[str, Any]) -> PromptPair:
    magnet_type = _require_magnet_type(ctx)
    meta: BusinessMeta = _require_prior(prior, "meta", StageKind.OUTLINE)
    return PromptPair(
        OUTLINE_SYSTEM.format(magnet_type=magnet_type, type_description=TYPE_DESCRIPTIONS[magnet_type]),
        OUTLINE_USER.format(magnet_type=magnet_type, business_block=render_business_block(meta)),
    )


def _content_prompt(ctx: GenerationContext, prior: Mapping[str, Any]) -> PromptPair:
    magnet_type = _require_magnet_type(ctx)
    tone = _require_tone(ctx)
    meta: BusinessMeta = _require_prior(prior, "meta", StageKind.CONTENT)
    outline: Outline = _require_prior(prior, "outline", StageKind.CONTENT)
    return PromptPair(
        CONTENT_SYSTEM.format(
            magnet_type=magnet_type,
            tone_description=TONE_DESCRIPTIONS[tone],
            length_guide=LENGTH_GUIDES[magnet_type],
        ),
        CONTENT_USER.format(
            magnet_type=magnet_type,
            title_options=" | ".join(outline.title_options),
            section_titles=", ".join(s.title for s in outline.sections),
            business_block=render_business_block(meta),
        ),
    )


def _landing_prompt(ctx: GenerationContext, prior: Mapping[str, Any]) -> PromptPair:
    username = _require_text("username", ctx.username)
    slug = _require_text("slug", ctx.slug)
    meta: BusinessMeta = _require_prior(prior, "meta", StageKind.LANDING_PAGE)
    content: LeadMagnetContent = _require_prior(prior, "content", StageKind.LANDING_PAGE)
    return PromptPair(
        LANDING_SYSTEM.format(form_action_url=f"/public/{username}/{slug}/subscribe"),
        LANDING_USER.format(
            title=content.title,
            subtitle=content.subtitle,
            business_block=render_business_block(meta),
            section_lines="\n".join(f"- {s.title}" for s in content.sections),
            cta=content.cta,
        ),
    )


def _email_prompt(ctx: GenerationContext, prior: Mapping[str, Any]) -> PromptPair:
    tone = _require_tone(ctx)
    meta: BusinessMeta = _require_prior(prior, "meta", StageKind.EMAIL_SEQUENCE)
    content: LeadMagnetContent = _require_prior(prior, "content", StageKind.EMAIL_SEQUENCE)
    return PromptPair(
        EMAIL_SYSTEM.format(
            email_count=EMAIL_SEQUENCE_LENGTH,
            tone_description=TONE_DESCRIPTIONS[tone],
            pdf_url=ctx.pdf_url or PDF_URL_PLACEHOLDER,
        ),
        EMAIL_USER.format(
            email_count=EMAIL_SEQUENCE_LENGTH,
            title=content.title,
            business_block=render_business_block(meta),
        ),
    )


_BUILDERS = {
    StageKind.QUESTIONS: _questions_prompt,
    StageKind.RESULTS: _results_prompt,
    StageKind.UNIFIED_QUIZ: _unified_prompt,
    StageKind.BUSINESS_ANALYSIS: _analysis_prompt,
    StageKind.OUTLINE: _outline_prompt,
    StageKind.CONTENT: _content_prompt,
    StageKind.LANDING_PAGE: _landing_prompt,
    StageKind.EMAIL_SEQUENCE: _email_prompt,
}


def build_prompt(
    stage: StageKind, ctx: GenerationContext, prior: Union[Mapping[str, Any], None] = None
) -> PromptPair:
    """Render the system/user prompt pair for one stage.

    ``prior`` carries typed outputs of earlier stages (``questions``, ``meta``,
    ``outline``, ``content``). Raises InputContractViolation on a bad context.
    """
    return _BUILDERS[StageKind(stage)](ctx, prior or {})
