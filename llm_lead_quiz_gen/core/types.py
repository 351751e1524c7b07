from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class StageKind(str, Enum):
    QUESTIONS = "questions"
    RESULTS = "results"
    UNIFIED_QUIZ = "unified_quiz"
    BUSINESS_ANALYSIS = "business_analysis"
    OUTLINE = "outline"
    CONTENT = "content"
    LANDING_PAGE = "landing_page"
    EMAIL_SEQUENCE = "email_sequence"


# Every stage validates against the contract of the same name.
SchemaKind = StageKind

LEAD_MAGNET_TYPES = (
    "guide",
    "checklist",
    "mistakes",
    "blueprint",
    "swipefile",
    "cheatsheet",
    "casestudy",
)
LEAD_MAGNET_TONES = ("professional", "friendly", "expert", "persuasive")
EMAIL_SEQUENCE_LENGTH = 5


@dataclass(frozen=True)
class BrandProfile:
    name: str
    description: str = ""
    brand_voice: str = ""
    target_audience: str = ""
    key_messages: tuple[str, ...] = ()


@dataclass(frozen=True)
class GenerationContext:
    audience: str
    goal: str
    niche: str = "general"
    topic: Union[str, None] = None
    quiz_title: Union[str, None] = None
    brand_voice: Union[str, None] = None
    brand: Union[BrandProfile, None] = None
    question_count: int = 8
    result_count: int = 5
    business_content: Union[str, None] = None
    magnet_type: str = "guide"
    tone: str = "professional"
    username: str = ""
    slug: str = ""
    pdf_url: Union[str, None] = None


@dataclass(frozen=True)
class PromptPair:
    system: str
    user: str

    def messages(self) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.user},
        ]


@dataclass(frozen=True)
class ExpectedShape:
    question_count: Union[int, None] = None
    result_count: Union[int, None] = None


@dataclass
class GenerationRequest:
    stage: StageKind
    prompt: PromptPair
    schema: SchemaKind
    expected: ExpectedShape
    token_budget: int = 4000
    max_attempts: int = 3


@dataclass
class GenerationAttempt:
    attempt_index: int
    token_budget: int
    raw_output: str = ""
    outcome: str = "pending"


@dataclass
class GenerationOutcome:
    value: Any
    attempts_used: int
    token_budget: int


@dataclass
class AnswerOption:
    text: str
    result_index: Union[int, None] = None


@dataclass
class GeneratedQuestion:
    text: str
    answers: list[AnswerOption]


@dataclass
class GeneratedResult:
    name: str
    summary: str
    emoji: str = ""
    traits: list[str] = field(default_factory=list)
    recommendation: str = ""


# (question index, answer index) -> result index
AnswerMapping = dict[tuple[int, int], int]


@dataclass
class GeneratedQuiz:
    title: str
    subtitle: str
    questions: list[GeneratedQuestion]
    results: list[GeneratedResult]

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "subtitle": self.subtitle,
            "questions": [
                {
                    "questionText": q.text,
                    "answers": [
                        {"answerText": a.text, "resultIndex": a.result_index}
                        for a in q.answers
                    ],
                }
                for q in self.questions
            ],
            "results": [
                {
                    "name": r.name,
                    "emoji": r.emoji,
                    "summary": r.summary,
                    "traits": list(r.traits),
                    "recommendation": r.recommendation,
                }
                for r in self.results
            ],
        }


@dataclass
class BusinessMeta:
    business_summary: str
    icp: str
    category: str
    product_service_list: list[str] = field(default_factory=list)
    pain_points: list[str] = field(default_factory=list)
    tone_indicators: list[str] = field(default_factory=list)
    benefits: list[str] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)


@dataclass
class OutlineSection:
    title: str
    purpose: str


@dataclass
class Outline:
    title_options: list[str]
    subtitle_options: list[str]
    sections: list[OutlineSection]
    cta_concept: str


@dataclass
class ContentSection:
    title: str
    content: str


@dataclass
class LeadMagnetContent:
    title: str
    subtitle: str
    sections: list[ContentSection]
    cta: str


@dataclass
class LandingPageCopy:
    headline: str
    subheadline: str
    benefit_bullets: list[str]
    cta: str
    short_description: str
    html: str


@dataclass
class Email:
    title: str
    subject: str
    body_text: str
    body_html: str


@dataclass
class EmailSequence:
    emails: list[Email]


@dataclass
class LeadMagnet:
    meta: BusinessMeta
    outline: Outline
    content: LeadMagnetContent
    landing_page: LandingPageCopy
    emails: EmailSequence
