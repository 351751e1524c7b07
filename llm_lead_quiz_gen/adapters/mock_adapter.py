from __future__ import annotations

import json
import re
import time

from .base import ChatResponse

_UNIFIED_COUNTS = re.compile(r"exactly (\d+) questions and exactly (\d+) results", re.IGNORECASE)
_QUESTION_COUNT = re.compile(r'exactly (\d+) entries in "questions"')
_RESULT_COUNT = re.compile(r'exactly (\d+) entries in "results"')


def _questions(count: int, result_count: int | None = None) -> list[dict]:
    questions = []
    for qi in range(count):
        answers = []
        for ai in range(4):
            text = f"Answer {ai + 1} to question {qi + 1}"
            if result_count is None:
                answers.append(text)
            else:
                answers.append({"answerText": text, "resultIndex": (qi * 4 + ai) % result_count})
        questions.append({"questionText": f"Mock question {qi + 1}?", "answers": answers})
    return questions


def _results(count: int) -> list[dict]:
    return [
        {
            "name": f"Mock Result {ri + 1}",
            "emoji": "✨",
            "summary": f"You are mock result number {ri + 1}.",
            "traits": ["Deterministic", "Offline"],
            "recommendation": "Swap in a real adapter for real content.",
        }
        for ri in range(count)
    ]


def _payload_for(prompt: str) -> dict:
    unified = _UNIFIED_COUNTS.search(prompt)
    if unified:
        q, r = int(unified.group(1)), int(unified.group(2))
        return {
            "title": "Mock Quiz",
            "subtitle": "Generated offline.",
            "questions": _questions(q, r),
            "results": _results(r),
        }
    match = _QUESTION_COUNT.search(prompt)
    if match:
        return {"questions": _questions(int(match.group(1)))}
    match = _RESULT_COUNT.search(prompt)
    if match:
        return {"results": _results(int(match.group(1)))}
    if '"business_summary"' in prompt:
        return {
            "business_summary": "A mock business that sells mock things.",
            "product_service_list": ["Mock product"],
            "icp": "People who test software",
            "pain_points": ["Flaky networks"],
            "tone_indicators": ["calm"],
            "benefits": ["Repeatable output"],
            "category": "Software",
            "keywords": ["mock"],
        }
    if '"title_options"' in prompt:
        return {
            "title_options": ["The Mock Guide"],
            "subtitle_options": ["Everything offline"],
            "sections": [{"title": "Getting started", "purpose": "Orient the reader"}],
            "cta_concept": "Book a call",
        }
    if '"benefit_bullets"' in prompt:
        return {
            "headline": "Get the Mock Guide",
            "subheadline": "Free and offline",
            "benefit_bullets": ["Fast", "Predictable"],
            "cta": "Download",
            "short_description": "A mock lead magnet.",
            "html": "<html><body><form method=\"POST\"></form></body></html>",
        }
    if '"emails"' in prompt:
        return {
            "emails": [
                {
                    "title": f"Email {i + 1}",
                    "subject": f"Mock subject {i + 1}",
                    "body_text": "Hello from the mock.",
                    "body_html": "<p>Hello from the mock.</p>",
                }
                for i in range(5)
            ]
        }
    return {
        "title": "The Mock Guide",
        "subtitle": "Everything offline",
        "sections": [{"title": "Getting started", "content": "Mock content."}],
        "cta": "Book a call",
    }


class MockAdapter:
    """Adapter that answers every prompt with a valid canned payload."""

    def __init__(self, model: str = "mock") -> None:
        self.id = f"mock:{model}"

    async def send(
        self, messages: list[dict[str, str]], params: dict | None = None
    ) -> ChatResponse:
        start = time.perf_counter()
        prompt = "\n".join(m.get("content", "") for m in messages)
        text = json.dumps(_payload_for(prompt), ensure_ascii=False)
        latency_ms = int((time.perf_counter() - start) * 1000)
        return ChatResponse(
            text=text,
            tokens_in=0,
            tokens_out=0,
            latency_ms=latency_ms,
        )

    async def aclose(self) -> None:
        return None
