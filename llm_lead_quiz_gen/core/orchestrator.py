"""Multi-stage generation flows.

Each run walks a fixed sequence of stages; a stage starts only after the one
before it succeeded. The first failure moves the run to ``FAILED`` with the
stage and error attached. Outputs of earlier stages stay in ``partial`` for
diagnostics and are never persisted here.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from .distribution import (
    apply_preserving_existing,
    assign,
    distribution_counts,
    mapping_from_questions,
)
from .errors import GenerationError
from .generation_client import GenerationClient
from .prompt import build_prompt, quiz_title_for, validate_lead_magnet_context, validate_quiz_context
from .stage_config import StageConfigLoader
from .types import (
    AnswerMapping,
    AnswerOption,
    ExpectedShape,
    GeneratedQuestion,
    GeneratedQuiz,
    GenerationContext,
    GenerationRequest,
    LeadMagnet,
    StageKind,
)

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    QUESTIONS = "questions"
    RESULTS = "results"
    UNIFIED_QUIZ = "unified_quiz"
    BUSINESS_ANALYSIS = "business_analysis"
    OUTLINE = "outline"
    CONTENT = "content"
    LANDING_PAGE = "landing_page"
    EMAIL_SEQUENCE = "email_sequence"
    MAPPING = "mapping"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PipelineRun:
    flow: str
    state: PipelineState = PipelineState.IDLE
    history: list[PipelineState] = field(default_factory=lambda: [PipelineState.IDLE])
    quiz: Optional[GeneratedQuiz] = None
    mapping: Optional[AnswerMapping] = None
    lead_magnet: Optional[LeadMagnet] = None
    error: Optional[GenerationError] = None
    failed_stage: Optional[str] = None
    partial: dict[str, Any] = field(default_factory=dict)
    attempts: dict[str, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.state is PipelineState.DONE

    def transition(self, state: PipelineState) -> None:
        if self.state in (PipelineState.DONE, PipelineState.FAILED):
            raise RuntimeError(f"run already finished in state {self.state.value}")
        self.state = state
        self.history.append(state)

    def fail(self, error: GenerationError) -> None:
        stage = self.state.value
        self.failed_stage = stage
        self.error = error.with_stage(stage)
        self.state = PipelineState.FAILED
        self.history.append(PipelineState.FAILED)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "flow": self.flow,
            "state": self.state.value,
            "attempts": dict(self.attempts),
        }
        if self.quiz is not None:
            data["quiz"] = self.quiz.to_dict()
        if self.mapping is not None:
            data["mapping"] = [
                {"question": qi, "answer": ai, "result": ri}
                for (qi, ai), ri in sorted(self.mapping.items())
            ]
        if self.lead_magnet is not None:
            data["lead_magnet"] = dataclasses.asdict(self.lead_magnet)
        if self.error is not None:
            data["error"] = self.error.to_dict()
            data["failed_stage"] = self.failed_stage
            data["completed_stages"] = sorted(self.partial)
        return data


class _StagedPipeline:
    def __init__(self, client: GenerationClient, settings: Optional[StageConfigLoader] = None) -> None:
        self.client = client
        self.settings = settings or StageConfigLoader()

    async def _run_stage(
        self,
        run: PipelineRun,
        stage: StageKind,
        ctx: GenerationContext,
        prior: dict[str, Any],
        expected: ExpectedShape,
        cancel: Union[asyncio.Event, None],
        deadline: Union[float, None],
    ) -> Any:
        run.transition(PipelineState(stage.value))
        prompt = build_prompt(stage, ctx, prior)
        stage_settings = self.settings.get_stage(stage)
        request = GenerationRequest(
            stage=stage,
            prompt=prompt,
            schema=stage,
            expected=expected,
            token_budget=stage_settings.token_budget,
            max_attempts=stage_settings.max_attempts,
        )
        logger.info("[%s] %s stage starting", run.flow, stage.value)
        outcome = await self.client.generate(request, cancel=cancel, deadline=deadline)
        run.attempts[stage.value] = outcome.attempts_used
        run.partial[stage.value] = outcome.value
        return outcome.value


class QuizOrchestrator(_StagedPipeline):
    async def run_split(
        self,
        ctx: GenerationContext,
        cancel: Union[asyncio.Event, None] = None,
        deadline: Union[float, None] = None,
    ) -> PipelineRun:
        """questions -> results -> mapping, the results prompt seeing the questions."""
        run = PipelineRun(flow="split")
        try:
            validate_quiz_context(ctx)
            questions = await self._run_stage(
                run, StageKind.QUESTIONS, ctx, {}, ExpectedShape(question_count=ctx.question_count), cancel, deadline
            )
            results = await self._run_stage(
                run,
                StageKind.RESULTS,
                ctx,
                {"questions": questions},
                ExpectedShape(result_count=ctx.result_count),
                cancel,
                deadline,
            )
            run.transition(PipelineState.MAPPING)
            mapping = assign(questions, ctx.result_count)
            run.quiz = GeneratedQuiz(
                title=quiz_title_for(ctx),
                subtitle=(
                    f"Answer {ctx.question_count} quick questions to find out which of "
                    f"{ctx.result_count} types you are."
                ),
                questions=apply_preserving_existing(questions, mapping),
                results=results,
            )
            run.mapping = mapping
            run.transition(PipelineState.DONE)
        except GenerationError as exc:
            self._record_failure(run, exc)
        return run

    async def run_unified(
        self,
        ctx: GenerationContext,
        remap: bool = False,
        cancel: Union[asyncio.Event, None] = None,
        deadline: Union[float, None] = None,
    ) -> PipelineRun:
        """One call producing the whole quiz; ``remap`` replaces the model's
        result indices with the round-robin distribution."""
        run = PipelineRun(flow="unified")
        try:
            validate_quiz_context(ctx, require_topic=True)
            quiz: GeneratedQuiz = await self._run_stage(
                run,
                StageKind.UNIFIED_QUIZ,
                ctx,
                {},
                ExpectedShape(question_count=ctx.question_count, result_count=ctx.result_count),
                cancel,
                deadline,
            )
            run.transition(PipelineState.MAPPING)
            questions = quiz.questions
            if remap:
                cleared = [
                    GeneratedQuestion(text=q.text, answers=[AnswerOption(text=a.text) for a in q.answers])
                    for q in questions
                ]
                questions = apply_preserving_existing(cleared, assign(cleared, ctx.result_count))
            run.quiz = dataclasses.replace(quiz, questions=questions)
            run.mapping = mapping_from_questions(questions)
            logger.info(
                "[unified] answer distribution: %s",
                distribution_counts(run.mapping, ctx.result_count),
            )
            run.transition(PipelineState.DONE)
        except GenerationError as exc:
            self._record_failure(run, exc)
        return run

    @staticmethod
    def _record_failure(run: PipelineRun, exc: GenerationError) -> None:
        if run.state is PipelineState.IDLE:
            # Rejected before the first stage started; blame the first stage.
            run.transition(PipelineState.QUESTIONS if run.flow == "split" else PipelineState.UNIFIED_QUIZ)
        run.fail(exc)
        log = logger.info if exc.kind == "cancelled" else logger.error
        log("[%s] run failed at %s: %s", run.flow, run.failed_stage, exc)


class LeadMagnetOrchestrator(_StagedPipeline):
    """business analysis -> outline -> content -> landing page -> email sequence."""

    STAGES = (
        (StageKind.BUSINESS_ANALYSIS, "meta"),
        (StageKind.OUTLINE, "outline"),
        (StageKind.CONTENT, "content"),
        (StageKind.LANDING_PAGE, "landing_page"),
        (StageKind.EMAIL_SEQUENCE, "emails"),
    )

    async def run(
        self,
        ctx: GenerationContext,
        cancel: Union[asyncio.Event, None] = None,
        deadline: Union[float, None] = None,
    ) -> PipelineRun:
        run = PipelineRun(flow="lead_magnet")
        prior: dict[str, Any] = {}
        try:
            validate_lead_magnet_context(ctx)
            for stage, key in self.STAGES:
                prior[key] = await self._run_stage(run, stage, ctx, prior, ExpectedShape(), cancel, deadline)
                logger.info("[lead_magnet] %s stage complete", stage.value)
            run.lead_magnet = LeadMagnet(**prior)
            run.transition(PipelineState.DONE)
        except GenerationError as exc:
            if run.state is PipelineState.IDLE:
                run.transition(PipelineState.BUSINESS_ANALYSIS)
            run.fail(exc)
            log = logger.info if exc.kind == "cancelled" else logger.error
            log("[lead_magnet] run failed at %s: %s", run.failed_stage, exc)
        return run
