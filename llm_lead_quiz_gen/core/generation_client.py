"""Calls the generative service and turns its text into validated structures.

One ``generate`` call owns its attempt loop: transient service failures and
malformed output are retried with the same token budget, output that looks
truncated is retried with a larger one, and schema violations are surfaced
straight away. The client holds no per-request state, so one instance can be
shared by concurrent pipeline runs.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from typing import Any, Callable, Union

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from ..adapters.base import ChatAdapter
from .errors import (
    ExhaustedRetriesError,
    GenerationCancelled,
    InputContractViolation,
    MalformedOutputError,
    SchemaValidationError,
    TransientServiceError,
    TruncatedOutputError,
)
from .schema import validate
from .types import GenerationAttempt, GenerationOutcome, GenerationRequest
from .utils import looks_truncated, parse_json_object

logger = logging.getLogger(__name__)

DEFAULT_RETRY_DELAY_SECONDS = 1.0
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_TOKEN_BUDGET = 8000
TOKEN_GROWTH_FACTOR = 1.4
TOKEN_GROWTH_STEP = 200

RETRYABLE_ERRORS = (TransientServiceError, TruncatedOutputError, MalformedOutputError)


def grow_token_budget(current: int, cap: int = DEFAULT_MAX_TOKEN_BUDGET) -> int:
    return min(round(current * TOKEN_GROWTH_FACTOR + TOKEN_GROWTH_STEP), cap)


def _deadline_passed(deadline: Union[float, None]) -> bool:
    return deadline is not None and time.monotonic() >= deadline


class GenerationClient:
    def __init__(
        self,
        adapter: ChatAdapter,
        *,
        retry_delay: float = DEFAULT_RETRY_DELAY_SECONDS,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_token_budget: int = DEFAULT_MAX_TOKEN_BUDGET,
        limiter: Union[asyncio.Semaphore, None] = None,
        truncation_detector: Callable[[str], bool] = looks_truncated,
        default_params: Union[dict, None] = None,
    ) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.adapter = adapter
        self.retry_delay = retry_delay
        self.timeout = timeout
        self.max_token_budget = max_token_budget
        self.limiter = limiter
        self.truncation_detector = truncation_detector
        self.default_params = dict(default_params or {})

    async def generate(
        self,
        request: GenerationRequest,
        cancel: Union[asyncio.Event, None] = None,
        deadline: Union[float, None] = None,
    ) -> GenerationOutcome:
        """Run the attempt loop for one request.

        ``cancel`` is an event the caller may set; ``deadline`` is a
        ``time.monotonic()`` timestamp. Either one aborts with
        GenerationCancelled, never as a retryable failure. The event also
        interrupts a service call already in flight.
        """
        if request.max_attempts < 1:
            raise InputContractViolation(f"max_attempts must be at least 1, got {request.max_attempts}")
        if request.token_budget <= 0:
            raise InputContractViolation(f"token_budget must be positive, got {request.token_budget}")
        stage = request.stage.value
        token_budget = request.token_budget
        attempts: list[GenerationAttempt] = []
        value: Any = None

        retrying = AsyncRetrying(
            stop=stop_after_attempt(request.max_attempts),
            wait=wait_fixed(self.retry_delay),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            sleep=lambda seconds: self._sleep(seconds, cancel, deadline),
            before_sleep=lambda state: self._log_retry(stage, state),
        )
        try:
            async for attempt in retrying:
                with attempt:
                    self._check_cancelled(stage, cancel, deadline)
                    record = GenerationAttempt(
                        attempt_index=attempt.retry_state.attempt_number,
                        token_budget=token_budget,
                    )
                    attempts.append(record)
                    try:
                        value = await self._attempt(request, record, cancel, deadline)
                    except TruncatedOutputError as exc:
                        token_budget = exc.next_token_budget
                        raise
        except RetryError as exc:
            last_error = exc.last_attempt.exception()
            logger.error(
                "[%s] giving up after %d attempt(s): %s", stage, len(attempts), last_error
            )
            raise ExhaustedRetriesError(len(attempts), last_error, stage=stage) from last_error

        logger.info(
            "[%s] generated in %d attempt(s), token_budget=%d", stage, len(attempts), token_budget
        )
        return GenerationOutcome(value=value, attempts_used=len(attempts), token_budget=token_budget)

    async def _attempt(
        self,
        request: GenerationRequest,
        record: GenerationAttempt,
        cancel: Union[asyncio.Event, None],
        deadline: Union[float, None],
    ) -> Any:
        stage = request.stage.value
        params = dict(self.default_params)
        params.update(
            {
                "max_tokens": record.token_budget,
                "response_format": {"type": "json_object"},
            }
        )
        limiter = self.limiter if self.limiter is not None else contextlib.nullcontext()
        try:
            async with limiter:
                resp = await asyncio.wait_for(
                    self._send(request, params, cancel),
                    timeout=self._call_timeout(deadline),
                )
        except GenerationCancelled:
            record.outcome = "cancelled"
            raise
        except asyncio.TimeoutError as exc:
            if _deadline_passed(deadline):
                record.outcome = "cancelled"
                raise GenerationCancelled("deadline passed during service call", stage=stage) from exc
            record.outcome = "transient"
            raise TransientServiceError(f"service call timed out after {self.timeout}s", stage=stage) from exc
        except Exception as exc:
            record.outcome = "transient"
            raise TransientServiceError(f"service call failed: {exc}", stage=stage) from exc

        text = resp.get("text") or ""
        record.raw_output = text
        try:
            payload = parse_json_object(text)
        except ValueError as exc:
            if self.truncation_detector(text):
                next_budget = grow_token_budget(record.token_budget, self.max_token_budget)
                record.outcome = "truncated"
                logger.warning(
                    "[%s] output looks truncated; token budget %d -> %d",
                    stage,
                    record.token_budget,
                    next_budget,
                )
                raise TruncatedOutputError(
                    f"output looks truncated at {len(text)} chars", record.token_budget, next_budget
                ).with_stage(stage) from exc
            record.outcome = "malformed"
            logger.warning("[%s] could not parse output: %s (preview=%r)", stage, exc, text[:200])
            raise MalformedOutputError(f"could not parse output: {exc}", stage=stage) from exc

        result = validate(payload, request.schema, request.expected)
        if isinstance(result, SchemaValidationError):
            record.outcome = "schema_invalid"
            logger.warning("[%s] schema violation at %s: %s", stage, result.path, result.reason)
            raise result.with_stage(stage)
        record.outcome = "ok"
        return result.value

    async def _send(self, request: GenerationRequest, params: dict, cancel: Union[asyncio.Event, None]) -> Any:
        call = self.adapter.send(request.prompt.messages(), params=params)
        if cancel is None:
            return await call
        send_task = asyncio.ensure_future(call)
        cancel_task = asyncio.ensure_future(cancel.wait())
        try:
            done, _ = await asyncio.wait({send_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (send_task, cancel_task):
                if not task.done():
                    task.cancel()
        if send_task in done:
            return send_task.result()
        raise GenerationCancelled("cancelled during service call", stage=request.stage.value)

    def _call_timeout(self, deadline: Union[float, None]) -> float:
        if deadline is None:
            return self.timeout
        return max(0.0, min(self.timeout, deadline - time.monotonic()))

    @staticmethod
    def _check_cancelled(stage: str, cancel: Union[asyncio.Event, None], deadline: Union[float, None]) -> None:
        if cancel is not None and cancel.is_set():
            raise GenerationCancelled("cancelled by caller", stage=stage)
        if _deadline_passed(deadline):
            raise GenerationCancelled("deadline passed", stage=stage)

    @staticmethod
    async def _sleep(seconds: float, cancel: Union[asyncio.Event, None], deadline: Union[float, None]) -> None:
        if deadline is not None:
            seconds = max(0.0, min(seconds, deadline - time.monotonic()))
        if cancel is None:
            await asyncio.sleep(seconds)
            return
        # Wake early when the caller cancels; the next attempt then aborts.
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(cancel.wait(), timeout=seconds)

    @staticmethod
    def _log_retry(stage: str, state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        logger.warning(
            "[%s] attempt %d failed (%s), retrying",
            stage,
            state.attempt_number,
            getattr(exc, "kind", type(exc).__name__),
        )
