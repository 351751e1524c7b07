"""Failure taxonomy for the structured generation pipeline."""

from __future__ import annotations

from typing import Union


class GenerationError(Exception):
    """Base class; ``stage`` is filled in once the failing stage is known."""

    kind = "generation_error"

    def __init__(self, message: str, stage: Union[str, None] = None) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage

    def with_stage(self, stage: str) -> "GenerationError":
        if self.stage is None:
            self.stage = stage
        return self

    def to_dict(self) -> dict[str, object]:
        return {"kind": self.kind, "stage": self.stage, "message": self.message}


class InputContractViolation(GenerationError, ValueError):
    kind = "input_contract_violation"


class TransientServiceError(GenerationError):
    kind = "transient_service_error"


class TruncatedOutputError(GenerationError):
    kind = "truncated_output"

    def __init__(self, message: str, token_budget: int, next_token_budget: int) -> None:
        super().__init__(message)
        self.token_budget = token_budget
        self.next_token_budget = next_token_budget


class MalformedOutputError(GenerationError):
    kind = "malformed_output"


class SchemaValidationError(GenerationError):
    kind = "schema_validation_error"

    def __init__(self, path: str, reason: str, stage: Union[str, None] = None) -> None:
        super().__init__(f"{path}: {reason}", stage=stage)
        self.path = path
        self.reason = reason

    def to_dict(self) -> dict[str, object]:
        data = super().to_dict()
        data.update({"path": self.path, "reason": self.reason})
        return data


class ExhaustedRetriesError(GenerationError):
    kind = "exhausted_retries"

    def __init__(
        self,
        attempts: int,
        last_error: Union[BaseException, None] = None,
        stage: Union[str, None] = None,
    ) -> None:
        detail = f": {last_error}" if last_error is not None else ""
        super().__init__(f"gave up after {attempts} attempt(s){detail}", stage=stage)
        self.attempts = attempts
        self.last_error = last_error

    @property
    def last_kind(self) -> Union[str, None]:
        return getattr(self.last_error, "kind", None)

    def to_dict(self) -> dict[str, object]:
        data = super().to_dict()
        data.update({"attempts": self.attempts, "last_kind": self.last_kind})
        return data


class GenerationCancelled(GenerationError):
    """Caller-initiated abort. Never retried and not an alerting failure."""

    kind = "cancelled"
