# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/pipeline/errors.py

from __future__ import annotations

from typing import Optional

from .models import InputDefinition, StepMetadata


class PipelineError(RuntimeError):
    """Base class for pipeline failures."""


class ValidationError(PipelineError):
    """Invalid pipeline or step configuration. Never retried."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"step validation failed: {reason}")


class DuplicateStepError(PipelineError):
    def __init__(self, step_id: str):
        self.step_id = step_id
        super().__init__(f"step with id {step_id!r} already registered")


class InputRequestError(PipelineError):
    """
    Raised by a step that cannot continue without an operator-supplied value.

    The engine intercepts it, asks the input handler for the value, stores
    it under the step-scoped input key and re-runs the same step.
    """

    def __init__(self, step_id: str, input: InputDefinition, reason: str = ""):
        self.step_id = step_id
        self.input = input
        self.reason = reason
        if reason:
            msg = f"step {step_id} requires input {input.id}: {reason}"
        else:
            msg = f"step {step_id} requires input {input.id}"
        super().__init__(msg)


class StepExecutionError(PipelineError):
    """Terminal failure of a specific step. The original error is kept in `cause`."""

    def __init__(self, step: StepMetadata, cause: BaseException):
        self.step = step
        self.cause = cause
        super().__init__(f"step {step.id} failed: {cause}")


class InputRetryLimitError(PipelineError):
    def __init__(self, step_id: str, input_id: str, limit: int):
        self.step_id = step_id
        self.input_id = input_id
        self.limit = limit
        super().__init__(
            f"step {step_id} requested input {limit} times without completing "
            f"(last request: {input_id})"
        )


class InputCancelledError(PipelineError):
    """Raised by input handlers when the operator aborts a prompt."""

    def __init__(self, step_id: str, input_id: str, reason: Optional[str] = None):
        self.step_id = step_id
        self.input_id = input_id
        super().__init__(reason or f"input {input_id} for step {step_id} cancelled by operator")


class RunCancelledError(PipelineError):
    def __init__(self, step_id: Optional[str] = None):
        self.step_id = step_id
        where = f" before step {step_id}" if step_id else ""
        super().__init__(f"run cancelled{where}")
