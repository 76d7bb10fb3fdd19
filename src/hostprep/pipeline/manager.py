# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/pipeline/manager.py

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from hostprep.utils.execution import ExecutionContext

from .errors import (
    DuplicateStepError,
    InputRequestError,
    InputRetryLimitError,
    StepExecutionError,
    ValidationError,
)
from .interface import InputHandler, Step, StepObserver
from .models import StepMetadata
from .store import Store, input_key

log = logging.getLogger("hostprep")


class StepState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    AWAITING_INPUT = "awaiting_input"
    DONE = "done"
    FAILED = "failed"


class Pipeline:
    """
    Runs registered steps strictly in order against a shared Store.

    A step that raises InputRequestError is paused: the input handler is
    asked for the value, the answer is stored under the step-scoped input
    key and the same step runs again from the top. Any other error stops the
    run with a StepExecutionError naming the failing step.
    """

    def __init__(
        self,
        observers: Optional[Iterable[StepObserver]] = None,
        input_handler: Optional[InputHandler] = None,
        max_input_requests: Optional[int] = None,
    ):
        self._steps: List[Step] = []
        self._states: Dict[str, StepState] = {}
        self._observers: List[StepObserver] = [o for o in (observers or []) if o is not None]
        self.input_handler = input_handler
        # None keeps the interactive loop unbounded
        self.max_input_requests = max_input_requests

    # ------------------ registration ------------------

    def register(self, *steps: Optional[Step]) -> None:
        """
        Append steps. Nothing is appended if any of them has an empty or
        already-registered id.
        """
        seen = {s.metadata().id for s in self._steps}
        accepted: List[Step] = []
        for step in steps:
            if step is None:
                continue
            step_id = step.metadata().id
            if not step_id:
                raise ValidationError("step id must not be empty")
            if step_id in seen:
                raise DuplicateStepError(step_id)
            seen.add(step_id)
            accepted.append(step)
        self._steps.extend(accepted)

    @property
    def steps(self) -> Tuple[Step, ...]:
        return tuple(self._steps)

    def metadata(self) -> List[StepMetadata]:
        return [s.metadata() for s in self._steps]

    def state(self, step_id: str) -> StepState:
        """Last known state of a step in the current or most recent run."""
        return self._states.get(step_id, StepState.PENDING)

    def index_of(self, step_id: str) -> int:
        for i, step in enumerate(self._steps):
            if step.metadata().id == step_id:
                return i
        raise KeyError(step_id)

    # ------------------ execution ------------------

    def run(self, store: Optional[Store] = None, ctx: Optional[ExecutionContext] = None) -> Store:
        return self.run_from(0, store=store, ctx=ctx)

    def run_from(
        self,
        start: int,
        store: Optional[Store] = None,
        ctx: Optional[ExecutionContext] = None,
    ) -> Store:
        """
        Execute steps from `start` (clamped to the registered range) to the end.
        Returns the store so callers that passed None can inspect artifacts.
        """
        store = store if store is not None else Store()
        ctx = ctx or ExecutionContext()
        if not self._steps:
            return store

        start = self._clamp(start)
        for step in self._steps[start:]:
            self._states[step.metadata().id] = StepState.PENDING
        log.debug("running %d step(s) from index %d", len(self._steps) - start, start)
        for step in self._steps[start:]:
            self._execute(step, store, ctx)
        return store

    def run_step(
        self,
        step_id: str,
        store: Optional[Store] = None,
        ctx: Optional[ExecutionContext] = None,
    ) -> Store:
        """Execute one registered step, with the same input-retry handling as a full run."""
        try:
            step = self._steps[self.index_of(step_id)]
        except KeyError:
            raise ValidationError(f"unknown step {step_id!r}")
        store = store if store is not None else Store()
        self._execute(step, store, ctx or ExecutionContext())
        return store

    def _clamp(self, idx: int) -> int:
        if idx < 0:
            return 0
        if idx >= len(self._steps):
            return len(self._steps) - 1
        return idx

    def _execute(self, step: Step, store: Store, ctx: ExecutionContext) -> None:
        meta = step.metadata()
        requests = 0

        while True:
            ctx.raise_if_cancelled(meta.id)

            self._states[meta.id] = StepState.RUNNING
            self._notify_started(meta)
            try:
                step.run(store, ctx)
            except InputRequestError as req:
                self._notify_completed(meta, req)
                if self.input_handler is None:
                    self._states[meta.id] = StepState.FAILED
                    raise StepExecutionError(meta, req) from req

                requests += 1
                if self.max_input_requests is not None and requests > self.max_input_requests:
                    self._states[meta.id] = StepState.FAILED
                    limit_err = InputRetryLimitError(meta.id, req.input.id, self.max_input_requests)
                    raise StepExecutionError(meta, limit_err) from req

                self._states[meta.id] = StepState.AWAITING_INPUT
                log.info("[%s] waiting for input %s: %s", meta.id, req.input.id, req.reason or "required")
                try:
                    value = self.input_handler.request_input(meta, req.input, req.reason)
                except Exception as exc:
                    self._states[meta.id] = StepState.FAILED
                    raise StepExecutionError(meta, exc) from exc

                store.set(input_key(req.step_id or meta.id, req.input.id), value)
                self._states[meta.id] = StepState.PENDING
                continue
            except Exception as exc:
                self._states[meta.id] = StepState.FAILED
                self._notify_completed(meta, exc)
                raise StepExecutionError(meta, exc) from exc

            self._states[meta.id] = StepState.DONE
            self._notify_completed(meta, None)
            return

    def _notify_started(self, meta: StepMetadata) -> None:
        for obs in self._observers:
            try:
                obs.step_started(meta)
            except Exception:
                log.debug("observer %r failed on step_started(%s)", obs, meta.id, exc_info=True)

    def _notify_completed(self, meta: StepMetadata, error: Optional[BaseException]) -> None:
        for obs in self._observers:
            try:
                obs.step_completed(meta, error)
            except Exception:
                log.debug("observer %r failed on step_completed(%s)", obs, meta.id, exc_info=True)


def build_pipeline(
    steps: Sequence[Step],
    *,
    observers: Optional[Iterable[StepObserver]] = None,
    input_handler: Optional[InputHandler] = None,
    max_input_requests: Optional[int] = None,
) -> Pipeline:
    pipeline = Pipeline(
        observers=observers,
        input_handler=input_handler,
        max_input_requests=max_input_requests,
    )
    pipeline.register(*steps)
    return pipeline
