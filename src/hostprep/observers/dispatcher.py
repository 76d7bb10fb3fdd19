# src/hostprep/observers/dispatcher.py
from __future__ import annotations

import logging
import time
import uuid
from typing import Dict, List, Optional

from hostprep.pipeline.errors import InputRequestError
from hostprep.pipeline.models import StepMetadata

from .events import BaseEvent, InputRequested, StepFailed, StepStarted, StepSucceeded, new_ctx
from .interface import Observer

log = logging.getLogger("hostprep")


class EventBus:
    """
    Fans events out to `notify(event)` observers.

    Also acts as the pipeline's StepObserver: step callbacks become
    StepStarted / StepSucceeded / StepFailed / InputRequested events carrying
    this bus's run id and target.
    """

    def __init__(self, observers: Optional[List[Observer]] = None, *, run_id: Optional[str] = None, target: Optional[str] = None):
        self._observers = list(observers or [])
        self.run_id = run_id or str(uuid.uuid4())
        self.target = target
        self._attempts: Dict[str, int] = {}
        self._started_at: Dict[str, float] = {}

    def emit(self, event: BaseEvent) -> None:
        for ob in self._observers:
            try:
                ob.notify(event)
            except Exception:
                # observers must not break runs
                log.debug("observer %r failed on %s", ob, type(event).__name__, exc_info=True)

    def _ctx(self):
        return new_ctx(self.run_id, self.target)

    # ------------------ StepObserver ------------------

    def step_started(self, meta: StepMetadata) -> None:
        attempt = self._attempts.get(meta.id, 0) + 1
        self._attempts[meta.id] = attempt
        self._started_at[meta.id] = time.monotonic()
        self.emit(StepStarted(**self._ctx(), step_id=meta.id, title=meta.display_name, attempt=attempt))

    def step_completed(self, meta: StepMetadata, error: Optional[BaseException]) -> None:
        attempt = self._attempts.get(meta.id, 1)
        if error is None:
            elapsed = time.monotonic() - self._started_at.pop(meta.id, time.monotonic())
            self.emit(
                StepSucceeded(
                    **self._ctx(),
                    step_id=meta.id,
                    title=meta.display_name,
                    attempt=attempt,
                    duration_s=round(elapsed, 3),
                )
            )
            return

        if isinstance(error, InputRequestError):
            self.emit(
                InputRequested(
                    **self._ctx(),
                    step_id=meta.id,
                    input_id=error.input.id,
                    label=error.input.label,
                    reason=error.reason,
                    secret=error.input.secret,
                )
            )
            return

        self.emit(
            StepFailed(
                **self._ctx(),
                step_id=meta.id,
                title=meta.display_name,
                attempt=attempt,
                error=str(error),
                error_type=type(error).__name__,
            )
        )
