# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from typing import Any, Optional, Protocol

from hostprep.utils.execution import ExecutionContext

from .models import InputDefinition, StepMetadata
from .store import Store


class Step(Protocol):
    """
    A unit of bootstrap work.

    `run` must be safe to call again against a store that has been updated
    since the last attempt; the engine re-runs whole steps, never parts.
    """

    def metadata(self) -> StepMetadata: ...

    def run(self, store: Store, ctx: ExecutionContext) -> None: ...


class StepObserver(Protocol):
    """Notified around every step invocation. Exceptions raised here are logged and ignored."""

    def step_started(self, meta: StepMetadata) -> None: ...

    def step_completed(self, meta: StepMetadata, error: Optional[BaseException]) -> None: ...


class InputHandler(Protocol):
    """Synchronously obtains a value for a pending input. Raise to abort the run."""

    def request_input(self, meta: StepMetadata, input: InputDefinition, reason: str) -> Any: ...
