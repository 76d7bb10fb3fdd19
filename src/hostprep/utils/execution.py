# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Optional

from hostprep.pipeline.errors import RunCancelledError


@dataclass(frozen=True)
class ExecutionContext:
    """
    controls how a run is executed and lets another thread cancel it.

    Cancellation is cooperative: the pipeline checks it before each step
    invocation, steps check it between remote commands.
    """

    _cancel_event: threading.Event = field(default_factory=threading.Event, repr=False, compare=False)

    def cancel(self) -> None:
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def raise_if_cancelled(self, step_id: Optional[str] = None) -> None:
        if self._cancel_event.is_set():
            raise RunCancelledError(step_id)
