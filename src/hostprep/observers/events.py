# src/hostprep/observers/events.py

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional
from datetime import datetime, timezone
import uuid


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str                # ISO timestamp
    run_id: str            # correlates all events in a single run
    target: Optional[str]  # host being prepared, once known

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_ctx(run_id: Optional[str] = None, target: Optional[str] = None) -> Dict[str, Any]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "run_id": run_id or str(uuid.uuid4()),
        "target": target,
    }


# ---------------------------------------------------------------------
# Step lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class StepStarted(BaseEvent):
    step_id: str
    title: str
    attempt: int

@dataclass(frozen=True)
class StepSucceeded(BaseEvent):
    step_id: str
    title: str
    attempt: int
    duration_s: float

@dataclass(frozen=True)
class StepFailed(BaseEvent):
    step_id: str
    title: str
    attempt: int
    error: str
    error_type: str


# ---------------------------------------------------------------------
# Operator input
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class InputRequested(BaseEvent):
    step_id: str
    input_id: str
    label: str
    reason: str
    secret: bool = False
