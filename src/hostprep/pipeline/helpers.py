# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/pipeline/helpers.py

from __future__ import annotations

from dataclasses import replace
from typing import Any, Callable, Iterable, List, Optional, Sequence, Set

from hostprep.utils.execution import ExecutionContext

from .errors import DuplicateStepError, InputRequestError, ValidationError
from .interface import Step
from .models import InputDefinition, InputKind, InputOption, StepMetadata
from .store import Store, get_input, get_input_str

StepFunc = Callable[[Store, ExecutionContext], None]
StepFilter = Callable[[StepMetadata], bool]


# ------------------ input definitions ------------------

def text_input(
    id: str,
    label: str,
    *,
    description: str = "",
    required: bool = False,
    default: Any = None,
) -> InputDefinition:
    return InputDefinition(
        id=id,
        label=label,
        description=description,
        kind=InputKind.TEXT,
        required=required,
        default=default,
    )


def secret_input(id: str, label: str, *, description: str = "", required: bool = False) -> InputDefinition:
    return InputDefinition(
        id=id,
        label=label,
        description=description,
        kind=InputKind.SECRET,
        required=required,
        secret=True,
    )


def select_input(
    id: str,
    label: str,
    options: Sequence[InputOption],
    *,
    description: str = "",
    required: bool = False,
    default: Optional[str] = None,
) -> InputDefinition:
    return InputDefinition(
        id=id,
        label=label,
        description=description,
        kind=InputKind.SELECT,
        required=required,
        default=default,
        options=tuple(options),
    )


def as_required(definition: InputDefinition) -> InputDefinition:
    return replace(definition, required=True)


def fallback_definition(input_id: str) -> InputDefinition:
    """Definition used when a step asks for an input it never declared."""
    return InputDefinition(id=input_id, label=input_id.replace("_", " ").title())


# ------------------ steps ------------------

class FunctionStep:
    """
    A step made from metadata plus a plain function, for pipelines that do
    not need a dedicated class per step.
    """

    def __init__(self, meta: StepMetadata, fn: StepFunc):
        if not meta.id:
            raise ValidationError("function step metadata must include an id")
        if fn is None:
            raise ValidationError(f"function step {meta.id} requires a run function")
        self._meta = meta
        self._fn = fn

    def metadata(self) -> StepMetadata:
        return self._meta

    def run(self, store: Store, ctx: ExecutionContext) -> None:
        self._fn(store, ctx)


class StepListBuilder:
    """
    Collects an ordered list of steps, remembering the first validation
    error so call sites can chain `add` and check once in `build`.
    """

    def __init__(self) -> None:
        self._steps: List[Step] = []
        self._seen: Set[str] = set()
        self._error: Optional[Exception] = None

    def add(self, step: Optional[Step]) -> "StepListBuilder":
        if step is None or self._error is not None:
            return self
        step_id = step.metadata().id
        if not step_id:
            self._error = ValidationError("step id must not be empty")
            return self
        if step_id in self._seen:
            self._error = DuplicateStepError(step_id)
            return self
        self._seen.add(step_id)
        self._steps.append(step)
        return self

    def extend(self, steps: Iterable[Optional[Step]]) -> "StepListBuilder":
        for step in steps:
            self.add(step)
        return self

    def build(self) -> List[Step]:
        if self._error is not None:
            raise self._error
        return list(self._steps)


def with_tag(tag: str) -> StepFilter:
    wanted = tag.lower()

    def _match(meta: StepMetadata) -> bool:
        return any(t.lower() == wanted for t in meta.tags)

    return _match


def select_steps(steps: Sequence[Step], *filters: StepFilter) -> List[Step]:
    """Steps matching every filter; all steps when no filters are given."""
    return [
        s for s in steps
        if s is not None and all(f(s.metadata()) for f in filters if f is not None)
    ]


# ------------------ input lookups inside steps ------------------

def input_request(meta: StepMetadata, input_id: str, reason: str, *, required: bool = True) -> InputRequestError:
    """Build the error a step raises to ask for one of its declared inputs."""
    definition = meta.input(input_id) or fallback_definition(input_id)
    if required and not definition.required:
        definition = as_required(definition)
    return InputRequestError(meta.id, definition, reason)


def require_input(store: Store, meta: StepMetadata, input_id: str, reason: str) -> str:
    """Operator answer for `input_id` (stripped unless secret), or raise the matching InputRequestError."""
    definition = meta.input(input_id)
    if definition is not None and definition.secret:
        raw, _ = get_input(store, meta.id, input_id)
        # secrets are used verbatim
        value = raw if isinstance(raw, str) and raw else None
    else:
        value = get_input_str(store, meta.id, input_id)
    if value is None:
        raise input_request(meta, input_id, reason)
    return value
