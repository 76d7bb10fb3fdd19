# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/pipeline/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Tuple


class InputKind(str, Enum):
    """How a presentation layer should render an input."""

    TEXT = "text"
    SECRET = "secret"
    SELECT = "select"


@dataclass(frozen=True)
class InputOption:
    value: str
    label: str = ""
    description: str = ""


@dataclass(frozen=True)
class InputDefinition:
    """
    A value a step needs from the operator.

    `id` is unique within the owning step. `options` only matter for
    InputKind.SELECT.
    """

    id: str
    label: str
    description: str = ""
    kind: InputKind = InputKind.TEXT
    required: bool = False
    secret: bool = False
    default: Any = None
    options: Tuple[InputOption, ...] = ()

    def option_values(self) -> Tuple[str, ...]:
        return tuple(o.value for o in self.options)


@dataclass(frozen=True)
class StepMetadata:
    """
    Descriptive information about a step, used by the engine for reporting
    and by front-ends for rendering. Never mutated after construction.
    """

    id: str
    title: str = ""
    description: str = ""
    inputs: Tuple[InputDefinition, ...] = ()
    tags: Tuple[str, ...] = field(default_factory=tuple)

    def input(self, input_id: str) -> Optional[InputDefinition]:
        for definition in self.inputs:
            if definition.id == input_id:
                return definition
        return None

    @property
    def display_name(self) -> str:
        return self.title or self.id
