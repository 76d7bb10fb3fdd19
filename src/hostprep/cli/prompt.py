# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/cli/prompt.py

from __future__ import annotations

from typing import Any, Callable, Optional

import typer

from hostprep.logging.redaction import SecretRedactor
from hostprep.pipeline.errors import InputCancelledError
from hostprep.pipeline.models import InputDefinition, InputKind, StepMetadata


class PromptInputHandler:
    """
    Terminal input handler for the pipeline.

    Secrets are read without echo and registered with the redactor so they
    never reach the logs. Ctrl-C or end of input aborts the run.
    """

    def __init__(
        self,
        redactor: Optional[SecretRedactor] = None,
        *,
        prompt: Callable[..., Any] = typer.prompt,
        echo: Callable[..., None] = typer.echo,
    ):
        self.redactor = redactor
        self._prompt = prompt
        self._echo = echo

    def request_input(self, meta: StepMetadata, input: InputDefinition, reason: str) -> Any:
        self._echo("")
        self._echo(f"[{meta.display_name}] {input.label}")
        if reason:
            self._echo(f"  {reason}")
        if input.description:
            self._echo(f"  {input.description}")

        try:
            if input.kind is InputKind.SELECT and input.options:
                return self._select(input)
            if input.secret or input.kind is InputKind.SECRET:
                value = self._ask(input, hide_input=True)
                if self.redactor is not None:
                    self.redactor.track(value)
                return value
            return self._ask(input)
        except (typer.Abort, KeyboardInterrupt, EOFError) as e:
            raise InputCancelledError(meta.id, input.id) from e

    def _ask(self, input: InputDefinition, *, hide_input: bool = False) -> str:
        kwargs: dict = {"hide_input": hide_input}
        if input.default is not None and not hide_input:
            kwargs["default"] = str(input.default)
        elif not input.required:
            kwargs["default"] = ""
            kwargs["show_default"] = False

        while True:
            value = self._prompt(input.label, **kwargs)
            text = value if hide_input else str(value).strip()
            if text or not input.required:
                return text
            self._echo(f"  {input.label} is required")

    def _select(self, input: InputDefinition) -> str:
        options = list(input.options)
        for i, opt in enumerate(options, start=1):
            desc = f" - {opt.description}" if opt.description else ""
            self._echo(f"  {i}) {opt.label or opt.value}{desc}")

        default = None
        if input.default is not None:
            for i, opt in enumerate(options, start=1):
                if opt.value == input.default:
                    default = str(i)

        while True:
            kwargs = {"default": default} if default is not None else {}
            raw = str(self._prompt("Choose", **kwargs)).strip()
            if raw.isdigit() and 1 <= int(raw) <= len(options):
                return options[int(raw) - 1].value
            for opt in options:
                if raw == opt.value:
                    return opt.value
            self._echo(f"  choose a number between 1 and {len(options)}")
