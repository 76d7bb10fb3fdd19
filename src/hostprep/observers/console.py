# src/hostprep/observers/console.py
from __future__ import annotations

import typer

from .events import BaseEvent, InputRequested, StepFailed, StepStarted, StepSucceeded


class ConsoleObserver:
    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def notify(self, event: BaseEvent) -> None:
        if isinstance(event, StepStarted):
            again = f" (attempt {event.attempt})" if event.attempt > 1 else ""
            typer.echo(f"==> {event.title}{again}")
        elif isinstance(event, StepSucceeded):
            typer.echo(f"    ok: {event.title} ({event.duration_s:.1f}s)")
        elif isinstance(event, StepFailed):
            typer.echo(f"    FAILED: {event.title}: {event.error}", err=True)
        elif isinstance(event, InputRequested):
            typer.echo(f"    needs input: {event.label} ({event.reason or 'required'})")
        elif self.verbose:
            d = event.dict()
            k = event.__class__.__name__
            typer.echo(f"[{d['ts']}] {k} run={d['run_id']} data={{"
                       + ", ".join(f"{x}={y}" for x, y in d.items() if x not in ('ts', 'run_id')) + "}}")
