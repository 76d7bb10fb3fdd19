# src/hostprep/cli/app.py
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from hostprep.config.loader import load_config
from hostprep.config.models import HostPrepConfig, PlaybookConfig

from hostprep.pipeline.errors import RunCancelledError, StepExecutionError
from hostprep.pipeline.interface import Step
from hostprep.pipeline.manager import Pipeline
from hostprep.pipeline.store import Store

from hostprep.steps.bundle import ansible_prep_bundle
from hostprep.steps.playbook import PlaybookStep
from hostprep.steps import ssh_connect, sudo_ensure
from hostprep.steps.ssh_connect import SSH_CLIENT

from hostprep.cli.prompt import PromptInputHandler
from hostprep.logging.log import init_logging
from hostprep.logging.redaction import SecretRedactor
from hostprep.observers.console import ConsoleObserver
from hostprep.observers.dispatcher import EventBus
from hostprep.observers.jsonfile import JsonFileObserver
from hostprep.observers.logger import LoggerObserver
from hostprep.observers.redacting import RedactingObserver
from hostprep.utils.execution import ExecutionContext


# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="Prepare a remote host for Ansible")


# ------------------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------------------

def build_steps(cfg: HostPrepConfig) -> List[Step]:
    playbook = None
    if cfg.playbook is not None:
        playbook = PlaybookStep(
            cfg.playbook.path,
            extra_vars=cfg.playbook.extra_vars,
            private_data_dir=cfg.playbook.private_data_dir,
        )
    return ansible_prep_bundle(
        automation_user=cfg.automation_user.username,
        key_bits=cfg.automation_user.key_bits,
        playbook=playbook,
    )


def apply_overrides(
    cfg: HostPrepConfig,
    *,
    host: Optional[str] = None,
    port: Optional[int] = None,
    user: Optional[str] = None,
    key: Optional[Path] = None,
    automation_key: Optional[Path] = None,
    playbook: Optional[Path] = None,
) -> HostPrepConfig:
    """Command-line flags win over the config file."""
    target = cfg.target.model_copy()
    if host:
        target.host = host
    if port:
        target.port = port
    if user:
        target.username = user
    if key:
        target.key_path = str(key)
        target.auth_method = "private_key"
        target.password = None

    automation = cfg.automation_user.model_copy()
    if automation_key:
        automation.key_path = str(automation_key)

    update = {"target": target, "automation_user": automation}
    if playbook:
        pb = cfg.playbook.model_copy() if cfg.playbook else PlaybookConfig(path=str(playbook))
        pb.path = str(playbook)
        update["playbook"] = pb
    return cfg.model_copy(update=update)


# steps whose artifacts (client, elevated session) live only in memory
SESSION_STEPS = (ssh_connect.STEP_ID, sudo_ensure.STEP_ID)


def session_steps_before(pipeline: Pipeline, start: int) -> List[str]:
    """Session steps a run starting at `start` would otherwise skip."""
    out = []
    for step_id in SESSION_STEPS:
        try:
            if pipeline.index_of(step_id) < start:
                out.append(step_id)
        except KeyError:
            continue
    return out


def resolve_start(pipeline: Pipeline, from_step: Optional[str]) -> int:
    if not from_step:
        return 0
    if from_step.isdigit():
        return int(from_step)
    try:
        return pipeline.index_of(from_step)
    except KeyError:
        known = ", ".join(m.id for m in pipeline.metadata())
        raise typer.BadParameter(f"Unknown step {from_step!r}. Known steps: {known}")


# ------------------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------------------

@app.command()
def run(
    config: Optional[Path] = typer.Argument(None, help="hostprep YAML config"),
    host: Optional[str] = typer.Option(None, "--host", help="Target hostname or IP"),
    port: Optional[int] = typer.Option(None, "--port", help="SSH port"),
    user: Optional[str] = typer.Option(None, "--user", help="SSH username"),
    key: Optional[Path] = typer.Option(None, "--key", help="Private key for the SSH login"),
    automation_key: Optional[Path] = typer.Option(
        None, "--automation-key", help="Local path for the automation user's key pair"
    ),
    playbook: Optional[Path] = typer.Option(None, "--playbook", help="Run this playbook once the host is ready"),
    from_step: Optional[str] = typer.Option(None, "--from-step", help="Step id or index to start from"),
    non_interactive: bool = typer.Option(False, "--non-interactive", help="Fail instead of prompting"),
    debug: bool = typer.Option(False, "--debug"),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir"),
):
    cfg = load_config(config) if config else HostPrepConfig()
    cfg = apply_overrides(
        cfg,
        host=host,
        port=port,
        user=user,
        key=key,
        automation_key=automation_key,
        playbook=playbook,
    )

    redactor = SecretRedactor([cfg.target.password or "", cfg.target.sudo_password or ""])
    base_dir = log_dir or (Path(cfg.logging.dir) if cfg.logging.dir else None)
    logger, run_id, log_path = init_logging(
        base_dir=base_dir,
        verbose=debug or cfg.logging.debug,
        redactor=redactor,
    )

    typer.echo("")
    typer.secho("hostprep started", bold=True)
    typer.echo(f"  Run ID   : {run_id}")
    typer.echo(f"  Logs     : {log_path}")
    typer.echo("")

    events_path = Path(cfg.logging.events_file) if cfg.logging.events_file else log_path.with_suffix(".jsonl")
    bus = EventBus(
        observers=[
            RedactingObserver(ConsoleObserver(verbose=debug), redactor),
            RedactingObserver(LoggerObserver(logger), redactor),
            RedactingObserver(JsonFileObserver(events_path), redactor),
        ],
        run_id=run_id,
        target=cfg.target.host,
    )

    interactive = not (non_interactive or cfg.non_interactive)
    pipeline = Pipeline(
        observers=[bus],
        input_handler=PromptInputHandler(redactor) if interactive else None,
        max_input_requests=cfg.max_input_requests,
    )
    pipeline.register(*build_steps(cfg))
    start = resolve_start(pipeline, from_step)

    store = Store.from_answers(cfg.seed_answers())
    ctx = ExecutionContext()

    try:
        for step_id in session_steps_before(pipeline, start):
            pipeline.run_step(step_id, store=store, ctx=ctx)
        pipeline.run_from(start, store=store, ctx=ctx)
    except StepExecutionError as e:
        logger.debug("run failed", exc_info=True)
        typer.echo(f"\n{e.step.display_name} failed: {e.cause}", err=True)
        raise typer.Exit(1)
    except (RunCancelledError, KeyboardInterrupt):
        ctx.cancel()
        typer.echo("\nrun cancelled", err=True)
        raise typer.Exit(130)
    finally:
        client = SSH_CLIENT.get(store)
        if client is not None:
            client.close()

    typer.echo("")
    typer.secho("Host is ready for Ansible", bold=True)


@app.command()
def steps(
    playbook: Optional[Path] = typer.Option(None, "--playbook", help="Include a playbook step"),
):
    """List the steps a run executes and the inputs each may ask for."""
    cfg = apply_overrides(HostPrepConfig(), playbook=playbook)
    for i, step in enumerate(build_steps(cfg)):
        meta = step.metadata()
        typer.echo(f"{i}. {meta.id}: {meta.display_name}")
        if meta.description:
            typer.echo(f"     {meta.description}")
        for inp in meta.inputs:
            flag = " (required)" if inp.required else ""
            typer.echo(f"     - {inp.id} [{inp.kind.value}]{flag}: {inp.label}")


if __name__ == "__main__":
    app()
