from pathlib import Path

import pytest
import typer
from typer.testing import CliRunner

from hostprep.cli import app as app_mod
from hostprep.cli.app import app, apply_overrides, build_steps, resolve_start, session_steps_before
from hostprep.config.models import HostPrepConfig, TargetConfig
from hostprep.pipeline.helpers import FunctionStep
from hostprep.pipeline.manager import Pipeline
from hostprep.pipeline.models import StepMetadata

runner = CliRunner()


def test_steps_lists_bundle_in_order():
    result = runner.invoke(app, ["steps"])
    assert result.exit_code == 0
    out = result.output
    order = [out.index(s) for s in ("ssh_connection", "sudo_ensure", "python_ensure", "ansible_user")]
    assert order == sorted(order)
    assert "ansible_playbook" not in out


def test_steps_with_playbook():
    result = runner.invoke(app, ["steps", "--playbook", "site.yml"])
    assert result.exit_code == 0
    assert "ansible_playbook" in result.output


def test_apply_overrides_key_switches_auth():
    cfg = HostPrepConfig(target=TargetConfig(host="a", username="root", password="pw"))
    out = apply_overrides(cfg, host="b", port=2200, key=Path("/k/id"), playbook=Path("pb.yml"))

    assert out.target.host == "b"
    assert out.target.port == 2200
    assert out.target.auth_method == "private_key"
    assert out.target.password is None
    assert out.playbook.path == "pb.yml"
    # original untouched
    assert cfg.target.host == "a" and cfg.playbook is None


def test_resolve_start():
    pipeline = Pipeline()
    pipeline.register(*build_steps(HostPrepConfig()))

    assert resolve_start(pipeline, None) == 0
    assert resolve_start(pipeline, "2") == 2
    assert resolve_start(pipeline, "ansible_user") == 3
    with pytest.raises(typer.BadParameter):
        resolve_start(pipeline, "nope")


def test_non_interactive_run_fails_without_host(tmp_path: Path):
    result = runner.invoke(app, ["run", "--non-interactive", "--log-dir", str(tmp_path)])

    assert result.exit_code == 1
    assert "requires input host" in result.output
    assert list(tmp_path.glob("hostprep-*.log"))
    assert list(tmp_path.glob("hostprep-*.jsonl"))


def test_session_steps_before():
    pipeline = Pipeline()
    pipeline.register(*build_steps(HostPrepConfig()))

    assert session_steps_before(pipeline, 0) == []
    assert session_steps_before(pipeline, 1) == ["ssh_connection"]
    assert session_steps_before(pipeline, 3) == ["ssh_connection", "sudo_ensure"]


def test_from_step_reconnects_before_resuming(tmp_path: Path, monkeypatch):
    calls = []

    def step(step_id):
        return FunctionStep(StepMetadata(id=step_id), lambda store, ctx: calls.append(step_id))

    monkeypatch.setattr(
        app_mod,
        "build_steps",
        lambda cfg: [step("ssh_connection"), step("sudo_ensure"), step("python_ensure"), step("ansible_user")],
    )
    result = runner.invoke(app, ["run", "--from-step", "python_ensure", "--non-interactive", "--log-dir", str(tmp_path)])

    assert result.exit_code == 0, result.output
    assert calls == ["ssh_connection", "sudo_ensure", "python_ensure", "ansible_user"]


def test_from_step_python_ensure_asks_for_connection_first(tmp_path: Path):
    result = runner.invoke(
        app, ["run", "--from-step", "python_ensure", "--non-interactive", "--log-dir", str(tmp_path)]
    )

    assert result.exit_code == 1
    assert "requires input host" in result.output
    assert "sudo step must complete" not in result.output
