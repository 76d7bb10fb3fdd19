import pytest

from hostprep.utils.commands import CommandError, run_step, shell_quote
from hostprep.utils.execution import ExecutionContext
from hostprep.pipeline.errors import RunCancelledError


class FakeRunner:
    def __init__(self, result):
        self.result = result
        self.calls = []

    def run(self, cmd, *, stdin=None):
        self.calls.append((cmd, stdin))
        return self.result


@pytest.mark.parametrize(
    "value, quoted",
    [("", "''"), ("abc", "'abc'"), ("it's", "'it'\"'\"'s'"), ("a b;c", "'a b;c'")],
)
def test_shell_quote(value, quoted):
    assert shell_quote(value) == quoted


def test_run_step_returns_stdout():
    r = FakeRunner((0, "ok\n", ""))
    assert run_step(r, "probe", "echo ok") == "ok\n"
    assert r.calls == [("echo ok", None)]


def test_run_step_raises_with_details():
    r = FakeRunner((3, "", "no space left\n"))
    with pytest.raises(CommandError) as ei:
        run_step(r, "write", "cp a b", stdin="x")
    assert (ei.value.step, ei.value.rc) == ("write", 3)
    assert str(ei.value) == "write failed (rc=3): no space left"
    assert r.calls == [("cp a b", "x")]


def test_execution_context_cancel():
    ctx = ExecutionContext()
    ctx.raise_if_cancelled("s")
    assert not ctx.cancelled
    ctx.cancel()
    assert ctx.cancelled
    with pytest.raises(RunCancelledError) as ei:
        ctx.raise_if_cancelled("s")
    assert ei.value.step_id == "s"
