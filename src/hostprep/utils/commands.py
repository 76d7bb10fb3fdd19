# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/utils/commands.py

from __future__ import annotations

import logging
from typing import Optional, Protocol, Tuple

log = logging.getLogger("hostprep")

CommandResult = Tuple[int, str, str]


class CommandRunner(Protocol):
    """Anything that can run a shell command on the target and report (rc, stdout, stderr)."""

    def run(self, cmd: str, *, stdin: Optional[str] = None) -> CommandResult: ...


class CommandError(RuntimeError):
    def __init__(self, step: str, rc: int, stderr: str, stdout: str = ""):
        self.step = step
        self.rc = rc
        self.stderr = stderr
        self.stdout = stdout
        detail = (stderr or stdout).strip()
        super().__init__(f"{step} failed (rc={rc}): {detail}" if detail else f"{step} failed (rc={rc})")


def shell_quote(value: str) -> str:
    """Quote a value as one single-quoted POSIX shell word."""
    if value == "":
        return "''"
    return "'" + value.replace("'", "'\"'\"'") + "'"


def run_step(runner: CommandRunner, step: str, cmd: str, *, stdin: Optional[str] = None) -> str:
    """Run a command and return stdout, raising CommandError on a non-zero exit."""
    log.debug("[%s] $ %s", step, cmd)
    rc, out, err = runner.run(cmd, stdin=stdin) if stdin is not None else runner.run(cmd)
    if rc != 0:
        raise CommandError(step, rc, err, out)
    return out
