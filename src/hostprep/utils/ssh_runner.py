# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/utils/ssh_runner.py

from __future__ import annotations

from typing import Optional

import paramiko

from hostprep.utils.commands import CommandResult


class SSHRunner:
    """Runs commands over an authenticated paramiko client, one channel per call."""

    def __init__(self, client: paramiko.SSHClient, *, timeout: Optional[float] = None):
        self.client = client
        self.timeout = timeout

    def run(
        self,
        cmd: str,
        *,
        stdin: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        chan_in, stdout, stderr = self.client.exec_command(cmd, timeout=timeout or self.timeout)
        if stdin is not None:
            chan_in.write(stdin)
            chan_in.flush()
        # EOF so sudo/su stop waiting for more input
        chan_in.channel.shutdown_write()

        out = stdout.read().decode(errors="replace")
        err = stderr.read().decode(errors="replace")
        rc = stdout.channel.recv_exit_status()
        return rc, out, err

    def close(self) -> None:
        self.client.close()
