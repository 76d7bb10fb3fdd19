# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/privilege/resolver.py

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from enum import Enum

from hostprep.utils.commands import CommandResult, CommandRunner, shell_quote

from .errors import (
    AuthenticationRejectedError,
    FallbackUnavailableError,
    PasswordMissingError,
    PermissionDeniedError,
    ToolUnrecoverableError,
    UnclassifiedElevationError,
)

log = logging.getLogger("hostprep")

SUDO_CHECK = "command -v sudo >/dev/null 2>&1"

ENSURE_SUDO_SCRIPT = """
set -euo pipefail
if command -v sudo >/dev/null 2>&1; then
    exit 0
fi
if command -v apt-get >/dev/null 2>&1; then
    apt-get update -y >/dev/null 2>&1 && apt-get install -y sudo >/dev/null 2>&1
elif command -v yum >/dev/null 2>&1; then
    yum install -y sudo >/dev/null 2>&1
elif command -v dnf >/dev/null 2>&1; then
    dnf install -y sudo >/dev/null 2>&1
elif command -v zypper >/dev/null 2>&1; then
    zypper --non-interactive install -y sudo >/dev/null 2>&1
else
    echo "unable to install sudo: no supported package manager found" >&2
    exit 1
fi
"""

AUTH_FAILURE_SIGNATURES = (
    "Authentication failure",
    "authentication failure",
    "incorrect password",
    "Sorry, try again.",
)
PERMISSION_SIGNATURES = (
    "is not in the sudoers file",
    "may not run sudo",
    "is not allowed to execute",
)


class ElevationMethod(str, Enum):
    SUDO = "sudo"
    SU = "su"


class ProbeOutcome(Enum):
    OK = "ok"
    AUTH_FAILED = "auth_failed"
    UNAUTHORIZED = "unauthorized"
    TOOL_MISSING = "tool_missing"
    OTHER = "other"


def privileged_command(method: ElevationMethod, cmd: str) -> str:
    quoted = shell_quote(cmd)
    if method is ElevationMethod.SUDO:
        return f"sudo -S -p '' -k bash -c {quoted}"
    if method is ElevationMethod.SU:
        return f"su - root -c {quoted}"
    raise ValueError(f"unsupported elevation method {method!r}")


def install_sudo_command() -> str:
    encoded = base64.b64encode(ENSURE_SUDO_SCRIPT.encode()).decode()
    return f"printf %s {shell_quote(encoded)} | base64 -d | bash"


def is_auth_failure(stderr: str) -> bool:
    return any(sig in stderr for sig in AUTH_FAILURE_SIGNATURES)


def classify_sudo_probe(rc: int, stderr: str) -> ProbeOutcome:
    if rc == 0:
        return ProbeOutcome.OK
    if "sudo: command not found" in stderr or (rc == 127 and "not found" in stderr):
        return ProbeOutcome.TOOL_MISSING
    if any(sig in stderr for sig in PERMISSION_SIGNATURES):
        return ProbeOutcome.UNAUTHORIZED
    if is_auth_failure(stderr):
        return ProbeOutcome.AUTH_FAILED
    return ProbeOutcome.OTHER


@dataclass(frozen=True)
class ElevatedSession:
    """
    A validated way of running commands as root on the target.

    Bound to one runner, one method and one credential for its lifetime.
    The password is only ever written to the command's stdin.
    """

    runner: CommandRunner
    method: ElevationMethod
    password: str = field(repr=False)

    def run(self, cmd: str) -> CommandResult:
        return _run_as(self.runner, self.method, self.password, cmd)


def _run_as(runner: CommandRunner, method: ElevationMethod, password: str, cmd: str) -> CommandResult:
    return runner.run(privileged_command(method, cmd), stdin=password + "\n")


def _ensure_sudo_installed(runner: CommandRunner, method: ElevationMethod, password: str) -> None:
    rc, _, _ = _run_as(runner, method, password, SUDO_CHECK)
    if rc == 0:
        return
    log.info("sudo not found on target, installing via %s", method.value)
    rc, _, err = _run_as(runner, method, password, install_sudo_command())
    if rc != 0:
        raise ToolUnrecoverableError(method.value, rc, err)


def _probe_su(runner: CommandRunner, password: str) -> None:
    rc, _, err = _run_as(runner, ElevationMethod.SU, password, "true")
    if rc == 0:
        return
    if is_auth_failure(err):
        raise AuthenticationRejectedError(ElevationMethod.SU.value, err)
    raise FallbackUnavailableError(rc, err)


def resolve_elevation(runner: CommandRunner, password: str) -> ElevatedSession:
    """
    Work out how to become root on the target and return a session bound to it.

    sudo is preferred. When the account may not use sudo, or sudo is
    missing, su is tried with the same password, sudo is installed through
    it and sudo is probed once more before settling on su.
    """
    if not password:
        raise PasswordMissingError()

    rc, _, err = _run_as(runner, ElevationMethod.SUDO, password, "true")
    outcome = classify_sudo_probe(rc, err)
    log.debug("sudo probe: rc=%s outcome=%s", rc, outcome.value)

    if outcome is ProbeOutcome.OK:
        _ensure_sudo_installed(runner, ElevationMethod.SUDO, password)
        return ElevatedSession(runner, ElevationMethod.SUDO, password)
    if outcome is ProbeOutcome.AUTH_FAILED:
        raise AuthenticationRejectedError(ElevationMethod.SUDO.value, err)
    if outcome is ProbeOutcome.OTHER:
        raise UnclassifiedElevationError(rc, err)

    try:
        _probe_su(runner, password)
    except FallbackUnavailableError as su_err:
        if outcome is ProbeOutcome.UNAUTHORIZED:
            raise PermissionDeniedError(err) from su_err
        raise

    _ensure_sudo_installed(runner, ElevationMethod.SU, password)

    rc, _, _ = _run_as(runner, ElevationMethod.SUDO, password, "true")
    if rc == 0:
        if outcome is ProbeOutcome.UNAUTHORIZED:
            # installing sudo does not grant sudoers membership; reaching this
            # means the account was authorized through some other path
            log.debug("sudo usable after su fallback despite earlier permission denial; using sudo")
        return ElevatedSession(runner, ElevationMethod.SUDO, password)

    log.info("sudo unavailable for this account, using su")
    return ElevatedSession(runner, ElevationMethod.SU, password)
