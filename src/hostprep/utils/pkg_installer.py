# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/utils/pkg_installer.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from hostprep.utils.commands import CommandRunner, run_step, shell_quote

log = logging.getLogger("hostprep")


class PackageValidationError(ValueError):
    pass


@dataclass
class InstallResult:
    package: str
    installed: bool = False
    skipped: bool = False


def install_script(package: str) -> str:
    """Shell script installing `package` with the first package manager found."""
    q = shell_quote(package)
    return f"""
set -euo pipefail
if command -v apt-get >/dev/null 2>&1; then
    export DEBIAN_FRONTEND=noninteractive
    apt-get update -y >/dev/null 2>&1
    apt-get install -y {q}
elif command -v yum >/dev/null 2>&1; then
    yum install -y {q}
elif command -v dnf >/dev/null 2>&1; then
    dnf install -y {q}
elif command -v zypper >/dev/null 2>&1; then
    zypper --non-interactive install -y {q}
else
    echo "no supported package manager found" >&2
    exit 1
fi
"""


def ensure_package(
    runner: CommandRunner,
    package: str,
    *,
    check_cmd: Optional[str] = None,
    force: bool = False,
) -> InstallResult:
    """
    Install a package unless `check_cmd` (default: `command -v <package>`)
    already succeeds. `runner` is expected to run commands as root.
    """
    package = (package or "").strip()
    if not package:
        raise PackageValidationError("package name is required")
    if check_cmd is not None and not check_cmd.strip():
        raise PackageValidationError("custom check command must not be empty")

    result = InstallResult(package=package)
    if not force:
        check = check_cmd or f"command -v {shell_quote(package)} >/dev/null 2>&1"
        rc, _, _ = runner.run(check)
        if rc == 0:
            log.debug("%s already present, skipping install", package)
            result.skipped = True
            return result

    log.info("installing %s", package)
    run_step(runner, "install", install_script(package))
    result.installed = True
    return result
