# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/utils/system_user.py

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass
from typing import Optional

from hostprep.utils.commands import CommandRunner, run_step, shell_quote

log = logging.getLogger("hostprep")


class UserValidationError(ValueError):
    pass


@dataclass
class UserResult:
    username: str
    home_dir: str
    user_created: bool = False
    authorized_key_updated: bool = False
    added_to_sudo: bool = False
    passwordless_configured: bool = False


def ensure_user(
    runner: CommandRunner,
    username: str,
    public_key: str,
    *,
    shell: str = "/bin/bash",
    home_dir: Optional[str] = None,
    sudo_access: bool = False,
    passwordless_sudo: bool = False,
    sudo_group: str = "sudo",
    sudoers_dir: str = "/etc/sudoers.d",
) -> UserResult:
    """
    Ensure a login user exists on the target with `public_key` authorized.

    Every command runs through `runner`, which must already be privileged.
    Passwordless sudo implies sudo group membership.
    """
    username = (username or "").strip()
    if not username:
        raise UserValidationError("username is required")
    if " " in username:
        raise UserValidationError("username must not contain spaces")
    public_key = (public_key or "").strip()
    if not public_key:
        raise UserValidationError("public key is required")
    for name, value in (("shell", shell), ("sudo group", sudo_group), ("sudoers dir", sudoers_dir)):
        if not (value or "").strip():
            raise UserValidationError(f"{name} must not be empty")

    if passwordless_sudo:
        sudo_access = True
    home_dir = home_dir or posixpath.join("/home", username)

    result = UserResult(username=username, home_dir=home_dir)

    if not _user_exists(runner, username):
        log.info("creating user %s", username)
        run_step(
            runner,
            "useradd",
            f"useradd -m -d {shell_quote(home_dir)} -s {shell_quote(shell)} {shell_quote(username)}",
        )
        result.user_created = True

    _ensure_authorized_key(runner, username, home_dir, public_key)
    result.authorized_key_updated = True

    if sudo_access:
        run_step(runner, "add-to-sudo", f"usermod -aG {shell_quote(sudo_group)} {shell_quote(username)}")
        result.added_to_sudo = True

    if passwordless_sudo:
        _configure_passwordless_sudo(runner, username, sudoers_dir)
        result.passwordless_configured = True

    return result


def _user_exists(runner: CommandRunner, username: str) -> bool:
    rc, _, _ = runner.run(f"id -u {shell_quote(username)} >/dev/null 2>&1")
    return rc == 0


def _ensure_authorized_key(runner: CommandRunner, username: str, home_dir: str, public_key: str) -> None:
    ssh_dir = posixpath.join(home_dir, ".ssh")
    auth_path = posixpath.join(ssh_dir, "authorized_keys")
    user = shell_quote(username)
    script = f"""
set -euo pipefail
install -o {user} -g {user} -m 700 -d {shell_quote(ssh_dir)}
cat <<'EOF' > {shell_quote(auth_path)}
{public_key}
EOF
chown {user}:{user} {shell_quote(auth_path)}
chmod 600 {shell_quote(auth_path)}
"""
    run_step(runner, "authorized_keys", script)


def _configure_passwordless_sudo(runner: CommandRunner, username: str, sudoers_dir: str) -> None:
    drop_in = posixpath.join(sudoers_dir, username)
    script = f"""
set -euo pipefail
install -o root -g root -m 755 -d {shell_quote(sudoers_dir)}
cat <<'EOF' > {shell_quote(drop_in)}
{username} ALL=(ALL) NOPASSWD:ALL
EOF
chmod 440 {shell_quote(drop_in)}
"""
    run_step(runner, "passwordless-sudo", script)
