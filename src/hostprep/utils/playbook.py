# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/utils/playbook.py

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import ansible_runner

log = logging.getLogger("hostprep")

BECOME_METHOD = "sudo"
BECOME_USER = "root"


class PlaybookValidationError(ValueError):
    def __init__(self, field_name: str):
        self.field = field_name
        super().__init__(f"playbook: {field_name} is required")


class PlaybookError(RuntimeError):
    def __init__(self, playbook: str, status: str, rc: Optional[int]):
        self.playbook = playbook
        self.status = status
        self.rc = rc
        super().__init__(f"playbook {playbook} failed: {status} (rc={rc})")


@dataclass
class PlaybookRequest:
    user: str
    target: str
    playbook_path: str
    private_key_path: str
    port: int = 22
    extra_vars: Dict[str, Any] = field(default_factory=dict)
    env: Dict[str, str] = field(default_factory=dict)

    def normalized(self) -> "PlaybookRequest":
        user = (self.user or "").strip()
        target = (self.target or "").strip().rstrip(",")
        playbook_path = (self.playbook_path or "").strip()
        key_path = (self.private_key_path or "").strip()
        if not user:
            raise PlaybookValidationError("user")
        if not target:
            raise PlaybookValidationError("target")
        if not playbook_path:
            raise PlaybookValidationError("playbook path")
        if not key_path:
            raise PlaybookValidationError("private key path")
        return PlaybookRequest(
            user=user,
            target=target,
            playbook_path=str(Path(playbook_path).expanduser()),
            private_key_path=str(Path(key_path).expanduser()),
            port=self.port,
            extra_vars=dict(self.extra_vars),
            env=dict(self.env),
        )


def inline_inventory(req: PlaybookRequest) -> Dict[str, Any]:
    """Single-host inventory carrying the connection settings for `req.target`."""
    return {
        "all": {
            "hosts": {
                req.target: {
                    "ansible_port": req.port,
                    "ansible_user": req.user,
                    "ansible_ssh_private_key_file": req.private_key_path,
                    "ansible_become": True,
                    "ansible_become_method": BECOME_METHOD,
                    "ansible_become_user": BECOME_USER,
                }
            }
        }
    }


def build_run_kwargs(req: PlaybookRequest, *, private_data_dir: Optional[str] = None) -> Dict[str, Any]:
    req = req.normalized()
    env = os.environ.copy()
    env["ANSIBLE_HOST_KEY_CHECKING"] = "False"
    env.update(req.env)
    return {
        "private_data_dir": private_data_dir or tempfile.mkdtemp(prefix="hostprep-ansible-"),
        "playbook": req.playbook_path,
        "inventory": inline_inventory(req),
        "limit": req.target,
        "extravars": req.extra_vars,
        "envvars": env,
        "quiet": True,
    }


def run_playbook(
    req: PlaybookRequest,
    *,
    private_data_dir: Optional[str] = None,
    runner_fn: Callable[..., Any] = ansible_runner.run,
) -> str:
    """Run the playbook through ansible-runner and return its final status."""
    kwargs = build_run_kwargs(req, private_data_dir=private_data_dir)
    log.info("running playbook %s against %s", kwargs["playbook"], kwargs["limit"])

    r = runner_fn(**kwargs)

    if r.rc != 0:
        raise PlaybookError(kwargs["playbook"], r.status, r.rc)
    log.info("playbook %s finished: %s", kwargs["playbook"], r.status)
    return r.status
