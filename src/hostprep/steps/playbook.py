# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/steps/playbook.py

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Sequence

from hostprep.pipeline.helpers import input_request, text_input
from hostprep.pipeline.models import InputDefinition, StepMetadata
from hostprep.pipeline.store import Store, StoreKey, get_input_str
from hostprep.steps import ssh_connect
from hostprep.steps.automation_user import KEYPAIR_INFO, USER_RESULT
from hostprep.utils.execution import ExecutionContext
from hostprep.utils.playbook import PlaybookRequest, run_playbook

log = logging.getLogger("hostprep")

DEFAULT_STEP_ID = "ansible_playbook"

INPUT_TARGET_HOST = "target_host"
INPUT_ANSIBLE_USER = "ansible_user"
INPUT_PRIVATE_KEY_PATH = "private_key_path"
INPUT_PLAYBOOK_PATH = "playbook_path"

PLAYBOOK_TARGET_HOST = StoreKey("playbook", "target_host", str)
PLAYBOOK_USER = StoreKey("playbook", "ansible_user", str)
PLAYBOOK_KEY_PATH = StoreKey("playbook", "key_path", str)
PLAYBOOK_PATH = StoreKey("playbook", "path", str)
PLAYBOOK_STATUS = StoreKey("playbook", "status", str)

PlaybookRunner = Callable[..., str]


def _inputs(include_playbook: bool) -> tuple[InputDefinition, ...]:
    inputs = [
        text_input(
            INPUT_TARGET_HOST,
            "Target Host",
            description="Hostname or IP of the target to run the playbook against.",
            required=True,
        ),
        text_input(
            INPUT_ANSIBLE_USER,
            "Ansible User",
            description="Remote user Ansible should connect as.",
            required=True,
        ),
        text_input(
            INPUT_PRIVATE_KEY_PATH,
            "Private Key Path",
            description="Path to the private key for the ansible user.",
            required=True,
        ),
    ]
    if include_playbook:
        inputs.append(
            text_input(
                INPUT_PLAYBOOK_PATH,
                "Playbook Path",
                description="Filesystem path to the Ansible playbook to execute.",
                required=True,
            )
        )
    return tuple(inputs)


class PlaybookStep:
    """
    Run an Ansible playbook against the prepared host.

    Target, user and key come from earlier steps when they ran; otherwise
    the operator is asked. The playbook path is asked for only when none
    was configured.
    """

    def __init__(
        self,
        playbook_path: Optional[str] = None,
        *,
        step_id: str = DEFAULT_STEP_ID,
        title: str = "",
        description: str = "",
        tags: Sequence[str] = (),
        extra_vars: Optional[Dict[str, Any]] = None,
        private_data_dir: Optional[str] = None,
        runner: Optional[PlaybookRunner] = None,
    ):
        self.playbook_path = (playbook_path or "").strip()
        self.extra_vars = dict(extra_vars or {})
        self.private_data_dir = private_data_dir
        self._run_playbook = runner or run_playbook

        description = description.strip()
        if not description:
            if self.playbook_path:
                description = f"Execute {self.playbook_path} against the target host."
            else:
                description = "Execute an Ansible playbook against the target host."

        self._meta = StepMetadata(
            id=step_id.strip() or DEFAULT_STEP_ID,
            title=title.strip() or "Run Ansible Playbook",
            description=description,
            inputs=_inputs(not self.playbook_path),
            tags=tuple(tags) or ("ansible", "playbook"),
        )

    def metadata(self) -> StepMetadata:
        return self._meta

    def run(self, store: Store, ctx: ExecutionContext) -> None:
        target = self._resolve_target(store)
        user = self._resolve_user(store)
        key_path = self._resolve_key_path(store)
        playbook_path = self._resolve_playbook_path(store)

        port = ssh_connect.DEFAULT_PORT
        raw_port = get_input_str(store, ssh_connect.STEP_ID, ssh_connect.INPUT_PORT)
        if raw_port is not None and raw_port.isdigit():
            port = int(raw_port)

        req = PlaybookRequest(
            user=user,
            target=target,
            playbook_path=playbook_path,
            private_key_path=key_path,
            port=port,
            extra_vars=self.extra_vars,
        )

        ctx.raise_if_cancelled(self._meta.id)
        status = self._run_playbook(req, private_data_dir=self.private_data_dir)

        PLAYBOOK_TARGET_HOST.set(store, target)
        PLAYBOOK_USER.set(store, user)
        PLAYBOOK_KEY_PATH.set(store, key_path)
        PLAYBOOK_PATH.set(store, playbook_path)
        PLAYBOOK_STATUS.set(store, status)

    def _own_input(self, store: Store, input_id: str) -> Optional[str]:
        return get_input_str(store, self._meta.id, input_id)

    def _resolve_target(self, store: Store) -> str:
        host = (ssh_connect.TARGET_HOST.get(store) or "").strip()
        if host:
            return host
        host = self._own_input(store, INPUT_TARGET_HOST)
        if host:
            return host
        raise input_request(self._meta, INPUT_TARGET_HOST, "target host is required to run the playbook")

    def _resolve_user(self, store: Store) -> str:
        result = USER_RESULT.get(store)
        if result is not None and result.username.strip():
            return result.username.strip()
        user = (ssh_connect.TARGET_USER.get(store) or "").strip()
        if user:
            return user
        user = self._own_input(store, INPUT_ANSIBLE_USER)
        if user:
            return user
        raise input_request(self._meta, INPUT_ANSIBLE_USER, "ansible user is required to run the playbook")

    def _resolve_key_path(self, store: Store) -> str:
        info = KEYPAIR_INFO.get(store)
        if info is not None and info.private_path.strip():
            return info.private_path.strip()
        key_path = self._own_input(store, INPUT_PRIVATE_KEY_PATH)
        if key_path:
            return key_path
        raise input_request(
            self._meta, INPUT_PRIVATE_KEY_PATH, "private key path is required for ansible SSH access"
        )

    def _resolve_playbook_path(self, store: Store) -> str:
        if self.playbook_path:
            return self.playbook_path
        path = self._own_input(store, INPUT_PLAYBOOK_PATH)
        if path:
            return path
        raise input_request(self._meta, INPUT_PLAYBOOK_PATH, "playbook path is required")
