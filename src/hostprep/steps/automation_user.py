# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/steps/automation_user.py

from __future__ import annotations

import logging
from typing import Callable, Optional

from hostprep.pipeline.errors import ValidationError
from hostprep.pipeline.helpers import input_request, text_input
from hostprep.pipeline.models import StepMetadata
from hostprep.pipeline.store import Store, StoreKey, get_input
from hostprep.steps.sudo_ensure import ELEVATED_SESSION
from hostprep.utils.execution import ExecutionContext
from hostprep.utils.keypair import DEFAULT_BITS, KeyPairInfo, ensure_keypair
from hostprep.utils.system_user import UserResult, ensure_user

log = logging.getLogger("hostprep")

STEP_ID = "ansible_user"
INPUT_KEY_PATH = "key_path"
DEFAULT_USERNAME = "ansible"

KEYPAIR_INFO = StoreKey("ansible", "keypair_info", KeyPairInfo)
USER_RESULT = StoreKey("ansible", "user_result", UserResult)

KeyPairEnsurer = Callable[..., KeyPairInfo]
UserEnsurer = Callable[..., UserResult]


class AutomationUserStep:
    """
    Provision the account configuration management logs in as.

    A local RSA key pair is created (or reused) at the operator-supplied
    path, then the remote user is created with that public key authorized,
    added to the sudo group and given a NOPASSWD sudoers drop-in.
    """

    def __init__(
        self,
        username: str = DEFAULT_USERNAME,
        *,
        key_bits: int = DEFAULT_BITS,
        keypair_ensurer: Optional[KeyPairEnsurer] = None,
        user_ensurer: Optional[UserEnsurer] = None,
    ):
        self.username = username
        self.key_bits = key_bits
        self._ensure_keypair = keypair_ensurer or ensure_keypair
        self._ensure_user = user_ensurer or ensure_user
        self._meta = StepMetadata(
            id=STEP_ID,
            title="Ensure Ansible User",
            description=f"Provision the {username} user with passwordless sudo and SSH access.",
            inputs=(
                text_input(
                    INPUT_KEY_PATH,
                    "Ansible SSH Key Path",
                    description="Local path for the ansible user's SSH private key (e.g., ~/.ssh/ansible_id).",
                    required=True,
                ),
            ),
            tags=("users", "ansible"),
        )

    def metadata(self) -> StepMetadata:
        return self._meta

    def run(self, store: Store, ctx: ExecutionContext) -> None:
        key_path = self._resolve_key_path(store)

        info = self._ensure_keypair(key_path, bits=self.key_bits)
        public_key = info.public_key()
        if not public_key:
            raise ValidationError("public key content empty")

        session = ELEVATED_SESSION.get(store)
        if session is None:
            raise ValidationError("sudo step must complete before creating ansible user")

        ctx.raise_if_cancelled(STEP_ID)
        result = self._ensure_user(
            session,
            self.username,
            public_key,
            sudo_access=True,
            passwordless_sudo=True,
        )
        log.info(
            "[%s] user %s ready (created=%s, key=%s)",
            STEP_ID,
            result.username,
            result.user_created,
            info.private_path,
        )

        KEYPAIR_INFO.set(store, info)
        USER_RESULT.set(store, result)

    def _resolve_key_path(self, store: Store) -> str:
        value, found = get_input(store, STEP_ID, INPUT_KEY_PATH)
        if not found:
            raise input_request(self._meta, INPUT_KEY_PATH, "key path required to create ansible SSH key pair")
        path = str(value).strip() if value is not None else ""
        if not path:
            raise input_request(self._meta, INPUT_KEY_PATH, "key path cannot be empty")
        return path
