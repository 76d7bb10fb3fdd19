# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/steps/sudo_ensure.py

from __future__ import annotations

import logging
from typing import Callable, Optional

import paramiko

from hostprep.pipeline.errors import ValidationError
from hostprep.pipeline.helpers import input_request, secret_input
from hostprep.pipeline.models import StepMetadata
from hostprep.pipeline.store import Store, StoreKey, get_input, input_key
from hostprep.privilege.errors import AuthenticationRejectedError
from hostprep.privilege.resolver import ElevatedSession, resolve_elevation
from hostprep.steps.ssh_connect import SSH_CLIENT, SSH_PASSWORD
from hostprep.utils.commands import CommandRunner
from hostprep.utils.execution import ExecutionContext
from hostprep.utils.ssh_runner import SSHRunner

log = logging.getLogger("hostprep")

STEP_ID = "sudo_ensure"
INPUT_PASSWORD = "password"

ELEVATED_SESSION = StoreKey("sudo", "elevated_session", ElevatedSession)

Resolver = Callable[[CommandRunner, str], ElevatedSession]
RunnerFactory = Callable[[paramiko.SSHClient], CommandRunner]


class SudoEnsureStep:
    """
    Obtain root on the target (sudo, falling back to su) and publish the
    resulting ElevatedSession for later steps.

    The SSH password is tried first. A rejected password is discarded and
    the operator is asked for a new one.
    """

    def __init__(
        self,
        resolver: Optional[Resolver] = None,
        runner_factory: Optional[RunnerFactory] = None,
    ):
        self._resolve = resolver or resolve_elevation
        self._runner_factory = runner_factory or SSHRunner
        self._meta = StepMetadata(
            id=STEP_ID,
            title="Ensure Sudo",
            description="Validate sudo access and install sudo if required.",
            inputs=(
                secret_input(
                    INPUT_PASSWORD,
                    "Sudo Password",
                    description="Password used when elevating privileges (prompted only when required).",
                ),
            ),
            tags=("privilege",),
        )

    def metadata(self) -> StepMetadata:
        return self._meta

    def run(self, store: Store, ctx: ExecutionContext) -> None:
        client = SSH_CLIENT.get(store)
        if client is None:
            raise ValidationError("SSH connection step must complete before sudo step")

        password = self._resolve_password(store)
        ctx.raise_if_cancelled(STEP_ID)

        try:
            session = self._resolve(self._runner_factory(client), password)
        except AuthenticationRejectedError as e:
            log.warning("[%s] %s password rejected", STEP_ID, e.method)
            SSH_PASSWORD.clear(store)
            store.delete(input_key(STEP_ID, INPUT_PASSWORD))
            raise input_request(self._meta, INPUT_PASSWORD, "password rejected; please enter a new password")

        log.info("[%s] elevated via %s", STEP_ID, session.method.value)
        ELEVATED_SESSION.set(store, session)
        SSH_PASSWORD.set(store, password)

    def _resolve_password(self, store: Store) -> str:
        password = SSH_PASSWORD.get(store)
        if password:
            return password
        value, _ = get_input(store, STEP_ID, INPUT_PASSWORD)
        if isinstance(value, str) and value:
            return value
        raise input_request(self._meta, INPUT_PASSWORD, "sudo password required")
