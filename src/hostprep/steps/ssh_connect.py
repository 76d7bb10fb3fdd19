# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/steps/ssh_connect.py

from __future__ import annotations

import logging
from typing import Callable, Optional

import paramiko

from hostprep.pipeline.helpers import input_request, require_input, secret_input, select_input, text_input
from hostprep.pipeline.models import InputOption, StepMetadata
from hostprep.pipeline.store import Store, StoreKey, get_input_str, input_key
from hostprep.utils.execution import ExecutionContext
from hostprep.utils.ssh import DEFAULT_PORT, SSHAuthenticationError, open_ssh

log = logging.getLogger("hostprep")

STEP_ID = "ssh_connection"

INPUT_HOST = "host"
INPUT_PORT = "port"
INPUT_USERNAME = "username"
INPUT_AUTH_METHOD = "auth_method"
INPUT_PASSWORD = "password"
INPUT_KEY_PATH = "key_path"

AUTH_PASSWORD = "password"
AUTH_PRIVATE_KEY = "private_key"

SSH_CLIENT = StoreKey("ssh", "client", paramiko.SSHClient)
SSH_PASSWORD = StoreKey("ssh", "password", str)
TARGET_HOST = StoreKey("ssh", "target_host", str)
TARGET_USER = StoreKey("ssh", "target_user", str)
AUTH_METHOD = StoreKey("ssh", "auth_method", str)

Connector = Callable[..., paramiko.SSHClient]

INPUTS = (
    text_input(INPUT_HOST, "Target Host", description="Hostname or IP of the remote system.", required=True),
    text_input(INPUT_PORT, "Port", description="SSH port (defaults to 22).", default=str(DEFAULT_PORT)),
    text_input(INPUT_USERNAME, "Username", description="Remote user for the SSH session.", required=True),
    select_input(
        INPUT_AUTH_METHOD,
        "Authentication Method",
        (
            InputOption(AUTH_PASSWORD, "Password"),
            InputOption(AUTH_PRIVATE_KEY, "Private Key"),
        ),
        description="Choose password or existing private key.",
        required=True,
    ),
    secret_input(INPUT_PASSWORD, "Password", description="Password for SSH authentication (if applicable)."),
    text_input(INPUT_KEY_PATH, "Private Key Path", description="Path to an existing private key."),
)


class SSHConnectStep:
    """Collect target details from the operator and open the SSH session every later step uses."""

    def __init__(self, connect: Optional[Connector] = None):
        self._connect = connect or open_ssh
        self._meta = StepMetadata(
            id=STEP_ID,
            title="SSH Connection",
            description="Collect target details and establish an SSH session.",
            inputs=INPUTS,
            tags=("ssh", "connect"),
        )

    def metadata(self) -> StepMetadata:
        return self._meta

    def run(self, store: Store, ctx: ExecutionContext) -> None:
        meta = self._meta
        host = require_input(store, meta, INPUT_HOST, "host is required")
        username = require_input(store, meta, INPUT_USERNAME, "username is required")

        port = DEFAULT_PORT
        raw_port = get_input_str(store, STEP_ID, INPUT_PORT)
        if raw_port is not None:
            try:
                port = int(raw_port)
            except ValueError:
                port = 0
            if port <= 0:
                raise input_request(meta, INPUT_PORT, "port must be a positive integer")

        method = require_input(store, meta, INPUT_AUTH_METHOD, "select an authentication method")
        password: Optional[str] = None
        key_path: Optional[str] = None
        if method == AUTH_PASSWORD:
            password = require_input(
                store, meta, INPUT_PASSWORD, "password is required for password authentication"
            )
        elif method == AUTH_PRIVATE_KEY:
            key_path = require_input(
                store, meta, INPUT_KEY_PATH, "key path is required for private key authentication"
            )
        else:
            raise input_request(meta, INPUT_AUTH_METHOD, "unsupported authentication method")

        ctx.raise_if_cancelled(STEP_ID)
        log.info("[%s] connecting to %s@%s:%d", STEP_ID, username, host, port)
        try:
            client = self._connect(host, username, port=port, password=password, key_path=key_path)
        except SSHAuthenticationError:
            if method != AUTH_PASSWORD:
                raise
            # stale password must not be replayed on the next attempt
            store.delete(input_key(STEP_ID, INPUT_PASSWORD))
            raise input_request(meta, INPUT_PASSWORD, "authentication failed; please re-enter the password")

        previous = SSH_CLIENT.get(store)
        if previous is not None and previous is not client:
            previous.close()

        SSH_CLIENT.set(store, client)
        if password is not None:
            SSH_PASSWORD.set(store, password)
        TARGET_HOST.set(store, host)
        TARGET_USER.set(store, username)
        AUTH_METHOD.set(store, method)
