# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/utils/ssh.py

from __future__ import annotations

import logging
import socket
from pathlib import Path
from typing import Callable, Optional

import paramiko

log = logging.getLogger("hostprep")

DEFAULT_PORT = 22
DEFAULT_CONNECT_TIMEOUT = 10.0


class SSHConnectionError(RuntimeError):
    pass


class InvalidTargetError(SSHConnectionError):
    def __init__(self, field: str):
        self.field = field
        super().__init__(f"invalid SSH target: {field} is required")


class CredentialError(SSHConnectionError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"invalid credential: {reason}")


class KeyLoadError(SSHConnectionError):
    def __init__(self, path: str, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"failed to load private key from {path}: {cause}")


class SSHAuthenticationError(SSHConnectionError):
    def __init__(self, username: str, cause: Exception):
        self.username = username
        self.cause = cause
        super().__init__(f"authentication failed for {username}: {cause}")


class DialError(SSHConnectionError):
    def __init__(self, addr: str, cause: Exception):
        self.addr = addr
        self.cause = cause
        super().__init__(f"failed to dial {addr}: {cause}")


class ConnectTimeoutError(SSHConnectionError):
    def __init__(self, addr: str, cause: Exception):
        self.addr = addr
        self.cause = cause
        super().__init__(f"timeout while connecting to {addr}: {cause}")


def load_private_key(path: str) -> paramiko.PKey:
    """Load a private key, trying the key types paramiko can parse."""
    key_path = Path(path).expanduser()
    if not key_path.is_file():
        raise KeyLoadError(str(key_path), FileNotFoundError(f"no such file: {key_path}"))

    last_err: Optional[Exception] = None
    for key_cls in (
        paramiko.RSAKey,
        paramiko.Ed25519Key,
        paramiko.ECDSAKey,
    ):
        try:
            return key_cls.from_private_key_file(str(key_path))
        except paramiko.SSHException as e:
            last_err = e
            continue
        except OSError as e:
            raise KeyLoadError(str(key_path), e) from e
    raise KeyLoadError(str(key_path), last_err or ValueError("unsupported key type"))


def open_ssh(
    host: str,
    username: str,
    *,
    port: int = DEFAULT_PORT,
    password: Optional[str] = None,
    key_path: Optional[str] = None,
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
    client_factory: Callable[[], paramiko.SSHClient] = paramiko.SSHClient,
) -> paramiko.SSHClient:
    """
    Open an authenticated SSH client using exactly one of password or key.

    Host keys are auto-accepted; the target is a freshly provisioned machine
    with no known_hosts entry yet.
    """
    host = (host or "").strip()
    username = (username or "").strip()
    if not host:
        raise InvalidTargetError("host")
    if not username:
        raise InvalidTargetError("username")

    has_password = bool((password or "").strip())
    has_key = bool((key_path or "").strip())
    if has_password and has_key:
        raise CredentialError("provide either password or key path, not both")
    if not has_password and not has_key:
        raise CredentialError("password or key path required")

    pkey = load_private_key(key_path) if has_key else None
    if port <= 0:
        port = DEFAULT_PORT
    addr = f"{host}:{port}"

    client = client_factory()
    client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

    log.debug("connecting to %s as %s (%s)", addr, username, "key" if pkey else "password")
    try:
        client.connect(
            hostname=host,
            port=port,
            username=username,
            password=password if not pkey else None,
            pkey=pkey,
            timeout=connect_timeout,
            allow_agent=False,
            look_for_keys=False,
        )
    except paramiko.AuthenticationException as e:
        client.close()
        raise SSHAuthenticationError(username, e) from e
    except socket.timeout as e:
        client.close()
        raise ConnectTimeoutError(addr, e) from e
    except (paramiko.SSHException, OSError) as e:
        client.close()
        raise DialError(addr, e) from e

    return client
