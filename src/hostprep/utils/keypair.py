# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/utils/keypair.py

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

import paramiko

log = logging.getLogger("hostprep")

DEFAULT_BITS = 4096
MIN_BITS = 2048
DEFAULT_COMMENT = "hostprep"


class KeyPairError(RuntimeError):
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"key pair error at {path}: {reason}")


@dataclass
class KeyPairInfo:
    private_path: str
    public_path: str
    key_generated: bool = False
    public_created: bool = False

    def public_key(self) -> str:
        return Path(self.public_path).read_text().strip()


def ensure_keypair(
    private_path: str | Path,
    *,
    bits: int = DEFAULT_BITS,
    comment: str = DEFAULT_COMMENT,
) -> KeyPairInfo:
    """
    Make sure an RSA key pair exists at `private_path` / `private_path.pub`.

    An existing private key is reused; its public half is rewritten only
    when the `.pub` file is missing.
    """
    if not str(private_path).strip():
        raise ValueError("private key path is required")
    if bits < MIN_BITS:
        raise ValueError(f"bits must be >= {MIN_BITS}")
    comment = comment.strip()
    if not comment:
        raise ValueError("comment must not be empty")

    priv = Path(private_path).expanduser()
    pub = Path(str(priv) + ".pub")
    info = KeyPairInfo(private_path=str(priv), public_path=str(pub))

    if priv.exists():
        key = _read_private_key(priv)
        if not pub.exists():
            log.info("regenerating public key %s", pub)
            _write_public_key(pub, key, comment)
            info.public_created = True
        return info

    log.info("generating %d-bit RSA key pair at %s", bits, priv)
    try:
        key = paramiko.RSAKey.generate(bits)
    except Exception as e:
        raise KeyPairError(str(priv), f"key generation failed: {e}") from e

    priv.parent.mkdir(parents=True, exist_ok=True)
    try:
        key.write_private_key_file(str(priv))
        os.chmod(priv, 0o600)
    except OSError as e:
        raise KeyPairError(str(priv), f"write failed: {e}") from e

    _write_public_key(pub, key, comment)
    info.key_generated = True
    info.public_created = True
    return info


def public_key_line(key: paramiko.PKey, comment: str = "") -> str:
    line = f"{key.get_name()} {key.get_base64()}"
    return f"{line} {comment}" if comment else line


def _read_private_key(path: Path) -> paramiko.RSAKey:
    try:
        return paramiko.RSAKey.from_private_key_file(str(path))
    except paramiko.SSHException as e:
        raise KeyPairError(str(path), f"parse failed: {e}") from e
    except OSError as e:
        raise KeyPairError(str(path), f"read failed: {e}") from e


def _write_public_key(path: Path, key: paramiko.PKey, comment: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        path.write_text(public_key_line(key, comment) + "\n")
        os.chmod(path, 0o644)
    except OSError as e:
        raise KeyPairError(str(path), f"write failed: {e}") from e
