# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/config/loader.py

import logging
import os
import yaml
from pathlib import Path
from .models import HostPrepConfig

log = logging.getLogger("hostprep")


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Recursively merge *override* into *base* (mutates base).
    Only overwrites when the override value is non-empty.
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            _deep_merge(base[key], value)
        else:
            if value not in (None, ""):
                base[key] = value
    return base


def _find_secrets_file(config_path: Path) -> Path | None:
    """
    Locate secrets.yaml using this priority:

    1. HOSTPREP_SECRETS_FILE environment variable (explicit override)
    2. secrets.yaml in the same directory as the config
    """
    env = os.environ.get("HOSTPREP_SECRETS_FILE")
    if env:
        p = Path(env)
        if p.is_file():
            return p
        log.warning("HOSTPREP_SECRETS_FILE=%s does not exist, skipping", env)
        return None

    p = config_path.parent / "secrets.yaml"
    if p.is_file() and p.resolve() != config_path.resolve():
        return p

    return None


def _load_yaml(path: Path) -> dict:
    """Load a YAML file, expanding ${ENV_VAR} references."""
    raw = path.read_text()
    expanded = os.path.expandvars(raw)
    data = yaml.safe_load(expanded) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")
    return data


def load_config(path: str | Path) -> HostPrepConfig:
    """
    Load and validate a hostprep YAML config.

    Passwords can stay out of the main file in a ``secrets.yaml`` that
    mirrors its structure (``HOSTPREP_SECRETS_FILE`` or next to the config);
    it is deep-merged before validation. ``${ENV_VAR}`` placeholders in
    either file are expanded at load time.
    """
    path = Path(path)
    data = _load_yaml(path)

    secrets_path = _find_secrets_file(path)
    if secrets_path:
        log.debug("Merging secrets from %s", secrets_path)
        secrets = _load_yaml(secrets_path)
        _deep_merge(data, secrets)
    else:
        log.debug("No secrets.yaml found, proceeding without secrets merge")

    return HostPrepConfig.model_validate(data)
