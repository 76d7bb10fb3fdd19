# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/steps/python_ensure.py

from __future__ import annotations

import logging
from typing import Callable, Optional

from hostprep.pipeline.errors import ValidationError
from hostprep.pipeline.models import StepMetadata
from hostprep.pipeline.store import Store, StoreKey
from hostprep.steps.sudo_ensure import ELEVATED_SESSION
from hostprep.utils.execution import ExecutionContext
from hostprep.utils.pkg_installer import InstallResult, ensure_package

log = logging.getLogger("hostprep")

STEP_ID = "python_ensure"
PACKAGE = "python3"
BINARY = "python3"

PYTHON_INSTALLED = StoreKey("python", "installed", bool)

Installer = Callable[..., InstallResult]


class PythonEnsureStep:
    def __init__(self, installer: Optional[Installer] = None):
        self._install = installer or ensure_package
        self._meta = StepMetadata(
            id=STEP_ID,
            title="Ensure Python 3",
            description="Install or verify python3 on the target system.",
            tags=("packages",),
        )

    def metadata(self) -> StepMetadata:
        return self._meta

    def run(self, store: Store, ctx: ExecutionContext) -> None:
        session = ELEVATED_SESSION.get(store)
        if session is None:
            raise ValidationError("sudo step must complete before ensuring python")

        ctx.raise_if_cancelled(STEP_ID)
        result = self._install(session, PACKAGE, check_cmd=f"command -v {BINARY} >/dev/null 2>&1")
        if result.skipped:
            log.info("[%s] %s already installed", STEP_ID, PACKAGE)
        else:
            log.info("[%s] installed %s", STEP_ID, PACKAGE)

        PYTHON_INSTALLED.set(store, True)
