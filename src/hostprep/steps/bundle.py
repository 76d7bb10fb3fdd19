# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/steps/bundle.py

from __future__ import annotations

from typing import List, Optional

from hostprep.pipeline.helpers import StepListBuilder
from hostprep.pipeline.interface import Step
from hostprep.steps.automation_user import DEFAULT_USERNAME, AutomationUserStep
from hostprep.steps.playbook import PlaybookStep
from hostprep.steps.python_ensure import PythonEnsureStep
from hostprep.steps.ssh_connect import SSHConnectStep
from hostprep.steps.sudo_ensure import SudoEnsureStep
from hostprep.utils.keypair import DEFAULT_BITS


def ansible_prep_bundle(
    *,
    automation_user: str = DEFAULT_USERNAME,
    key_bits: int = DEFAULT_BITS,
    playbook: Optional[PlaybookStep] = None,
) -> List[Step]:
    """Standard host preparation: connect, elevate, python3, automation user, then an optional playbook."""
    return (
        StepListBuilder()
        .add(SSHConnectStep())
        .add(SudoEnsureStep())
        .add(PythonEnsureStep())
        .add(AutomationUserStep(automation_user, key_bits=key_bits))
        .add(playbook)
        .build()
    )
