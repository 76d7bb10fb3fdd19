# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/config/models.py

from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from hostprep.steps import automation_user, playbook, ssh_connect, sudo_ensure
from hostprep.utils.keypair import DEFAULT_BITS, MIN_BITS


class TargetConfig(BaseModel):
    host: Optional[str] = None
    port: int = Field(default=22, gt=0, le=65535)
    username: Optional[str] = None
    auth_method: Optional[Literal["password", "private_key"]] = None
    password: Optional[str] = None
    key_path: Optional[str] = None
    sudo_password: Optional[str] = None

    @model_validator(mode="after")
    def _infer_auth_method(self) -> "TargetConfig":
        if self.auth_method is None:
            if self.password:
                self.auth_method = "password"
            elif self.key_path:
                self.auth_method = "private_key"
        return self


class AutomationUserConfig(BaseModel):
    username: str = automation_user.DEFAULT_USERNAME
    key_path: Optional[str] = None
    key_bits: int = Field(default=DEFAULT_BITS, ge=MIN_BITS)


class PlaybookConfig(BaseModel):
    path: str
    extra_vars: Dict[str, Any] = Field(default_factory=dict)
    private_data_dir: Optional[str] = None


class LoggingConfig(BaseModel):
    dir: Optional[str] = None
    debug: bool = False
    events_file: Optional[str] = None


class HostPrepConfig(BaseModel):
    target: TargetConfig = Field(default_factory=TargetConfig)
    automation_user: AutomationUserConfig = Field(default_factory=AutomationUserConfig)
    playbook: Optional[PlaybookConfig] = None
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    non_interactive: bool = False
    max_input_requests: Optional[int] = Field(default=None, gt=0)
    # raw {step_id: {input_id: value}} answers, applied last
    answers: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    def seed_answers(self) -> Dict[str, Dict[str, Any]]:
        """Operator answers implied by this config, keyed by step id then input id."""
        out: Dict[str, Dict[str, Any]] = {}

        def put(step_id: str, input_id: str, value: Any) -> None:
            if value is None or value == "":
                return
            out.setdefault(step_id, {})[input_id] = value

        t = self.target
        put(ssh_connect.STEP_ID, ssh_connect.INPUT_HOST, t.host)
        put(ssh_connect.STEP_ID, ssh_connect.INPUT_PORT, str(t.port))
        put(ssh_connect.STEP_ID, ssh_connect.INPUT_USERNAME, t.username)
        put(ssh_connect.STEP_ID, ssh_connect.INPUT_AUTH_METHOD, t.auth_method)
        if t.auth_method == ssh_connect.AUTH_PASSWORD:
            put(ssh_connect.STEP_ID, ssh_connect.INPUT_PASSWORD, t.password)
        elif t.auth_method == ssh_connect.AUTH_PRIVATE_KEY:
            put(ssh_connect.STEP_ID, ssh_connect.INPUT_KEY_PATH, t.key_path)
        put(sudo_ensure.STEP_ID, sudo_ensure.INPUT_PASSWORD, t.sudo_password)

        put(automation_user.STEP_ID, automation_user.INPUT_KEY_PATH, self.automation_user.key_path)

        if self.playbook is not None:
            put(playbook.DEFAULT_STEP_ID, playbook.INPUT_PLAYBOOK_PATH, self.playbook.path)

        for step_id, values in self.answers.items():
            for input_id, value in values.items():
                put(step_id, input_id, value)
        return out
