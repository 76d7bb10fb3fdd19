# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/logging/redaction.py

from __future__ import annotations

import logging
import threading
from typing import Iterable, Set

MASK = "******"


class SecretRedactor:
    """
    Remembers secret values submitted during a run and masks them in text.

    Longer secrets are replaced first so a secret containing another one is
    masked whole.
    """

    def __init__(self, secrets: Iterable[str] = ()):
        self._lock = threading.Lock()
        self._secrets: Set[str] = set()
        for s in secrets:
            self.track(s)

    def track(self, value: object) -> None:
        if not isinstance(value, str) or not value:
            return
        with self._lock:
            self._secrets.add(value)

    def __len__(self) -> int:
        with self._lock:
            return len(self._secrets)

    def redact(self, text: str) -> str:
        if not text:
            return text
        with self._lock:
            secrets = sorted(self._secrets, key=len, reverse=True)
        for s in secrets:
            text = text.replace(s, MASK)
        return text


class RedactingFilter(logging.Filter):
    """Logging filter that masks tracked secrets in the rendered message."""

    def __init__(self, redactor: SecretRedactor):
        super().__init__()
        self.redactor = redactor

    def filter(self, record: logging.LogRecord) -> bool:
        if len(self.redactor):
            record.msg = self.redactor.redact(record.getMessage())
            record.args = None
        return True
