# src/hostprep/observers/redacting.py
from __future__ import annotations

import dataclasses

from hostprep.logging.redaction import SecretRedactor

from .events import BaseEvent
from .interface import Observer


class RedactingObserver:
    """Wraps another observer and masks tracked secrets in every string field of an event."""

    def __init__(self, inner: Observer, redactor: SecretRedactor):
        self.inner = inner
        self.redactor = redactor

    def notify(self, event: BaseEvent) -> None:
        changes = {}
        for f in dataclasses.fields(event):
            value = getattr(event, f.name)
            if isinstance(value, str):
                changes[f.name] = self.redactor.redact(value)
        self.inner.notify(dataclasses.replace(event, **changes) if changes else event)
