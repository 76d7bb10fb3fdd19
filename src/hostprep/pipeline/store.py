# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/pipeline/store.py

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Dict, Generic, Mapping, Optional, Tuple, Type, TypeVar

T = TypeVar("T")

_MISSING = object()


def input_key(step_id: str, input_id: str) -> str:
    return f"step:{step_id}:input:{input_id}"


class Store:
    """
    Shared key/value state handed to every step of a run.

    Keys are namespaced by convention: "<domain>:<name>" for artifacts
    (e.g. "ssh:client") and "step:<step>:input:<input>" for operator answers.
    Last write wins. The lock only guards dict access; callers must not do
    I/O while holding it.
    """

    def __init__(self, initial: Optional[Mapping[str, Any]] = None):
        self._lock = threading.RLock()
        self._data: Dict[str, Any] = dict(initial or {})

    @classmethod
    def from_answers(cls, answers: Mapping[str, Mapping[str, Any]]) -> "Store":
        """Build a store with previously submitted operator answers replayed."""
        store = cls()
        for step_id, values in answers.items():
            for input_id, value in values.items():
                store.set(input_key(step_id, input_id), value)
        return store

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    def lookup(self, key: str) -> Tuple[Any, bool]:
        with self._lock:
            value = self._data.get(key, _MISSING)
        if value is _MISSING:
            return None, False
        return value, True

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self._data)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


@dataclass(frozen=True)
class StoreKey(Generic[T]):
    """
    Typed handle for a store entry.

    `get` returns None when the key is absent or holds a value of another
    type, so a consumer never crashes on a producer's mistake.
    """

    namespace: str
    name: str
    value_type: Type[T]

    @property
    def key(self) -> str:
        return f"{self.namespace}:{self.name}"

    def __str__(self) -> str:
        return self.key

    def get(self, store: Store) -> Optional[T]:
        value = store.get(self.key)
        if isinstance(value, self.value_type):
            return value
        return None

    def set(self, store: Store, value: T) -> None:
        store.set(self.key, value)

    def clear(self, store: Store) -> None:
        store.delete(self.key)


def set_input(store: Store, step_id: str, input_id: str, value: Any) -> None:
    store.set(input_key(step_id, input_id), value)


def get_input(store: Store, step_id: str, input_id: str) -> Tuple[Any, bool]:
    return store.lookup(input_key(step_id, input_id))


def get_input_str(store: Store, step_id: str, input_id: str) -> Optional[str]:
    """Operator answer as a stripped string, or None when absent or blank."""
    value, found = get_input(store, step_id, input_id)
    if not found or value is None:
        return None
    text = str(value).strip()
    return text or None
