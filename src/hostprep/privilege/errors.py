# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/privilege/errors.py

from __future__ import annotations

from typing import Optional


class ElevationError(RuntimeError):
    """Base class for failures while obtaining superuser rights on the target."""


class PasswordMissingError(ElevationError):
    def __init__(self) -> None:
        super().__init__("password must not be empty")


class AuthenticationRejectedError(ElevationError):
    def __init__(self, method: str, stderr: str = ""):
        self.method = method
        self.stderr = stderr
        super().__init__(f"{method} authentication failed: {stderr.strip() or 'password rejected'}")


class PermissionDeniedError(ElevationError):
    """The account may not use sudo and su is not available either."""

    def __init__(self, stderr: str):
        self.stderr = stderr
        super().__init__(f"sudo permission denied: {stderr.strip()}")


class FallbackUnavailableError(ElevationError):
    def __init__(self, rc: int, stderr: str):
        self.rc = rc
        self.stderr = stderr
        super().__init__(f"su unavailable (rc={rc}): {stderr.strip()}")


class ToolUnrecoverableError(ElevationError):
    """sudo is missing and could not be installed."""

    def __init__(self, method: str, rc: int, stderr: str):
        self.method = method
        self.rc = rc
        self.stderr = stderr
        super().__init__(f"failed to ensure sudo via {method} (rc={rc}): {stderr.strip()}")


class UnclassifiedElevationError(ElevationError):
    def __init__(self, rc: int, stderr: str, stdout: Optional[str] = None):
        self.rc = rc
        self.stderr = stderr
        self.stdout = stdout
        super().__init__(f"sudo failed (rc={rc}): {stderr.strip()}")
