"""Deterministic error model and exit code contract."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    INVALID_ARGS = 2
    CONFIG_ERROR = 3
    RUNTIME_ERROR = 4
    PERMISSION_DENIED = 5
    PROPAGATION_TIMEOUT = 6
    CANCELLED = 7


@dataclass
class RoleGrantError(Exception):
    message: str
    code: ExitCode = ExitCode.RUNTIME_ERROR
    hint: str = ""

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} Hint: {self.hint}"
        return self.message


@dataclass
class RoleAssignmentError(RoleGrantError):
    """Terminal failure of a role assignment; the remote error is kept as ``__cause__``."""

    attempts: int = 0


class PermissionDeniedError(RoleAssignmentError):
    pass


class PropagationTimeoutError(RoleAssignmentError):
    pass


class AssignmentCancelledError(RoleAssignmentError):
    pass


class OperationCancelledError(Exception):
    """Default cancellation cause recorded by a cancellation token."""


class DeadlineExceededError(OperationCancelledError):
    """Cancellation cause used when a token's deadline elapses."""


def caused_by(error: BaseException, target: BaseException) -> bool:
    """Return True when ``target`` is ``error`` or appears in its ``__cause__`` chain."""
    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        if current is target:
            return True
        seen.add(id(current))
        current = current.__cause__
    return False


def user_facing_error(message: str, *, hint: str = "") -> str:
    if hint:
        return f"Error: {message}. Next step: {hint}"
    return f"Error: {message}."
