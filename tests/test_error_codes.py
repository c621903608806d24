from __future__ import annotations

from rolegrant.errors import (
    ExitCode,
    PermissionDeniedError,
    PropagationTimeoutError,
    RoleAssignmentError,
    RoleGrantError,
    caused_by,
    user_facing_error,
)
from rolegrant.logging import LOG_LEVELS, configure_logging


def test_exit_codes_are_deterministic() -> None:
    assert int(ExitCode.SUCCESS) == 0
    assert int(ExitCode.INVALID_ARGS) == 2
    assert int(ExitCode.PERMISSION_DENIED) == 5
    assert int(ExitCode.PROPAGATION_TIMEOUT) == 6
    assert int(ExitCode.CANCELLED) == 7


def test_role_grant_error_string_contains_hint() -> None:
    err = RoleGrantError("subscription missing", code=ExitCode.CONFIG_ERROR, hint="Set it")
    assert "Set it" in str(err)


def test_assignment_errors_carry_attempts() -> None:
    err = PropagationTimeoutError("timed out", code=ExitCode.PROPAGATION_TIMEOUT, attempts=5)

    assert isinstance(err, RoleAssignmentError)
    assert isinstance(err, RoleGrantError)
    assert err.attempts == 5
    assert str(err) == "timed out"


def test_caused_by_walks_cause_chain_by_identity() -> None:
    root = RuntimeError("root")
    middle = ValueError("middle")
    middle.__cause__ = root
    top = PermissionDeniedError("top")
    top.__cause__ = middle

    assert caused_by(top, root)
    assert caused_by(top, top)
    assert not caused_by(top, RuntimeError("root"))


def test_caused_by_stops_on_cycles() -> None:
    first = RuntimeError("first")
    second = RuntimeError("second")
    first.__cause__ = second
    second.__cause__ = first

    assert not caused_by(first, KeyError("missing"))


def test_user_facing_error_template() -> None:
    text = user_facing_error("Permission denied", hint="Grant access")
    assert text.startswith("Error:")
    assert "Next step" in text


def test_logging_levels() -> None:
    logger = configure_logging("WARN")
    assert logger.level == LOG_LEVELS["WARN"]
