"""Drive a role assignment to completion across identity propagation delay."""

from __future__ import annotations

import logging as py_logging
from collections.abc import Callable
from datetime import datetime, timezone

from rolegrant.errors import (
    AssignmentCancelledError,
    ExitCode,
    OperationCancelledError,
    PermissionDeniedError,
    PropagationTimeoutError,
    RoleAssignmentError,
)
from rolegrant.retry import CancellationToken, RetryPolicy, cancellable_sleep

from .classifier import classify
from .client import RoleAssignmentsClient
from .models import (
    AssignmentOutcome,
    AssignmentRequest,
    AttemptRecord,
    Classification,
    Failure,
    FailureReason,
    Success,
)

logger = py_logging.getLogger(__name__)

Sleeper = Callable[[float, CancellationToken], bool]
Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _failure(
    reason: FailureReason,
    error: RoleAssignmentError,
    cause: BaseException | None,
    history: list[AttemptRecord],
) -> Failure:
    if cause is not None:
        error.__cause__ = cause
    return Failure(reason=reason, error=error, attempts=error.attempts, history=tuple(history))


class RoleAssigner:
    """Create role assignments, retrying while the principal is not yet visible.

    The assigner keeps no per-call state, so one instance may serve
    concurrent callers as long as the client allows it.
    """

    def __init__(
        self,
        client: RoleAssignmentsClient,
        *,
        policy: RetryPolicy | None = None,
        subscription_id: str = "",
        sleep: Sleeper = cancellable_sleep,
        clock: Clock = _utcnow,
    ) -> None:
        self._client = client
        self._policy = policy or RetryPolicy()
        self._subscription_id = subscription_id
        self._sleep = sleep
        self._clock = clock

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    def assign_role(
        self,
        principal_id: str,
        role_id: str,
        scope: str,
        display_name: str,
        *,
        token: CancellationToken | None = None,
    ) -> None:
        request = AssignmentRequest(
            principal_id=principal_id,
            role_id=role_id,
            scope=scope,
            display_name=display_name,
        )
        outcome = self.run(request, token=token)
        if isinstance(outcome, Failure):
            raise outcome.error

    def run(
        self,
        request: AssignmentRequest,
        *,
        token: CancellationToken | None = None,
    ) -> AssignmentOutcome:
        cancel = token or CancellationToken()
        parameters = request.parameters(self._subscription_id)
        history: list[AttemptRecord] = []
        max_attempts = self._policy.max_attempts

        logger.info(
            "Assigning role %s to principal %s on scope %s",
            request.display_name,
            request.principal_id,
            request.scope,
        )
        for attempt in range(1, max_attempts + 1):
            if cancel.cancelled:
                return self._cancelled(request, cancel, attempt - 1, history)

            logger.debug(
                "Role assignment attempt %s/%s name=%s role=%s",
                attempt,
                max_attempts,
                request.assignment_name,
                parameters.role_definition_id,
            )
            try:
                self._client.create(request.scope, request.assignment_name, parameters)
            except Exception as exc:
                verdict = classify(exc)
                history.append(AttemptRecord(attempt, self._clock(), verdict))
                outcome = self._decide(request, verdict, exc, attempt, history)
                if outcome is not None:
                    return outcome
            else:
                history.append(AttemptRecord(attempt, self._clock()))
                logger.info("Assigned role %s after %s attempt(s)", request.display_name, attempt)
                return Success(attempts=attempt, history=tuple(history))

            delay = self._policy.delay_before(attempt + 1)
            logger.warning(
                "Principal %s not found yet (attempt %s/%s), retrying in %.0fs",
                request.principal_id,
                attempt,
                max_attempts,
                delay,
            )
            if not self._sleep(delay, cancel):
                return self._cancelled(request, cancel, attempt, history)

        error = RoleAssignmentError(
            f"failed to assign role {request.display_name}: retries exhausted",
            attempts=max_attempts,
        )
        return _failure(FailureReason.RETRIES_EXHAUSTED, error, None, history)

    def _decide(
        self,
        request: AssignmentRequest,
        verdict: Classification,
        cause: Exception,
        attempt: int,
        history: list[AttemptRecord],
    ) -> AssignmentOutcome | None:
        """Terminal outcome for a failed attempt, or None to retry."""
        name = request.display_name
        if verdict is Classification.ALREADY_SATISFIED:
            logger.info("Role %s is already assigned to principal %s", name, request.principal_id)
            return Success(attempts=attempt, history=tuple(history))

        if verdict is Classification.FATAL:
            logger.error("Role assignment %s denied: %s", name, cause)
            denied = PermissionDeniedError(
                f"failed to assign role {name}: permission denied: {cause}",
                code=ExitCode.PERMISSION_DENIED,
                hint="Grant the caller rights to create role assignments on the scope and rerun.",
                attempts=attempt,
            )
            return _failure(FailureReason.PERMISSION_DENIED, denied, cause, history)

        if verdict is Classification.FATAL_UNCLASSIFIED:
            logger.error("Role assignment %s failed: %s", name, cause)
            failed = RoleAssignmentError(f"failed to assign role {name}: {cause}", attempts=attempt)
            return _failure(FailureReason.UNCLASSIFIED, failed, cause, history)

        if attempt < self._policy.max_attempts:
            return None

        logger.error("Principal %s still not found after %s attempts", request.principal_id, attempt)
        timed_out = PropagationTimeoutError(
            f"failed to assign role {name} after {attempt} attempts: "
            f"principal {request.principal_id} is not yet visible to the authorization service, "
            f"likely due to identity propagation (Azure AD replication delay): {cause}",
            code=ExitCode.PROPAGATION_TIMEOUT,
            hint="The assignment was already retried; wait a few minutes and rerun.",
            attempts=attempt,
        )
        return _failure(FailureReason.PROPAGATION_TIMEOUT, timed_out, cause, history)

    def _cancelled(
        self,
        request: AssignmentRequest,
        token: CancellationToken,
        attempts: int,
        history: list[AttemptRecord],
    ) -> Failure:
        cause = token.cause
        if cause is None:
            # Sleeper stopped early without the token firing.
            cause = OperationCancelledError("backoff wait interrupted")
        logger.warning(
            "Role assignment %s cancelled after %s attempt(s)",
            request.display_name,
            attempts,
        )
        error = AssignmentCancelledError(
            f"role assignment {request.display_name} cancelled: {cause}",
            code=ExitCode.CANCELLED,
            attempts=attempts,
        )
        return _failure(FailureReason.CANCELLED, error, cause, history)


def assign_role(
    client: RoleAssignmentsClient,
    principal_id: str,
    role_id: str,
    scope: str,
    display_name: str,
    *,
    token: CancellationToken | None = None,
    policy: RetryPolicy | None = None,
    subscription_id: str = "",
) -> None:
    RoleAssigner(client, policy=policy, subscription_id=subscription_id).assign_role(
        principal_id,
        role_id,
        scope,
        display_name,
        token=token,
    )
