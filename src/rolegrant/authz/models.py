"""Role assignment domain models."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

_ROLE_DEFINITION_ID_TEMPLATE = (
    "/subscriptions/{subscription_id}/providers/Microsoft.Authorization/roleDefinitions/{role_id}"
)


class PrincipalType(str, Enum):
    SERVICE_PRINCIPAL = "ServicePrincipal"


class Classification(str, Enum):
    ALREADY_SATISFIED = "already_satisfied"
    RETRYABLE_NOT_FOUND = "retryable_not_found"
    FATAL = "fatal"
    FATAL_UNCLASSIFIED = "fatal_unclassified"


class FailureReason(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    UNCLASSIFIED = "unclassified"
    PROPAGATION_TIMEOUT = "propagation_timeout"
    CANCELLED = "cancelled"
    RETRIES_EXHAUSTED = "retries_exhausted"


def role_definition_id(role_id: str, subscription_id: str = "") -> str:
    """Expand a bare role GUID into its subscription-scoped resource id."""
    if role_id.startswith("/") or not subscription_id:
        return role_id
    return _ROLE_DEFINITION_ID_TEMPLATE.format(subscription_id=subscription_id, role_id=role_id)


@dataclass(frozen=True)
class RoleAssignmentParameters:
    role_definition_id: str
    principal_id: str
    principal_type: PrincipalType = PrincipalType.SERVICE_PRINCIPAL


@dataclass(frozen=True)
class AssignmentRequest:
    principal_id: str
    role_id: str
    scope: str
    display_name: str
    assignment_name: str = field(default_factory=lambda: str(uuid.uuid4()))

    def parameters(self, subscription_id: str = "") -> RoleAssignmentParameters:
        return RoleAssignmentParameters(
            role_definition_id=role_definition_id(self.role_id, subscription_id),
            principal_id=self.principal_id,
        )


@dataclass(frozen=True)
class AttemptRecord:
    attempt: int
    timestamp: datetime
    classification: Classification | None = None


@dataclass(frozen=True)
class Success:
    attempts: int
    history: tuple[AttemptRecord, ...] = ()

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    reason: FailureReason
    error: Exception
    attempts: int
    history: tuple[AttemptRecord, ...] = ()

    @property
    def ok(self) -> bool:
        return False


AssignmentOutcome = Success | Failure
