"""Role assignment domain package."""

from .assigner import RoleAssigner, assign_role
from .classifier import classify, extract_error_code
from .client import RoleAssignmentsClient
from .models import (
    AssignmentOutcome,
    AssignmentRequest,
    AttemptRecord,
    Classification,
    Failure,
    FailureReason,
    PrincipalType,
    RoleAssignmentParameters,
    Success,
    role_definition_id,
)

__all__ = [
    "assign_role",
    "AssignmentOutcome",
    "AssignmentRequest",
    "AttemptRecord",
    "Classification",
    "classify",
    "extract_error_code",
    "Failure",
    "FailureReason",
    "PrincipalType",
    "role_definition_id",
    "RoleAssigner",
    "RoleAssignmentParameters",
    "RoleAssignmentsClient",
    "Success",
]
