"""Azure Resource Manager adapter for role assignment operations."""

from __future__ import annotations

import logging as py_logging
from collections.abc import Iterable
from typing import Any

from azure.identity import DefaultAzureCredential
from azure.mgmt.authorization import AuthorizationManagementClient
from azure.mgmt.authorization.models import RoleAssignment, RoleAssignmentCreateParameters

from .models import RoleAssignmentParameters

logger = py_logging.getLogger(__name__)


class AzureRoleAssignmentsClient:
    """Wrap ``AuthorizationManagementClient.role_assignments``.

    SDK exceptions (``HttpResponseError``) propagate untouched: their
    ``error.code`` is what the classifier reads.
    """

    def __init__(self, management_client: AuthorizationManagementClient) -> None:
        self._operations = management_client.role_assignments

    def create(
        self,
        scope: str,
        assignment_name: str,
        parameters: RoleAssignmentParameters,
    ) -> RoleAssignment:
        payload = RoleAssignmentCreateParameters(
            role_definition_id=parameters.role_definition_id,
            principal_id=parameters.principal_id,
            principal_type=parameters.principal_type.value,
        )
        logger.debug("PUT role assignment scope=%s name=%s", scope, assignment_name)
        return self._operations.create(scope, assignment_name, payload)

    def delete(self, scope: str, assignment_name: str) -> Any:
        return self._operations.delete(scope, assignment_name)

    def list_for_scope(self, scope: str) -> Iterable[RoleAssignment]:
        return self._operations.list_for_scope(scope)


def build_azure_client(
    subscription_id: str,
    *,
    credential: Any | None = None,
) -> AzureRoleAssignmentsClient:
    """Build the adapter, defaulting to the ``DefaultAzureCredential`` chain."""
    management_client = AuthorizationManagementClient(
        credential or DefaultAzureCredential(),
        subscription_id,
    )
    return AzureRoleAssignmentsClient(management_client)
