"""Authorization client contract consumed by the role assigner."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Protocol

from .models import RoleAssignmentParameters


class RoleAssignmentsClient(Protocol):
    """Remote role assignment operations.

    ``create`` raises on any remote failure; the exception's code or text is
    what the classifier inspects. Only ``create`` is driven by the assigner.
    """

    def create(self, scope: str, assignment_name: str, parameters: RoleAssignmentParameters) -> Any:
        ...

    def delete(self, scope: str, assignment_name: str) -> Any:
        ...

    def list_for_scope(self, scope: str) -> Iterable[Any]:
        ...
