"""Map authorization API failures to retry decisions."""

from __future__ import annotations

import re

from .models import Classification

ROLE_ASSIGNMENT_EXISTS = "RoleAssignmentExists"
PRINCIPAL_NOT_FOUND = "PrincipalNotFound"

_CODE_CLASSIFICATIONS = {
    ROLE_ASSIGNMENT_EXISTS: Classification.ALREADY_SATISFIED,
    PRINCIPAL_NOT_FOUND: Classification.RETRYABLE_NOT_FOUND,
    "AuthorizationFailed": Classification.FATAL,
    "LinkedAuthorizationFailed": Classification.FATAL,
    "Forbidden": Classification.FATAL,
}
_ERROR_CODE_PATTERN = re.compile(r"ERROR CODE:\s*([A-Za-z0-9_.]+)")
_FORBIDDEN_PATTERN = re.compile(
    r"^\s*(?:RESPONSE\s+)?403\b|\bstatus(?:[ _]code)?\W*403\b|\bforbidden\b",
    re.IGNORECASE | re.MULTILINE,
)


def extract_error_code(error: BaseException) -> str:
    """Return the machine-readable code carried by ``error``, or ``""``."""
    odata = getattr(error, "error", None)
    code = getattr(odata, "code", None)
    if isinstance(code, str) and code.strip():
        return code.strip()

    match = _ERROR_CODE_PATTERN.search(str(error))
    if match:
        return match.group(1)
    return ""


def _status_code(error: BaseException) -> int | None:
    status = getattr(error, "status_code", None)
    return status if isinstance(status, int) else None


def classify(error: BaseException) -> Classification:
    code = extract_error_code(error)
    if code in _CODE_CLASSIFICATIONS:
        return _CODE_CLASSIFICATIONS[code]

    text = str(error)
    for known_code, classification in _CODE_CLASSIFICATIONS.items():
        if known_code in text:
            return classification

    if _status_code(error) == 403 or _FORBIDDEN_PATTERN.search(text):
        return Classification.FATAL
    return Classification.FATAL_UNCLASSIFIED
