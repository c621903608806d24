from __future__ import annotations

import pytest
from azure.core.exceptions import HttpResponseError

from rolegrant.authz.classifier import classify, extract_error_code
from rolegrant.authz.models import Classification


class _OData:
    def __init__(self, code: str) -> None:
        self.code = code


class SdkLikeError(Exception):
    def __init__(self, code: str, message: str = "", status_code: int | None = None) -> None:
        super().__init__(message)
        self.error = _OData(code)
        self.status_code = status_code


def _response_error(code: str, message: str = "") -> Exception:
    return RuntimeError(f"RESPONSE 400: 400 Bad Request\nERROR CODE: {code}\n{message}")


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (_response_error("RoleAssignmentExists", "already exists"), Classification.ALREADY_SATISFIED),
        (_response_error("PrincipalNotFound", "Principal does not exist"), Classification.RETRYABLE_NOT_FOUND),
        (_response_error("AuthorizationFailed", "no access"), Classification.FATAL),
        (RuntimeError("403 Forbidden: insufficient permissions"), Classification.FATAL),
        (RuntimeError("request was forbidden by policy"), Classification.FATAL),
        (RuntimeError("some other Azure error"), Classification.FATAL_UNCLASSIFIED),
        (_response_error("InvalidRoleDefinitionId", "bad role"), Classification.FATAL_UNCLASSIFIED),
    ],
)
def test_classify_maps_remote_failures(error: Exception, expected: Classification) -> None:
    assert classify(error) is expected


def test_extract_error_code_prefers_sdk_error_object() -> None:
    error = SdkLikeError("PrincipalNotFound", "ERROR CODE: SomethingElse")
    assert extract_error_code(error) == "PrincipalNotFound"
    assert classify(error) is Classification.RETRYABLE_NOT_FOUND


def test_extract_error_code_reads_text_token() -> None:
    assert extract_error_code(_response_error("RoleAssignmentExists")) == "RoleAssignmentExists"


def test_extract_error_code_empty_without_code() -> None:
    assert extract_error_code(RuntimeError("boom")) == ""


def test_bare_code_in_message_is_matched() -> None:
    error = RuntimeError("The role assignment already exists. (RoleAssignmentExists)")
    assert classify(error) is Classification.ALREADY_SATISFIED


def test_status_403_without_code_is_fatal() -> None:
    error = SdkLikeError("", "denied", status_code=403)
    assert classify(error) is Classification.FATAL


def test_digit_run_containing_403_is_not_forbidden() -> None:
    assert classify(RuntimeError("correlation id 14035")) is Classification.FATAL_UNCLASSIFIED


def test_classify_does_not_modify_error() -> None:
    error = _response_error("PrincipalNotFound")
    before = str(error)

    classify(error)

    assert str(error) == before
    assert error.__cause__ is None


def test_http_response_error_code_is_classified() -> None:
    error = HttpResponseError(message="Principal abc does not exist in the directory")
    error.error = _OData("PrincipalNotFound")

    assert extract_error_code(error) == "PrincipalNotFound"
    assert classify(error) is Classification.RETRYABLE_NOT_FOUND


@pytest.mark.parametrize(
    "message",
    [
        "RESPONSE 403: 403 Forbidden\nAccess denied",
        "RESPONSE 403: Access denied",
        "Operation returned an invalid status code: 403",
        "request failed with status_code=403",
    ],
)
def test_403_with_status_context_is_fatal(message: str) -> None:
    assert classify(RuntimeError(message)) is Classification.FATAL


@pytest.mark.parametrize(
    "message",
    [
        "retry 403 times before giving up",
        "quota exceeded on resource group rg-403",
        "RESPONSE 400: Bad Request\ninvalid value 403 for property count",
    ],
)
def test_403_without_status_context_is_unclassified(message: str) -> None:
    assert classify(RuntimeError(message)) is Classification.FATAL_UNCLASSIFIED
