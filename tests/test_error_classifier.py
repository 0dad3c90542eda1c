from __future__ import annotations

import httpx
import pytest

from adapters.error_classifier import classify, is_business_conflict_message
from conftest import json_response
from core.domain.errors import ClassifiedError, ErrorKind, ResponseDecodeError


@pytest.mark.parametrize(
    ("status", "payload", "kind"),
    [
        (409, {"error": "You have already submitted a proposal for this project"}, ErrorKind.BUSINESS_CONFLICT),
        (400, {"error": "Project already exists"}, ErrorKind.BUSINESS_CONFLICT),
        (400, {"code": "23505", "message": "duplicate key value"}, ErrorKind.BUSINESS_CONFLICT),
        (401, {"error": "Invalid JWT"}, ErrorKind.AUTH_EXPIRED),
        (401, {"code": 401, "message": "Session not found"}, ErrorKind.AUTH_EXPIRED),
        (401, {"error": "Forbidden for this role"}, ErrorKind.HTTP_CLIENT),
        (401, {"error": "Missing authorization token"}, ErrorKind.HTTP_CLIENT),
        (401, {"message": "Token has expired"}, ErrorKind.AUTH_EXPIRED),
        (401, {"error": "Invalid token"}, ErrorKind.AUTH_EXPIRED),
        (404, {"error": "Project not found"}, ErrorKind.HTTP_CLIENT),
        (500, {"error": "Internal error"}, ErrorKind.HTTP_SERVER),
        (503, {}, ErrorKind.HTTP_SERVER),
    ],
)
def test_response_taxonomy(status: int, payload: dict, kind: ErrorKind) -> None:
    error = classify(json_response(status, payload))

    assert error.kind is kind
    assert error.http_status == status


def test_message_includes_details_and_type() -> None:
    error = classify(json_response(400, {"error": "Bad input", "details": "budget < 0", "type": "validation"}))

    assert error.message == "Bad input - budget < 0 (validation)"
    assert error.details == "budget < 0"


def test_unknown_4xx_body_shape_is_unknown() -> None:
    error = classify(json_response(400, {"unexpected": True}))

    assert error.kind is ErrorKind.UNKNOWN
    assert error.details == "unrecognized_error_body"


def test_empty_4xx_body_uses_generic_message() -> None:
    error = classify(httpx.Response(404))

    assert error.kind is ErrorKind.HTTP_CLIENT
    assert error.message == "HTTP 404: Not Found"


def test_html_5xx_mentions_page_title() -> None:
    html = b"<html><head><title>Gateway Timeout</title></head></html>"
    error = classify(httpx.Response(504, content=html))

    assert error.kind is ErrorKind.HTTP_SERVER
    assert "Gateway Timeout" in error.message


@pytest.mark.parametrize(
    ("exc", "kind"),
    [
        (TimeoutError("timed out"), ErrorKind.TIMEOUT),
        (httpx.ReadTimeout("slow"), ErrorKind.TIMEOUT),
        (httpx.ConnectError("refused"), ErrorKind.NETWORK),
        (ResponseDecodeError("Invalid JSON response from server", status_code=200), ErrorKind.UNKNOWN),
        (RuntimeError("weird"), ErrorKind.UNKNOWN),
    ],
)
def test_exception_taxonomy(exc: BaseException, kind: ErrorKind) -> None:
    assert classify(exc).kind is kind


def test_classified_error_passes_through() -> None:
    original = ClassifiedError(ErrorKind.AUTH_EXPIRED, "expired", http_status=401)

    assert classify(original) is original


def test_conflict_markers_are_case_insensitive() -> None:
    assert is_business_conflict_message("You have ALREADY SUBMITTED A PROPOSAL")
    assert not is_business_conflict_message("Project not found")


def test_transient_kinds() -> None:
    assert {k for k in ErrorKind if k.is_transient} == {ErrorKind.NETWORK, ErrorKind.TIMEOUT, ErrorKind.HTTP_SERVER}
