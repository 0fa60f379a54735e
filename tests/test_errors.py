import pytest

from willys.api.errors import (
    APIError,
    AuthenticationError,
    ErrorKind,
    NotFoundError,
    ValidationError,
    WillysError,
    is_api_error,
    is_authentication_error,
    is_not_found_error,
    is_validation_error,
)


def test_validation_error_message():
    err = ValidationError("postal_code", "cannot be empty")
    assert str(err) == "postal_code: cannot be empty"
    assert err.kind is ErrorKind.VALIDATION
    assert err.to_dict() == {"kind": "validation", "message": "postal_code: cannot be empty", "field": "postal_code"}


def test_api_error_message():
    err = APIError(404, "/axfood/rest/cart", "get cart failed")
    assert str(err) == "Not Found (404) at /axfood/rest/cart: get cart failed"


def test_api_error_without_response():
    cause = ConnectionError("refused")
    err = APIError(0, "/search", "request failed", cause)
    assert str(err) == "(0) at /search: request failed: refused"
    assert err.to_dict()["status_code"] == 0


def test_authentication_error_keeps_cause():
    cause = APIError(500, "/login", "login failed - maintenance")
    err = AuthenticationError("failed to re-authenticate", cause)
    assert err.cause is cause
    assert str(err).startswith("failed to re-authenticate: Internal Server Error (500)")


def test_not_found_message():
    assert str(NotFoundError("product", "999_ST")) == "product not found: 999_ST"
    assert str(NotFoundError("cart")) == "cart not found"


@pytest.mark.parametrize(
    "err,predicate",
    [
        (ValidationError("f", "m"), is_validation_error),
        (AuthenticationError("m"), is_authentication_error),
        (APIError(500, "/x", "m"), is_api_error),
        (NotFoundError("product", "1_ST"), is_not_found_error),
    ],
)
def test_predicates_are_exclusive(err, predicate):
    predicates = [is_validation_error, is_authentication_error, is_api_error, is_not_found_error]
    assert isinstance(err, WillysError)
    assert [p(err) for p in predicates] == [p is predicate for p in predicates]
