import pytest

from rebound import ApiError, AuthorizationError, TokenExpiredError


def test_hierarchy():
    assert issubclass(AuthorizationError, ApiError)
    assert issubclass(TokenExpiredError, AuthorizationError)


def test_message_and_status():
    err = ApiError("Not found", status_code=404)
    assert str(err) == "Not found"
    assert err.message == "Not found"
    assert err.status_code == 404  # noqa: PLR2004
    assert ApiError("x").status_code is None


def test_expired_caught_as_authorization():
    with pytest.raises(AuthorizationError):
        raise TokenExpiredError("token expired", status_code=401)
