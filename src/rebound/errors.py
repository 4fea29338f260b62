from typing import Union


class ApiError(Exception):
    """A remote call could not be completed.

    Raised for malformed requests, missing resources, unknown status codes,
    exhausted retry budgets and cancelled calls. Transport failures are
    re-raised as ``ApiError`` with the original exception as ``__cause__``.
    """

    def __init__(self, message: str, status_code: Union[int, None] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthorizationError(ApiError):
    """The credential was rejected, or the server answered with an ``error_description``."""


class TokenExpiredError(AuthorizationError):
    """The server reported that the access token has expired."""
