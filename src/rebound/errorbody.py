import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Union

from .errors import ApiError, AuthorizationError, TokenExpiredError

UNKNOWN_RESPONSE = "Unknown response"

_logger = logging.getLogger("rebound")


class ErrorKind(Enum):
    MESSAGE = "message"
    AUTHORIZATION = "authorization"
    TOKEN_EXPIRED = "token_expired"


@dataclass(frozen=True)
class ParsedError:
    kind: ErrorKind
    message: str

    def to_exception(
        self, default: type[ApiError] = ApiError, status_code: Union[int, None] = None
    ) -> ApiError:
        """Build the exception matching this result.

        ``default`` is only used for plain messages; authorization and expiry
        results always map to their own error types.
        """
        if self.kind is ErrorKind.TOKEN_EXPIRED:
            return TokenExpiredError(self.message, status_code=status_code)
        if self.kind is ErrorKind.AUTHORIZATION:
            return AuthorizationError(self.message, status_code=status_code)
        return default(self.message, status_code=status_code)


def parse_error_body(text: Union[str, bytes, None]) -> ParsedError:
    """Extract the error message from a JSON error body.

    Recognised shapes:
        {"error": {"message": "..."}}   -> MESSAGE, or TOKEN_EXPIRED if it mentions "expired"
        {"error_description": "..."}    -> AUTHORIZATION

    Anything else, including bodies that are not JSON, yields MESSAGE with
    "Unknown response". This function never raises.
    """
    try:
        data = json.loads(text) if text else None
    except (TypeError, ValueError) as e:
        _logger.debug(f"response was not json: {e}")
        return ParsedError(ErrorKind.MESSAGE, UNKNOWN_RESPONSE)

    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and "message" in error:
            message = str(error["message"])
            _logger.debug(f"error response: {message}")
            if "expired" in message:
                return ParsedError(ErrorKind.TOKEN_EXPIRED, message)
            return ParsedError(ErrorKind.MESSAGE, message)
        if "error_description" in data:
            description = str(data["error_description"])
            _logger.debug(f"authorization error: {description}")
            return ParsedError(ErrorKind.AUTHORIZATION, description)

    _logger.debug(f"unknown error response: {text!r}")
    return ParsedError(ErrorKind.MESSAGE, UNKNOWN_RESPONSE)
