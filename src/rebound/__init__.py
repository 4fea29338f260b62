from .adapters import (
    AsyncHttpxTransport,
    HttpxTransport,
    RequestsTransport,
    Transport,
    coerce_transport,
)
from .dispatcher import AsyncDispatcher, Dispatcher
from .env import load_retry_config_from_env
from .errorbody import ErrorKind, ParsedError, parse_error_body
from .errors import ApiError, AuthorizationError, TokenExpiredError
from .policies import Classification, classify
from .schedulers import Scheduler, ThreadScheduler
from .types import AuthConfig, RetryConfig

__all__ = [
    "Dispatcher",
    "AsyncDispatcher",
    "ApiError",
    "AuthorizationError",
    "TokenExpiredError",
    "RetryConfig",
    "AuthConfig",
    "Scheduler",
    "ThreadScheduler",
    "Transport",
    "HttpxTransport",
    "RequestsTransport",
    "AsyncHttpxTransport",
    "coerce_transport",
    "Classification",
    "classify",
    "ErrorKind",
    "ParsedError",
    "parse_error_body",
    "load_retry_config_from_env",
]
