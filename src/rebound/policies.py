import email.utils
import logging
import math
import time
from enum import Enum
from typing import Mapping, Union

from .types import RetryConfig

_logger = logging.getLogger("rebound")


class Classification(Enum):
    SUCCESS = "success"
    BUSY = "busy"
    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    SERVER_ERROR = "server_error"


# Checked top-down, first match wins. Anything unlisted is SERVER_ERROR.
STATUS_TABLE: tuple[tuple[frozenset[int], Classification], ...] = (
    (frozenset({200, 201, 204, 304}), Classification.SUCCESS),
    (frozenset({202, 503}), Classification.BUSY),
    (frozenset({400}), Classification.BAD_REQUEST),
    (frozenset({401}), Classification.UNAUTHORIZED),
    (frozenset({429}), Classification.RATE_LIMITED),
    (frozenset({403}), Classification.FORBIDDEN),
    (frozenset({404}), Classification.NOT_FOUND),
    (frozenset({500, 502}), Classification.SERVER_ERROR),
)

RETRYABLE = frozenset({Classification.BUSY, Classification.RATE_LIMITED})


def classify(status_code: int) -> Classification:
    """Map an HTTP status code onto its Classification."""
    for codes, classification in STATUS_TABLE:
        if status_code in codes:
            return classification
    return Classification.SERVER_ERROR


def parse_retry_after(
    headers: Mapping[str, str], now: Union[float, None] = None
) -> Union[float, None]:
    """Return the Retry-After wait in seconds, or None when absent or unparseable.

    Accepts delta-seconds and HTTP-dates (RFC 7231). Negative values become 0.
    """
    ra = None
    for k, v in headers.items():
        if k.lower() == "retry-after":
            ra = v
            break
    if ra is None:
        return None
    try:
        return max(0.0, float(int(ra.strip())))
    except ValueError:
        pass
    try:
        ts = email.utils.parsedate_to_datetime(ra)
    except (TypeError, ValueError):
        return None
    if ts is None:
        return None
    now = time.time() if now is None else now
    # Round up so short waits are not truncated to zero
    return max(0.0, float(math.ceil(ts.timestamp() - now)))


def rate_limit_delay(
    headers: Mapping[str, str],
    fallback: float,
    cap: Union[float, None] = None,
) -> float:
    delay = parse_retry_after(headers)
    if delay is None:
        _logger.warning(
            f"429 without a usable Retry-After header; waiting default {fallback:.0f}s"
        )
        delay = fallback
    if cap is not None:
        delay = min(delay, cap)
    return delay


def retry_delay(
    classification: Classification,
    headers: Mapping[str, str],
    retry_config: RetryConfig,
) -> float:
    """Seconds to wait before retrying a RETRYABLE classification."""
    if classification is Classification.BUSY:
        return retry_config.busy_delay
    if classification is Classification.RATE_LIMITED:
        return rate_limit_delay(headers, retry_config.busy_delay, retry_config.retry_after_cap)
    raise ValueError(f"{classification.name} responses are not retried")
