import email.utils
import time

import pytest

from rebound import Classification, RetryConfig, classify
from rebound.policies import RETRYABLE, parse_retry_after, rate_limit_delay, retry_delay


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (200, Classification.SUCCESS),
        (201, Classification.SUCCESS),
        (204, Classification.SUCCESS),
        (304, Classification.SUCCESS),
        (202, Classification.BUSY),
        (503, Classification.BUSY),
        (400, Classification.BAD_REQUEST),
        (401, Classification.UNAUTHORIZED),
        (429, Classification.RATE_LIMITED),
        (403, Classification.FORBIDDEN),
        (404, Classification.NOT_FOUND),
        (500, Classification.SERVER_ERROR),
        (502, Classification.SERVER_ERROR),
        (301, Classification.SERVER_ERROR),
        (409, Classification.SERVER_ERROR),
    ],
)
def test_classify(status, expected):
    assert classify(status) is expected


def test_retry_after_seconds_any_case():
    assert parse_retry_after({"retry-after": "3"}) == 3.0  # noqa: PLR2004
    assert parse_retry_after({"Retry-After": "-4"}) == 0.0


def test_retry_after_http_date():
    now = time.time()
    future = email.utils.formatdate(now + 2, usegmt=True)
    assert 1.0 <= parse_retry_after({"Retry-After": future}, now=now) <= 3.0  # noqa: PLR2004


def test_retry_after_missing_or_garbage():
    assert parse_retry_after({}) is None
    assert parse_retry_after({"Retry-After": "soon"}) is None


def test_rate_limit_delay_fallback_and_cap():
    assert rate_limit_delay({"Retry-After": "nope"}, fallback=5.0) == 5.0  # noqa: PLR2004
    assert rate_limit_delay({"Retry-After": "120"}, fallback=5.0, cap=30.0) == 30.0  # noqa: PLR2004
    assert rate_limit_delay({"Retry-After": "120"}, fallback=5.0) == 120.0  # noqa: PLR2004


def test_only_busy_and_rate_limited_retry():
    assert RETRYABLE == {Classification.BUSY, Classification.RATE_LIMITED}
    cfg = RetryConfig(busy_delay=4.0, retry_after_cap=20.0)
    assert retry_delay(Classification.BUSY, {"Retry-After": "9"}, cfg) == 4.0  # noqa: PLR2004
    assert retry_delay(Classification.RATE_LIMITED, {"Retry-After": "9"}, cfg) == 9.0  # noqa: PLR2004
    assert retry_delay(Classification.RATE_LIMITED, {"Retry-After": "90"}, cfg) == 20.0  # noqa: PLR2004
    for kind in set(Classification) - RETRYABLE:
        with pytest.raises(ValueError):
            retry_delay(kind, {}, cfg)
