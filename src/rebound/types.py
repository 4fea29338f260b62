from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class AuthConfig:
    header: str = "Authorization"


@dataclass(frozen=True)
class RetryConfig:
    # Total attempts per call, the first one included
    max_attempts: int = 5

    # 202/503 "still processing" wait
    busy_delay: float = 5.0

    # Per-attempt request timeout
    timeout: float = 30.0

    # Upper bound for server-provided Retry-After. None trusts the server.
    retry_after_cap: Union[float, None] = None
