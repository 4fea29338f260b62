import os
from typing import Union

from .types import RetryConfig


def _parse_env_file(env_path: str) -> dict[str, str]:
    """Parse a simple .env file into a dict without modifying os.environ.

    Supports basic KEY=VALUE pairs, ignoring comments and blank lines.
    Surrounding single/double quotes are stripped if present.
    """
    values: dict[str, str] = {}
    try:
        with open(env_path) as f:
            for raw_line in f:
                line = raw_line.strip()
                if not line or line.startswith("#"):
                    continue
                if "=" not in line:
                    continue
                key, val = line.split("=", 1)
                key = key.strip()
                val = val.strip().strip('"').strip("'")
                if key:
                    values[key] = val
    except FileNotFoundError:
        # Silently ignore missing file to make the helper easy to use
        pass
    return values


def load_retry_config_from_env(
    prefix: str = "REBOUND_",
    env_path: Union[str, None] = None,
) -> RetryConfig:
    """Create a RetryConfig from environment variables.

    Reads <prefix>MAX_ATTEMPTS, <prefix>BUSY_DELAY, <prefix>TIMEOUT and
    <prefix>RETRY_AFTER_CAP. Unset or empty variables keep the RetryConfig
    default. If 'env_path' is provided, the .env file fills in variables
    missing from the process environment (the environment takes precedence).

    Raises:
        ValueError: if a variable is set but is not a valid number
    """
    file_env = _parse_env_file(env_path) if env_path else {}
    env_map: dict[str, str] = {**file_env, **os.environ}
    defaults = RetryConfig()

    def _get(name: str):
        value = env_map.get(f"{prefix}{name}")
        return value.strip() if value and value.strip() else None

    max_attempts = _get("MAX_ATTEMPTS")
    busy_delay = _get("BUSY_DELAY")
    timeout = _get("TIMEOUT")
    cap = _get("RETRY_AFTER_CAP")

    return RetryConfig(
        max_attempts=max(1, int(max_attempts)) if max_attempts else defaults.max_attempts,
        busy_delay=float(busy_delay) if busy_delay else defaults.busy_delay,
        timeout=float(timeout) if timeout else defaults.timeout,
        retry_after_cap=float(cap) if cap else defaults.retry_after_cap,
    )
