import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Union

_logger = logging.getLogger("rebound")


class ResultSlot:
    """Single-assignment result cell with a blocking wait.

    The first ``set_result``/``set_exception`` wins; later calls return False
    and leave the stored outcome untouched.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._value: Any = None
        self._error: Union[BaseException, None] = None

    def _resolve(self, value: Any, error: Union[BaseException, None]) -> bool:
        with self._lock:
            if self._done.is_set():
                _logger.warning(
                    f"result already resolved; ignoring late {'error' if error else 'value'}"
                )
                return False
            self._value = value
            self._error = error
            self._done.set()
        return True

    def set_result(self, value: Any) -> bool:
        return self._resolve(value, None)

    def set_exception(self, error: BaseException) -> bool:
        return self._resolve(None, error)

    def done(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout: Union[float, None] = None) -> bool:
        return self._done.wait(timeout)

    def result(self) -> Any:
        if not self._done.is_set():
            raise RuntimeError("result slot is not resolved yet")
        if self._error is not None:
            raise self._error
        return self._value


# eq=False keeps identity hashing so calls can live in a set
@dataclass(eq=False)
class PendingCall:
    build: Callable[[Any], Any]
    authorization: str
    attempts: int = 0
    delay: float = 0.0
    slot: ResultSlot = field(default_factory=ResultSlot)
