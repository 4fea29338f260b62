import heapq
import itertools
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

DEFAULT_WORKERS = 8


class Scheduler:
    """Runs a zero-argument callable after a delay, on some other thread."""

    def schedule(self, delay: float, fn: Callable[[], None]) -> None:
        raise NotImplementedError

    def shutdown(self, wait: bool = True) -> None:
        pass


class ThreadScheduler(Scheduler):
    """Deferred executor: one timer thread keeps a heap of due jobs and hands
    each due job to a thread pool.

    Jobs start in due order; ties start in submission order. A slow job only
    occupies one pool thread, so up to ``workers`` jobs run side by side. A job
    that raises is logged.
    """

    def __init__(self, workers: int = DEFAULT_WORKERS, name: str = "rebound-scheduler"):
        if workers < 1:
            raise ValueError("workers must be >= 1")
        self._queue: list[tuple[float, int, Callable[[], None]]] = []
        self._seq = itertools.count()
        self._cond = threading.Condition()
        self._closed = False
        self._logger = logging.getLogger("rebound")
        self._name = name
        self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix=name)
        self._timer = threading.Thread(target=self._run, name=f"{name}-timer", daemon=True)
        self._timer.start()

    def _now(self) -> float:
        return time.monotonic()

    def schedule(self, delay: float, fn: Callable[[], None]) -> None:
        with self._cond:
            if self._closed:
                raise RuntimeError("scheduler is shut down")
            due = self._now() + max(0.0, delay)
            heapq.heappush(self._queue, (due, next(self._seq), fn))
            self._cond.notify()

    def pending(self) -> int:
        with self._cond:
            return len(self._queue)

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting jobs and drop the ones not yet due.

        With ``wait`` the call returns once running jobs have finished.
        """
        with self._cond:
            self._closed = True
            self._queue.clear()
            self._cond.notify_all()
        # A job shutting down its own scheduler cannot join its own thread
        on_pool_thread = threading.current_thread().name.startswith(f"{self._name}_")
        self._executor.shutdown(wait=wait and not on_pool_thread)
        if wait and threading.current_thread() is not self._timer:
            self._timer.join()

    def _next_job(self):
        with self._cond:
            while True:
                if self._closed:
                    return None
                if not self._queue:
                    self._cond.wait()
                    continue
                due = self._queue[0][0]
                now = self._now()
                if due <= now:
                    return heapq.heappop(self._queue)[2]
                self._cond.wait(due - now)

    def _run_job(self, fn: Callable[[], None]) -> None:
        try:
            fn()
        except Exception:
            self._logger.exception("scheduled job failed")

    def _run(self):
        while True:
            fn = self._next_job()
            if fn is None:
                return
            try:
                self._executor.submit(self._run_job, fn)
            except RuntimeError:
                # shutdown() raced us between the pop and the submit
                return
