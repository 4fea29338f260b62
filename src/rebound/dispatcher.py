import asyncio
import logging
import threading
from typing import Any, Callable, Union

from .adapters import Transport, coerce_async_transport, coerce_transport
from .env import load_retry_config_from_env
from .errorbody import ErrorKind, parse_error_body
from .errors import ApiError, AuthorizationError
from .policies import RETRYABLE, Classification, classify, retry_delay
from .schedulers import Scheduler, ThreadScheduler
from .state import PendingCall
from .types import AuthConfig, RetryConfig

# How often a blocked request() looks at its cancel event
CANCEL_POLL_INTERVAL = 0.05

Builder = Callable[[Any], Any]


# ---------- Common helpers ----------


def _process_response(
    response, retry_config: RetryConfig, logger: logging.Logger
) -> Union[float, None]:
    """Classify a response.

    Returns None when the call is complete, or the delay in seconds before the
    next attempt. Raises an ApiError subclass when the call failed for good.
    """
    status = response.status_code
    logger.debug(f"Response Code: {status}")
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"Response Data: {response.text}")

    kind = classify(status)
    if kind is Classification.SUCCESS:
        return None
    if kind in RETRYABLE:
        delay = retry_delay(kind, response.headers, retry_config)
        if kind is Classification.RATE_LIMITED:
            logger.info(f"API returned 429 (rate limit exceeded); retrying after {delay:.0f}s")
        else:
            logger.debug(
                f"API returned {status}, the request is accepted but not completed. Retrying..."
            )
        return delay
    if kind in (Classification.BAD_REQUEST, Classification.NOT_FOUND):
        raise parse_error_body(response.text).to_exception(ApiError, status)
    if kind is Classification.UNAUTHORIZED:
        raise parse_error_body(response.text).to_exception(AuthorizationError, status)
    if kind is Classification.FORBIDDEN:
        # Body is informational only; the response is handed back to the caller
        parsed = parse_error_body(response.text)
        if parsed.kind is not ErrorKind.MESSAGE:
            logger.debug(f"ignoring {parsed.kind.value} error on 403: {parsed.message}")
        return None
    raise ApiError(f"API returned with error status: {status}", status_code=status)


def _give_up(attempts: int) -> ApiError:
    return ApiError(f"Could not reach the API after {attempts} retries.")


# ---------- Base dispatcher (shared configuration) ----------


class _BaseDispatcher:
    def __init__(
        self,
        retry_config: Union[RetryConfig, None],
        log_level: Union[int, None],
        **kwargs,
    ):
        """Resolve retry and auth settings.

        Args:
            retry_config (RetryConfig | None): retry configuration
            log_level (int | None): level for the "rebound" logger
            kwargs:
            - max_attempts, busy_delay, timeout, retry_after_cap: used when
              retry_config is None
            - auth_config: AuthConfig object
            - auth_header: str
        """
        if retry_config is not None:
            self._retry_config = retry_config
        else:
            defaults = RetryConfig()
            self._retry_config = RetryConfig(
                max_attempts=max(1, int(kwargs.get("max_attempts", defaults.max_attempts))),
                busy_delay=kwargs.get("busy_delay", defaults.busy_delay),
                timeout=kwargs.get("timeout", defaults.timeout),
                retry_after_cap=kwargs.get("retry_after_cap", defaults.retry_after_cap),
            )
        if kwargs.get("auth_config") is not None:
            self._auth_config = kwargs["auth_config"]
        else:
            self._auth_config = AuthConfig(header=kwargs.get("auth_header", "Authorization"))
        self._logger = logging.getLogger("rebound")
        if log_level is not None:
            self._logger.setLevel(log_level)

    @property
    def retry_config(self) -> RetryConfig:
        return self._retry_config

    def _headers(self, authorization: str) -> dict[str, str]:
        if not authorization:
            raise ValueError("authorization must be a non-empty string")
        return {self._auth_config.header: authorization}


# ---------- Sync dispatcher ----------


class _Caller:
    """Runs the attempts of one PendingCall.

    The first attempt runs on the dispatching thread; every retry is handed to
    the scheduler, so at most one attempt is in flight at a time.
    """

    def __init__(
        self,
        dispatcher: "Dispatcher",
        pending: PendingCall,
        cancel: Union[threading.Event, None] = None,
    ):
        self.dispatcher = dispatcher
        self.pending = pending
        self.cancel = cancel

    def call(self) -> None:
        d = self.dispatcher
        p = self.pending
        p.attempts += 1
        try:
            if d._closed:
                raise ApiError("Dispatcher closed")
            if self.cancel is not None and self.cancel.is_set():
                raise ApiError("Call cancelled")
            response = d._transport.send(
                p.build, d._headers(p.authorization), d._retry_config.timeout
            )
            delay = _process_response(response, d._retry_config, d._logger)
            if delay is None:
                p.slot.set_result(response)
                return
            p.delay = delay
            if p.attempts < d._retry_config.max_attempts:
                d._logger.debug(f"API call attempt: {p.attempts}; next in {p.delay:.0f}s")
                d._scheduler.schedule(p.delay, self.call)
            else:
                d._logger.warning("Giving up on accessing the API. Check network connectivity!")
                p.slot.set_exception(_give_up(p.attempts))
        except Exception as e:
            p.slot.set_exception(e)


class Dispatcher(_BaseDispatcher):
    """Blocking, retry-aware entry point for API calls.

    Example:
        with Dispatcher() as api:
            resp = api.request(
                lambda client: client.build_request("GET", "https://api.example.com/me"),
                "Bearer abc",
            )
    """

    def __init__(
        self,
        client: Any = None,
        scheduler: Union[Scheduler, None] = None,
        retry_config: Union[RetryConfig, None] = None,
        log_level: Union[int, None] = None,
        **kwargs,
    ):
        """Initialize a Dispatcher.

        Args:
            client: None, an httpx.Client, a requests.Session or a Transport
            scheduler (Scheduler | None): runs retries; a ThreadScheduler is
                created (and owned) when omitted
            retry_config (RetryConfig | None): retry configuration
            log_level (int | None): level for the "rebound" logger
            kwargs: see _BaseDispatcher
        """
        super().__init__(retry_config, log_level, **kwargs)
        self._own_transport = client is None
        self._transport: Transport = coerce_transport(client)
        self._own_scheduler = scheduler is None
        self._scheduler: Scheduler = scheduler if scheduler is not None else ThreadScheduler()
        # Calls whose request() has not returned yet; failed by close()
        self._pending: set[PendingCall] = set()
        self._lock = threading.Lock()
        self._closed = False

    @classmethod
    def from_env(
        cls,
        prefix: str = "REBOUND_",
        env_path: Union[str, None] = None,
        **kwargs,
    ):
        """Create a Dispatcher whose RetryConfig comes from the environment.

        See load_retry_config_from_env for the variables read. Remaining
        kwargs are passed to the constructor.
        """
        retry_config = load_retry_config_from_env(prefix=prefix, env_path=env_path)
        return cls(retry_config=retry_config, **kwargs)

    @property
    def client(self) -> Any:
        return self._transport.client

    def request(
        self,
        build: Builder,
        authorization: str,
        cancel: Union[threading.Event, None] = None,
    ):
        """Perform a call and return the raw response.

        Args:
            build: builds the unsent request from the underlying client
            authorization: value for the Authorization header
            cancel: optional event; once set, the call stops waiting and fails

        Raises:
            ApiError: the call failed. AuthorizationError / TokenExpiredError
                for credential problems.
        """
        self._headers(authorization)
        pending = PendingCall(build, authorization)
        with self._lock:
            if self._closed:
                raise ApiError("Dispatcher closed")
            self._pending.add(pending)
        try:
            _Caller(self, pending, cancel).call()

            timeout = CANCEL_POLL_INTERVAL if cancel is not None else None
            while not pending.slot.wait(timeout):
                if cancel.is_set():
                    # The event stays set so the caller can see why we stopped
                    self._logger.debug("wait for API call interrupted")
                    raise ApiError("Thread interrupted")
        finally:
            with self._lock:
                self._pending.discard(pending)
        try:
            return pending.slot.result()
        except ApiError:
            raise
        except Exception as e:
            raise ApiError(str(e) or e.__class__.__name__) from e

    dispatch = request

    def close(self):
        """Stop retrying and fail every call that is still waiting."""
        with self._lock:
            self._closed = True
            unfinished = list(self._pending)
        for pending in unfinished:
            if pending.slot.set_exception(ApiError("Dispatcher closed")):
                self._logger.debug(f"failed unfinished call after {pending.attempts} attempts")
        if self._own_scheduler:
            self._scheduler.shutdown(wait=False)
        if self._own_transport:
            self._transport.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


# ---------- Async dispatcher (httpx.AsyncClient) ----------


class AsyncDispatcher(_BaseDispatcher):
    """Async twin of Dispatcher; retries wait on the running event loop."""

    def __init__(
        self,
        client: Any = None,
        retry_config: Union[RetryConfig, None] = None,
        log_level: Union[int, None] = None,
        **kwargs,
    ):
        super().__init__(retry_config, log_level, **kwargs)
        self._transport = coerce_async_transport(client)

    @classmethod
    def from_env(
        cls,
        prefix: str = "REBOUND_",
        env_path: Union[str, None] = None,
        **kwargs,
    ):
        retry_config = load_retry_config_from_env(prefix=prefix, env_path=env_path)
        return cls(retry_config=retry_config, **kwargs)

    @property
    def client(self) -> Any:
        return self._transport.client

    async def request(self, build: Builder, authorization: str):
        headers = self._headers(authorization)
        attempts = 0
        while True:
            attempts += 1
            try:
                response = await self._transport.send(
                    build, headers, self._retry_config.timeout
                )
                delay = _process_response(response, self._retry_config, self._logger)
            except ApiError:
                raise
            except Exception as e:
                raise ApiError(str(e) or e.__class__.__name__) from e
            if delay is None:
                return response
            if attempts >= self._retry_config.max_attempts:
                self._logger.warning("Giving up on accessing the API. Check network connectivity!")
                raise _give_up(attempts)
            self._logger.debug(f"API call attempt: {attempts}; next in {delay:.0f}s")
            await asyncio.sleep(delay)

    dispatch = request

    async def aclose(self):
        await self._transport.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
        return False
