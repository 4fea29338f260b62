import contextlib
from typing import Any, Callable

import httpx


class Transport:
    """Sends a request produced by a builder.

    ``send`` passes the underlying client to ``build``, overrides ``headers``
    on the built request and sends it with ``timeout`` seconds. The returned
    response exposes ``status_code``, ``headers`` and ``text``.
    """

    client: Any = None

    def send(self, build: Callable[[Any], Any], headers: dict[str, str], timeout: float):
        raise NotImplementedError

    def close(self) -> None:
        pass


# ---------- httpx (sync) ----------
class HttpxTransport(Transport):
    def __init__(self, client: "httpx.Client | None" = None):
        self._own_client = client is None
        self.client = client if client is not None else httpx.Client()

    def send(self, build, headers, timeout):
        request = build(self.client)
        for name, value in headers.items():
            request.headers[name] = value
        request.extensions["timeout"] = httpx.Timeout(timeout).as_dict()
        return self.client.send(request)

    def close(self):
        if self._own_client:
            with contextlib.suppress(Exception):
                self.client.close()


# ---------- requests (sync) ----------
class RequestsTransport(Transport):
    """Transport over a ``requests.Session``.

    Builders may return a ``requests.Request`` (prepared with the session's
    defaults) or an already ``PreparedRequest``.
    """

    def __init__(self, session=None):
        import requests  # noqa: PLC0415

        self._own_client = session is None
        self.client = session if session is not None else requests.Session()

    def send(self, build, headers, timeout):
        import requests  # noqa: PLC0415

        request = build(self.client)
        if isinstance(request, requests.Request):
            request = self.client.prepare_request(request)
        request.headers.update(headers)
        return self.client.send(request, timeout=timeout)

    def close(self):
        if self._own_client:
            with contextlib.suppress(Exception):
                self.client.close()


# ---------- httpx (async) ----------
class AsyncHttpxTransport:
    def __init__(self, client: "httpx.AsyncClient | None" = None):
        self._own_client = client is None
        self.client = client if client is not None else httpx.AsyncClient()

    async def send(self, build, headers, timeout):
        request = build(self.client)
        for name, value in headers.items():
            request.headers[name] = value
        request.extensions["timeout"] = httpx.Timeout(timeout).as_dict()
        return await self.client.send(request)

    async def aclose(self):
        if self._own_client:
            with contextlib.suppress(Exception):
                await self.client.aclose()


def coerce_transport(client: Any = None) -> Transport:
    """Turn None | httpx.Client | requests.Session | Transport into a Transport.

    Accepted inputs:
      - None              -> HttpxTransport with its own httpx.Client
      - Transport         (returned as-is)
      - httpx.Client      -> HttpxTransport
      - requests.Session  -> RequestsTransport
    """
    if client is None:
        return HttpxTransport()
    if isinstance(client, Transport):
        return client
    if isinstance(client, httpx.Client):
        return HttpxTransport(client)
    import requests  # noqa: PLC0415

    if isinstance(client, requests.Session):
        return RequestsTransport(client)
    raise TypeError("client must be None, httpx.Client, requests.Session, or a Transport")


def coerce_async_transport(client: Any = None) -> AsyncHttpxTransport:
    if client is None:
        return AsyncHttpxTransport()
    if isinstance(client, AsyncHttpxTransport):
        return client
    if isinstance(client, httpx.AsyncClient):
        return AsyncHttpxTransport(client)
    raise TypeError("client must be None, httpx.AsyncClient, or an AsyncHttpxTransport")
