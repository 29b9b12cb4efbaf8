"""
Shared HTTP Transport
=====================

Every `PrizmDocRestClient` in the process sends its requests through one
`requests.Session`. Creating a session (and therefore a connection pool)
per client would exhaust sockets under load, so the pool is created once
and handed to each client by reference.

Because the session is shared across clients that talk to different
servers with different credentials, it is never reconfigured per request.
Base addresses and default headers are applied to each request object by
`AffinitySession.send` instead of being stored on the session.
"""

from __future__ import annotations

import threading

import requests
import structlog
from requests.adapters import HTTPAdapter

log = structlog.get_logger(__name__)

DEFAULT_POOL_MAXSIZE = 10


class SharedTransport:
    """
    A reusable connection pool for all PrizmDoc clients.

    The urllib3 connection pool behind the adapter is safe to use from many
    threads at once. The session's cookie jar is not per client: cookies a
    server sets are sent by every client that shares this transport.
    """

    def __init__(self, pool_maxsize: int = DEFAULT_POOL_MAXSIZE):
        self._session = requests.Session()
        # Retries are left to the caller; the adapter only pools connections.
        adapter = HTTPAdapter(
            pool_connections=pool_maxsize,
            pool_maxsize=pool_maxsize,
            max_retries=0,
        )
        self._session.mount("https://", adapter)
        self._session.mount("http://", adapter)
        self.closed = False

    def prepare(self, request: requests.Request) -> requests.PreparedRequest:
        """Prepare a fully composed request for sending."""
        return self._session.prepare_request(request)

    def send(
        self,
        prepared: requests.PreparedRequest,
        timeout: float | tuple[float, float] | None = None,
    ) -> requests.Response:
        """
        Send a prepared request and return as soon as the headers arrive.

        The body is streamed; callers read it (or close the response) when
        they are ready.
        """
        settings = self._session.merge_environment_settings(
            prepared.url, {}, True, None, None
        )
        log.debug("Sending request", method=prepared.method, url=prepared.url)
        return self._session.send(prepared, timeout=timeout, **settings)

    def close(self) -> None:
        self._session.close()
        self.closed = True


_shared: SharedTransport | None = None
_shared_lock = threading.Lock()


def get_shared_transport(pool_maxsize: int = DEFAULT_POOL_MAXSIZE) -> SharedTransport:
    """
    Return the process-wide transport, creating it on first use.

    `pool_maxsize` only takes effect for the call that creates the transport.
    """
    global _shared
    with _shared_lock:
        if _shared is None or _shared.closed:
            _shared = SharedTransport(pool_maxsize=pool_maxsize)
        return _shared


def close_shared_transport() -> None:
    """Close the process-wide transport; the next lookup creates a new one."""
    global _shared
    with _shared_lock:
        if _shared is not None:
            _shared.close()
            _shared = None
