"""
Affinity Sessions
=================

An `AffinitySession` is a group of HTTP requests that belong to one
document processing workflow and must all be routed to the same PrizmDoc
Server node.

Every request goes through `AffinitySession.send`, which:

1. adds the session's affinity token, unless the request already sets one,
2. resolves the request path against the client's base address,
3. fills in the client's default headers the request does not define,
4. sends the request over the shared transport (streaming the body), and
5. while the session has no token yet, looks for an ``affinityToken`` in a
   JSON response and locks the session to it.

The token changes at most once per session, from unset to a value.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING
from urllib.parse import urljoin

import requests
import structlog
from requests.structures import CaseInsensitiveDict

from .affinity import AFFINITY_HEADER, find_affinity_token
from .polling import ProcessPoller

if TYPE_CHECKING:
    from .client import PrizmDocRestClient

log = structlog.get_logger(__name__)


class AffinitySession:
    """Sends requests to one PrizmDoc deployment, pinned to a single node."""

    def __init__(self, client: PrizmDocRestClient, affinity_token: str | None = None):
        self._client = client
        self._affinity_token = affinity_token
        self._token_lock = threading.Lock()

    @property
    def client(self) -> PrizmDocRestClient:
        return self._client

    @property
    def affinity_token(self) -> str | None:
        """
        The affinity token this session sends with its requests.

        ``None`` until the first JSON response carrying an ``affinityToken``
        is seen (unless the session was created with a token). Once set it
        never changes.
        """
        return self._affinity_token

    def send(self, request: requests.Request) -> requests.Response:
        """
        Send a request through this session and return the response.

        Headers are available immediately; the body is read lazily, except
        when it had to be read to look for an affinity token, in which case
        it is cached on the response and still fully readable.
        """
        headers = CaseInsensitiveDict(request.headers or {})

        token = self._affinity_token
        if token is not None and AFFINITY_HEADER not in headers:
            headers[AFFINITY_HEADER] = token

        url = urljoin(self._client.base_address, request.url)

        for name, value in self._client.default_request_headers.items():
            if name not in headers:
                headers[name] = value

        # The caller's request is left untouched so it can be sent again elsewhere.
        composed = requests.Request(
            method=request.method,
            url=url,
            headers=headers,
            files=request.files,
            data=request.data,
            json=request.json,
            params=request.params,
            auth=request.auth,
            cookies=request.cookies,
            hooks=request.hooks,
        )

        prepared = self._client.transport.prepare(composed)
        response = self._client.transport.send(prepared, timeout=self._client.timeout)

        if self._affinity_token is None:
            self._discover_affinity_token(response)

        return response

    def _discover_affinity_token(self, response: requests.Response) -> None:
        # The body is read outside the lock; only check-then-set is guarded.
        token = find_affinity_token(response)
        if token is None:
            return
        with self._token_lock:
            if self._affinity_token is None:
                self._affinity_token = token
                log.debug("Affinity token locked", affinity_token=token)

    def get(self, path: str, **kwargs) -> requests.Response:
        """Send a GET to `path`."""
        return self.send(requests.Request("GET", path, **kwargs))

    def post(self, path: str, data=None, **kwargs) -> requests.Response:
        """Send a POST to `path` with `data` as the request body."""
        return self.send(requests.Request("POST", path, data=data, **kwargs))

    def put(self, path: str, data=None, **kwargs) -> requests.Response:
        """Send a PUT to `path` with `data` as the request body."""
        return self.send(requests.Request("PUT", path, data=data, **kwargs))

    def delete(self, path: str, **kwargs) -> requests.Response:
        """Send a DELETE to `path`."""
        return self.send(requests.Request("DELETE", path, **kwargs))

    def get_final_process_status(
        self,
        process_resource: str,
        cancel: threading.Event | None = None,
    ) -> requests.Response:
        """
        Poll a process resource until its ``state`` is no longer "processing".

        Args:
            process_resource:
                Path of a process resource, such as
                ``"/v2/contentConverters/ElkNzWtrUJp4rXI5YnLUgw"``.
            cancel:
                Optional event; setting it interrupts the wait between polls
                and raises `PollCancelledError`.

        Returns:
            The first response whose state is anything other than
            "processing". Whether that state means success is up to the
            caller.
        """
        return ProcessPoller(self, process_resource, cancel=cancel).run()
