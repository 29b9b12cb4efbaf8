"""
PrizmDoc REST Client
====================

`PrizmDocRestClient` holds the base address and default request headers
for one PrizmDoc Server (or PrizmDoc Cloud) deployment. It does not talk
to the network itself: requests are made through an `AffinitySession`
created from the client, which applies the client's base address and
headers to every request it sends over the shared transport.

Any number of clients can exist side by side, each with its own base
address and headers, all sharing one connection pool.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from requests.structures import CaseInsensitiveDict

from .session import AffinitySession
from .transport import SharedTransport, get_shared_transport

if TYPE_CHECKING:
    from .config import Settings

API_KEY_HEADER = "Acs-Api-Key"


class PrizmDocRestClient:
    """Base address and default headers for talking to one PrizmDoc deployment."""

    def __init__(
        self,
        base_address,
        *,
        transport: SharedTransport | None = None,
        timeout: float | tuple[float, float] | None = None,
    ):
        """
        Args:
            base_address:
                Absolute base URL, such as ``"https://api.accusoft.com"``.
                Either a string or a parsed URL (``urllib.parse`` result).
            transport:
                Transport to send requests through. Defaults to the
                process-wide shared transport.
            timeout:
                Per-request timeout forwarded to the transport.
        """
        self.base_address = base_address
        self.default_request_headers: CaseInsensitiveDict = CaseInsensitiveDict()
        self.transport = transport if transport is not None else get_shared_transport()
        self.timeout = timeout

    @property
    def base_address(self) -> str:
        return self._base_address

    @base_address.setter
    def base_address(self, value) -> None:
        if value is None or value == "":
            raise ValueError("base_address is required")
        if hasattr(value, "geturl"):
            value = value.geturl()
        parts = urlsplit(str(value))
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"base_address must be an absolute URL, got {value!r}")
        self._base_address = str(value)

    @classmethod
    def from_settings(cls, settings: Settings) -> PrizmDocRestClient:
        """Build a client from environment-driven settings."""
        client = cls(
            settings.PRIZMDOC_URL,
            transport=get_shared_transport(pool_maxsize=settings.POOL_MAXSIZE),
            timeout=settings.REQUEST_TIMEOUT,
        )
        if settings.PRIZMDOC_API_KEY:
            client.default_request_headers[API_KEY_HEADER] = settings.PRIZMDOC_API_KEY
        return client

    def create_affinity_session(self, affinity_token: str | None = None) -> AffinitySession:
        """
        Create an `AffinitySession` for one group of related requests.

        When `affinity_token` is given the session starts locked to it and
        every request, including the first, carries that token.
        """
        return AffinitySession(self, affinity_token=affinity_token)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.base_address!r})"
