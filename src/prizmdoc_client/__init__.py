"""
PrizmDoc REST client.

A small layer over `requests` for talking to PrizmDoc Server and PrizmDoc
Cloud:

- `PrizmDocRestClient` holds a base address and default request headers
- `AffinitySession` keeps a workflow's requests on one server node and
  polls long-running processes to completion
- all clients share one connection pool (`SharedTransport`)
"""

from .affinity import AFFINITY_HEADER
from .client import PrizmDocRestClient
from .errors import (
    ConversionFailedError,
    InvalidProcessJsonError,
    MissingProcessStateError,
    PollCancelledError,
    PrizmDocError,
    ProcessStatusError,
    UnexpectedContentTypeError,
    UnexpectedResponseError,
)
from .polling import PollState, ProcessPoller
from .session import AffinitySession
from .transport import SharedTransport, close_shared_transport, get_shared_transport

__all__ = [
    "AFFINITY_HEADER",
    "AffinitySession",
    "ConversionFailedError",
    "InvalidProcessJsonError",
    "MissingProcessStateError",
    "PollCancelledError",
    "PollState",
    "PrizmDocError",
    "PrizmDocRestClient",
    "ProcessPoller",
    "ProcessStatusError",
    "SharedTransport",
    "UnexpectedContentTypeError",
    "UnexpectedResponseError",
    "close_shared_transport",
    "get_shared_transport",
]
