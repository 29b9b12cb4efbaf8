"""Exceptions raised by the PrizmDoc client."""

from __future__ import annotations

import requests


class PrizmDocError(Exception):
    """Base class for errors raised by this package."""


class ProcessStatusError(PrizmDocError):
    """
    A process status response did not look like a process status.

    Raised while polling a process resource. The offending response is kept
    on the exception so callers can inspect it.
    """

    def __init__(self, message: str, response: requests.Response | None = None):
        super().__init__(message)
        self.response = response


class UnexpectedContentTypeError(ProcessStatusError):
    pass


class InvalidProcessJsonError(ProcessStatusError):
    pass


class MissingProcessStateError(ProcessStatusError):
    pass


class PollCancelledError(PrizmDocError):
    """Polling was cancelled by the caller while waiting between requests."""


class ConversionFailedError(PrizmDocError):
    """A content conversion process finished in a state other than "complete"."""

    def __init__(self, state: str, process: dict):
        super().__init__(f"Content conversion ended in state {state!r}")
        self.state = state
        self.process = process


class UnexpectedResponseError(PrizmDocError):
    """A PrizmDoc response body lacked a field the conversion workflow needs."""
