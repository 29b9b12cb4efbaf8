"""
Process Polling
===============

Long-running PrizmDoc operations (content conversion, markup burning, ...)
are exposed as process resources whose JSON body has a ``state`` field.
`ProcessPoller` GETs such a resource until the state is anything other
than ``"processing"`` and returns that final response untouched.

The poller is an explicit state machine::

    AWAITING_FIRST_RESPONSE -> PROCESSING -> ... -> PROCESSING -> DONE
    AWAITING_FIRST_RESPONSE -> DONE

A response that is not a valid process status also ends in DONE, with
the error raised to the caller.

The first GET is sent immediately. After every "processing" response the
poller waits before the next GET, starting at 0.5 s and doubling up to a
cap of 8 s (0.5, 1, 2, 4, 8, 8, ...).
"""

from __future__ import annotations

import enum
import threading
import time
from typing import TYPE_CHECKING, Callable, Iterator

import requests
import structlog

from .affinity import JSON_MEDIA_TYPE, media_type
from .errors import (
    InvalidProcessJsonError,
    MissingProcessStateError,
    PollCancelledError,
    UnexpectedContentTypeError,
)

if TYPE_CHECKING:
    from .session import AffinitySession

log = structlog.get_logger(__name__)

START_DELAY_SECONDS = 0.5
MAX_DELAY_SECONDS = 8.0
PROCESSING = "processing"


class PollState(enum.Enum):
    AWAITING_FIRST_RESPONSE = "awaiting_first_response"
    PROCESSING = "processing"
    DONE = "done"


def backoff_delays(
    start: float = START_DELAY_SECONDS, maximum: float = MAX_DELAY_SECONDS
) -> Iterator[float]:
    """Yield the wait before each follow-up poll: start, doubled each time, capped."""
    delay = start
    while True:
        yield delay
        delay = min(delay * 2, maximum)


def read_process_state(response: requests.Response):
    """
    Return the ``state`` of a process status response.

    Raises:
        requests.HTTPError: the response status was not successful.
        UnexpectedContentTypeError: the response was not application/json.
        InvalidProcessJsonError: the body was not a JSON object.
        MissingProcessStateError: the JSON object had no ``state``.
    """
    response.raise_for_status()

    if media_type(response) != JSON_MEDIA_TYPE:
        raise UnexpectedContentTypeError(
            "After sending an HTTP request to GET process status, the response "
            f"Content-Type was {response.headers.get('Content-Type')!r}, not "
            "application/json. Are you sure you are using the correct URL to get "
            "information about a process?",
            response,
        )

    try:
        body = response.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        raise InvalidProcessJsonError(
            "After sending an HTTP request to GET process status, the response "
            "could not be parsed as a JSON object. Are you sure you are using the "
            "correct URL to get information about a process?",
            response,
        )

    state = body.get("state")
    if state is None:
        raise MissingProcessStateError(
            "After sending an HTTP request to GET process status, the response JSON "
            'did not have a "state" property, so it does not appear to describe a '
            "process. Are you sure you are using the correct URL to get information "
            "about a process?",
            response,
        )
    return state


class ProcessPoller:
    """Polls one process resource through an `AffinitySession` until it finishes."""

    def __init__(
        self,
        session: AffinitySession,
        process_resource: str,
        *,
        cancel: threading.Event | None = None,
        sleep: Callable[[float], None] | None = None,
        start_delay: float = START_DELAY_SECONDS,
        max_delay: float = MAX_DELAY_SECONDS,
    ):
        """
        Args:
            session:
                Session the GET requests are sent through.
            process_resource:
                Path of the process resource to poll.
            cancel:
                Optional event. Waits use ``cancel.wait`` so setting the event
                ends the wait at once, and no further request is sent.
            sleep:
                Wait function used when no `cancel` event is given.
                Defaults to `time.sleep`.
        """
        self.session = session
        self.process_resource = process_resource
        self.state = PollState.AWAITING_FIRST_RESPONSE
        self.response: requests.Response | None = None
        self.polls = 0
        self._cancel = cancel
        self._sleep = sleep or time.sleep
        self._delays = backoff_delays(start_delay, max_delay)

    def poll(self) -> PollState:
        """Send one GET and move to the next state."""
        if self.state is PollState.DONE:
            raise RuntimeError("Polling has already finished")

        response = self.session.get(self.process_resource)
        self.polls += 1
        self.response = response
        try:
            process_state = read_process_state(response)
        except Exception:
            self.state = PollState.DONE
            raise

        if process_state == PROCESSING:
            self.state = PollState.PROCESSING
        else:
            self.state = PollState.DONE

        log.debug(
            "Polled process",
            process_resource=self.process_resource,
            process_state=process_state,
            poll=self.polls,
        )
        return self.state

    def wait(self) -> float:
        """Wait before the next poll and return how long the wait was meant to be."""
        delay = next(self._delays)
        if self._cancel is None:
            self._sleep(delay)
        elif self._cancel.wait(delay):
            self._cancelled()
        return delay

    def run(self) -> requests.Response:
        """Poll until the process leaves the "processing" state; return the last response."""
        while True:
            if self._cancel is not None and self._cancel.is_set():
                self._cancelled()
            if self.poll() is PollState.DONE:
                return self.response
            self.wait()

    def _cancelled(self) -> None:
        log.debug(
            "Process polling cancelled",
            process_resource=self.process_resource,
            poll=self.polls,
        )
        raise PollCancelledError(
            f"Polling {self.process_resource} was cancelled after {self.polls} request(s)"
        )
