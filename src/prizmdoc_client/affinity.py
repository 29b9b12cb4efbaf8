"""
Affinity Token Discovery
========================

PrizmDoc Server runs as a cluster. Requests that belong to one processing
workflow (upload a work file, start a conversion, download the result)
must all reach the same node. The server hands out an affinity token in
the JSON body of the first response of such a workflow, and the client
pins later requests by sending that token back in the
``Accusoft-Affinity-Token`` request header.

Discovery is best-effort: anything other than a JSON object with a string
``affinityToken`` field simply yields no token.
"""

from __future__ import annotations

import requests

AFFINITY_HEADER = "Accusoft-Affinity-Token"
JSON_MEDIA_TYPE = "application/json"


def media_type(response: requests.Response) -> str | None:
    """Return the response media type without parameters, e.g. ``application/json``."""
    content_type = response.headers.get("Content-Type")
    if not content_type:
        return None
    return content_type.split(";", 1)[0].strip().lower()


def find_affinity_token(response: requests.Response) -> str | None:
    """
    Look for an ``affinityToken`` string in a JSON response body.

    Reading the body caches it on the response, so the caller can still
    read ``response.content``, ``response.text`` or ``response.json()``
    afterwards.
    """
    if media_type(response) != JSON_MEDIA_TYPE:
        return None

    try:
        body = response.json()
    except ValueError:
        return None

    if not isinstance(body, dict):
        return None

    token = body.get("affinityToken")
    return token if isinstance(token, str) else None
