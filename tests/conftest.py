"""
Pytest configuration.

The project uses a ``src/`` layout (package code lives in
``src/prizmdoc_client``). Normally tests run after ``pip install -e .``;
when the package cannot be imported that way, ``src/`` is added to
``sys.path`` so the tests still find it.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_src_on_path() -> None:
    try:
        import prizmdoc_client  # noqa: F401
        return
    except ModuleNotFoundError:
        pass

    repo_root = Path(__file__).resolve().parents[1]
    src_dir = repo_root / "src"
    sys.path.insert(0, str(src_dir))


_ensure_src_on_path()

from prizmdoc_client.client import PrizmDocRestClient  # noqa: E402
from prizmdoc_client.transport import close_shared_transport  # noqa: E402

BASE_URL = "http://localhost:18681"


@pytest.fixture(autouse=True)
def fresh_shared_transport():
    """Each test starts and ends without a process-wide transport."""
    close_shared_transport()
    yield
    close_shared_transport()


@pytest.fixture
def client():
    """A client pointed at the mocked PrizmDoc server, with an API key header."""
    client = PrizmDocRestClient(BASE_URL)
    client.default_request_headers["Acs-Api-Key"] = "test-api-key"
    return client

