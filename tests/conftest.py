"""
Pytest fixtures for zulip_client tests.

Provides fake servers so tests never touch the network.

Key fixture pattern:
- recorder / connection: Connection backed by httpx.MockTransport; the
  recorder keeps every request and answers from a route table
- observed: RequestRecords reported by the connection's observer
"""

import httpx
import pytest

from tests.fixtures import API_KEY, BASE_URL, USERNAME, RequestRecorder
from zulip_client.client.connection import Connection


@pytest.fixture
def recorder() -> RequestRecorder:
    return RequestRecorder()


@pytest.fixture
def observed() -> list:
    """Collects RequestRecords reported by the connection."""
    return []


@pytest.fixture
async def connection(recorder: RequestRecorder, observed: list):
    """Connection whose HTTP traffic goes to the recorder."""
    conn = Connection(
        USERNAME,
        API_KEY,
        BASE_URL + "/",
        observer=observed.append,
        transport=httpx.MockTransport(recorder),
    )
    yield conn
    await conn.aclose()
