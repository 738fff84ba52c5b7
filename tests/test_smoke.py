"""
Smoke tests - verify basic imports and setup work.
"""

import zulip_client
from zulip_client import Connection, SubscriptionHandle, ZulipError, event_queue


def test_can_import_public_api():
    """Verify we can import the top-level surface."""
    assert Connection is not None
    assert SubscriptionHandle is not None
    assert ZulipError is not None
    assert event_queue is not None


def test_all_exports_resolve():
    for name in zulip_client.__all__:
        assert getattr(zulip_client, name) is not None


async def test_fixtures_work(connection, recorder, observed):
    """Verify our test fixtures are properly configured."""
    assert connection.base_url == "https://chat.example.com/api/v1"
    assert recorder.requests == []
    assert observed == []
