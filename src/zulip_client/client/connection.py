"""
Connection - credentials, base URL and HTTP pool shared by all requests.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from zulip_client.client.transport import (
    REQUEST_TIMEOUT_SECONDS,
    LoggingObserver,
    RequestObserver,
)

if TYPE_CHECKING:
    from zulip_client.config import ConnectionConfig

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.zulip.com/v1"


def normalize_base_url(base_url: str) -> str:
    """Strip trailing slashes so endpoints can be joined with a single '/'."""
    return base_url.rstrip("/")


class Connection:
    """
    Read-only connection to a Zulip server.

    Created once and shared by every request made with it. Holds the
    httpx connection pool and the request observer; both are released
    by aclose().

    Example:
        async with Connection("bot@example.com", "secret",
                              "https://example.zulipchat.com/api/v1") as conn:
            outcome = await send_stream_message(conn, "general", "hi", "Hello")
    """

    def __init__(
        self,
        username: str,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        observer: RequestObserver | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize Connection.

        Args:
            username: Bot or user email used for basic auth
            api_key: API key used for basic auth
            base_url: API root, e.g. https://example.zulipchat.com/api/v1
            observer: Receives a RequestRecord for every request
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self._username = username
        self._api_key = api_key
        self._base_url = normalize_base_url(base_url)
        self._observer: RequestObserver = observer or LoggingObserver()
        self._http = httpx.AsyncClient(
            auth=(username, api_key),
            timeout=httpx.Timeout(REQUEST_TIMEOUT_SECONDS),
            transport=transport,
        )

    @classmethod
    def from_config(
        cls, config: "ConnectionConfig", observer: RequestObserver | None = None
    ) -> "Connection":
        return cls(
            username=config.username,
            api_key=config.api_key,
            base_url=config.base_url,
            observer=observer,
        )

    @property
    def username(self) -> str:
        return self._username

    @property
    def api_key(self) -> str:
        return self._api_key

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def observer(self) -> RequestObserver:
        return self._observer

    @property
    def http(self) -> httpx.AsyncClient:
        return self._http

    @property
    def is_closed(self) -> bool:
        return self._http.is_closed

    def url(self, endpoint: str) -> str:
        return f"{self._base_url}/{endpoint.lstrip('/')}"

    async def aclose(self) -> None:
        """
        Release the HTTP pool and the observer.

        Observers that hold resources can define close(); it is called once,
        after the pool is released. Requests issued afterwards yield no
        outcome.
        """
        if self._http.is_closed:
            return
        await self._http.aclose()
        close_observer = getattr(self._observer, "close", None)
        if callable(close_observer):
            try:
                close_observer()
            except Exception as e:
                logger.warning(f"Request observer close raised, ignoring: {e}")
        logger.info(f"Closed connection to {self._base_url}")

    async def __aenter__(self) -> "Connection":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"Connection(username={self._username!r}, base_url={self._base_url!r})"
