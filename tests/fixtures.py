"""Fakes and payload factories for unit tests.

RequestRecorder stands in for the Zulip server behind httpx.MockTransport.
ScriptedEndpoint stands in for an endpoint wrapper (get_events, register)
when testing the subscription loop without HTTP at all.
"""

import asyncio
import json
from typing import Any, Callable
from urllib.parse import parse_qs

import httpx

BASE_URL = "https://chat.example.com/api/v1"
USERNAME = "echo-bot@example.com"
API_KEY = "test-api-key"


class RequestRecorder:
    """
    MockTransport handler that records requests.

    Routes map "METHOD path" (path relative to /api/v1) to an httpx.Response
    or to a callable taking the request. Unrouted requests get a success body.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.routes: dict[str, httpx.Response | Callable[[httpx.Request], Any]] = {}

    def route(self, method: str, path: str, response) -> None:
        self.routes[f"{method} {path}"] = response

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/api/v1/")
        handler = self.routes.get(f"{request.method} {path}")
        if handler is None:
            return httpx.Response(200, json={"result": "success", "msg": ""})
        if callable(handler):
            return handler(request)
        return handler

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    @staticmethod
    def form(request: httpx.Request) -> dict[str, str]:
        """Decode a form-encoded body into single values."""
        parsed = parse_qs(request.content.decode())
        return {key: values[0] for key, values in parsed.items()}

    @staticmethod
    def query(request: httpx.Request) -> dict[str, str]:
        return dict(request.url.params)


class ScriptedEndpoint:
    """
    Fake endpoint wrapper (get_events / register) for subscription tests.

    Each call consumes the next scripted outcome. Once the script is used
    up, calls hang like a long-poll with nothing new and `exhausted` is set.
    """

    def __init__(self, *outcomes: Any):
        self.outcomes = list(outcomes)
        self.calls: list[tuple] = []
        self.exhausted = asyncio.Event()

    def __call__(self, *args: Any, **kwargs: Any):
        self.calls.append(args)
        return self._respond()

    async def _respond(self) -> Any:
        if not self.outcomes:
            self.exhausted.set()
            await asyncio.Event().wait()
        return self.outcomes.pop(0)


def events_body(*events: dict) -> dict:
    return {"result": "success", "msg": "", "events": list(events)}


def message_event(event_id: int, content: str = "hello") -> dict:
    return {
        "id": event_id,
        "type": "message",
        "message": {"id": 1000 + event_id, "content": content, "type": "stream"},
    }


def heartbeat(event_id: int) -> dict:
    return {"id": event_id, "type": "heartbeat"}


def json_response(status: int, body: dict) -> httpx.Response:
    return httpx.Response(
        status,
        content=json.dumps(body).encode(),
        headers={"content-type": "application/json"},
    )
