"""Tests for the request dispatcher."""

import asyncio

import httpx
import pytest

from zulip_client.client.dispatch import request, request_options
from zulip_client.client.errors import ErrorKind, ZulipError
from zulip_client.client.transport import Verb


class TestRequestOptions:
    @pytest.mark.parametrize(
        "verb,slot",
        [(Verb.GET, "params"), (Verb.POST, "data"), (Verb.PATCH, "params")],
    )
    def test_argument_slot_per_verb(self, verb, slot):
        options = request_options(verb)
        assert options.verb is verb
        assert options.arg_slot == slot

    def test_accepts_lowercase_strings(self):
        assert request_options("post").verb is Verb.POST

    def test_rejects_unsupported_verbs(self):
        with pytest.raises(ValueError):
            request_options("DELETE")


class TestRequest:
    async def test_returns_awaitable_task(self, connection):
        task = request(Verb.GET, connection, "users")

        assert isinstance(task, asyncio.Task)
        assert await task == {"result": "success", "msg": ""}

    async def test_post_sends_form_body(self, connection, recorder):
        await request(Verb.POST, connection, "messages", {"type": "stream", "to": "general"})

        assert recorder.last.method == "POST"
        assert recorder.form(recorder.last) == {"type": "stream", "to": "general"}
        assert recorder.last.url.params == httpx.QueryParams()

    async def test_patch_sends_query_params(self, connection, recorder):
        await request(Verb.PATCH, connection, "messages/42", {"content": "edited"})

        assert recorder.last.method == "PATCH"
        assert recorder.query(recorder.last) == {"content": "edited"}

    async def test_default_args_are_empty(self, connection, recorder):
        await request(Verb.GET, connection, "users")

        assert recorder.query(recorder.last) == {}

    async def test_error_is_the_value_not_raised(self, connection, recorder):
        recorder.route("GET", "users", httpx.Response(401))

        outcome = await request(Verb.GET, connection, "users")

        assert isinstance(outcome, ZulipError)
        assert outcome.kind is ErrorKind.UNAUTHORIZED

    async def test_requests_run_concurrently(self, connection, recorder):
        tasks = [request(Verb.GET, connection, f"messages/{i}") for i in range(3)]

        outcomes = await asyncio.gather(*tasks)

        assert len(outcomes) == 3
        assert len(recorder.requests) == 3
