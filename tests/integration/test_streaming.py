"""Streaming relay tests: upstream bodies must reach the caller chunk by chunk."""

import asyncio
import json

import pytest
from fastapi.responses import StreamingResponse
from fastapi.testclient import TestClient

from tests.fixtures import FakeUpstream, build_app, build_handler, make_request

AUTH = {"authorization": "Bearer abc", "accept": "text/event-stream"}


def sse_event(data: dict) -> bytes:
    return f"event: {data['type']}\ndata: {json.dumps(data)}\n\n".encode()


class TestStreamingRelay:
    """Calls ProxyHandler.forward directly to observe the relay incrementally."""

    @pytest.mark.asyncio
    async def test_first_chunk_delivered_before_upstream_finishes(self):
        upstream = FakeUpstream()
        upstream.headers = {"content-type": "text/event-stream"}
        produced = []
        release = asyncio.Event()

        async def body():
            produced.append("created")
            yield sse_event({"type": "response.created"})
            await release.wait()
            produced.append("completed")
            yield sse_event({"type": "response.completed"})

        upstream.body = body()
        handler = build_handler(upstream)

        request = make_request(json.dumps({"input": "hi", "stream": True}).encode(), AUTH)
        response = await handler.forward(request, "/v1/responses", normalize=True)

        assert isinstance(response, StreamingResponse)
        assert response.status_code == 200
        assert response.headers["content-type"] == "text/event-stream"

        iterator = response.body_iterator
        first = await iterator.__anext__()
        assert first == sse_event({"type": "response.created"})
        # the upstream is still blocked on its second event
        assert produced == ["created"]

        release.set()
        rest = [chunk async for chunk in iterator]
        assert rest == [sse_event({"type": "response.completed"})]
        assert produced == ["created", "completed"]
        await handler.aclose()

    @pytest.mark.asyncio
    async def test_large_body_relayed_chunk_by_chunk(self):
        upstream = FakeUpstream()
        upstream.headers = {"content-type": "application/octet-stream"}
        chunk = b"x" * 16384
        chunk_count = 256
        sent = 0

        async def body():
            nonlocal sent
            for _ in range(chunk_count):
                sent += 1
                yield chunk

        upstream.body = body()
        handler = build_handler(upstream)

        request = make_request(b'{"input": "big"}', AUTH)
        response = await handler.forward(request, "/v1/responses", normalize=True)

        received = 0
        async for relayed in response.body_iterator:
            received += 1
            assert relayed == chunk
            # never more than one chunk ahead of the caller
            assert sent == received
        assert received == chunk_count
        await handler.aclose()

    @pytest.mark.asyncio
    async def test_abandoned_relay_stops_reading_upstream(self):
        upstream = FakeUpstream()
        produced = []

        async def body():
            for index in range(10):
                produced.append(index)
                yield f"chunk-{index}\n".encode()

        upstream.body = body()
        handler = build_handler(upstream)

        response = await handler.forward(make_request(b'{"input": "x"}', AUTH), "/v1/responses")
        iterator = response.body_iterator
        assert await iterator.__anext__() == b"chunk-0\n"
        await iterator.aclose()

        assert produced == [0]
        await handler.aclose()


class TestStreamingThroughApp:
    """End-to-end streaming through the ASGI app."""

    def test_sse_events_relayed_in_order(self):
        upstream = FakeUpstream()
        upstream.headers = {"content-type": "text/event-stream; charset=utf-8"}
        events = [
            {"type": "response.created"},
            {"type": "response.output_text.delta", "delta": "Hel"},
            {"type": "response.output_text.delta", "delta": "lo"},
            {"type": "response.completed"},
        ]

        async def body():
            for event in events:
                yield sse_event(event)

        upstream.body = body()
        client = TestClient(build_app(upstream))

        payload = {"messages": [{"role": "user", "content": "hi"}], "stream": True}
        with client.stream("POST", "/v1/responses", headers=AUTH, json=payload) as response:
            assert response.status_code == 200
            assert response.headers["content-type"] == "text/event-stream; charset=utf-8"

            received = []
            for line in response.iter_lines():
                if line.startswith("data: "):
                    received.append(json.loads(line[len("data: "):]))

        assert received == events
        assert upstream.last_json()["stream"] is True

    @pytest.mark.asyncio
    async def test_first_chunk_passes_middleware_before_upstream_finishes(self):
        upstream = FakeUpstream()
        upstream.headers = {"content-type": "text/event-stream"}
        produced = []
        release = asyncio.Event()

        async def body():
            produced.append("created")
            yield sse_event({"type": "response.created"})
            await release.wait()
            produced.append("completed")
            yield sse_event({"type": "response.completed"})

        upstream.body = body()
        app = build_app(upstream)

        request_body = json.dumps({"messages": [{"content": "hi"}], "stream": True}).encode()
        scope = {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": "POST",
            "scheme": "http",
            "server": ("testserver", 80),
            "client": ("testclient", 50000),
            "root_path": "",
            "path": "/v1/responses",
            "raw_path": b"/v1/responses",
            "query_string": b"",
            "headers": [
                (name.encode("latin-1"), value.encode("latin-1")) for name, value in AUTH.items()
            ],
        }
        request_sent = False

        async def receive():
            nonlocal request_sent
            if not request_sent:
                request_sent = True
                return {"type": "http.request", "body": request_body, "more_body": False}
            # the client stays connected until the response completes
            await asyncio.Event().wait()

        messages = []
        first_chunk_sent = asyncio.Event()

        async def send(message):
            messages.append(message)
            if message["type"] == "http.response.body" and message.get("body"):
                first_chunk_sent.set()

        task = asyncio.create_task(app(scope, receive, send))
        try:
            await asyncio.wait_for(first_chunk_sent.wait(), timeout=5)

            assert messages[0]["type"] == "http.response.start"
            assert messages[0]["status"] == 200
            chunks = [m["body"] for m in messages if m["type"] == "http.response.body" and m.get("body")]
            assert chunks == [sse_event({"type": "response.created"})]
            # the upstream is still blocked on its second event
            assert produced == ["created"]

            release.set()
            await asyncio.wait_for(task, timeout=5)
        finally:
            release.set()
            if not task.done():
                task.cancel()

        chunks = [m["body"] for m in messages if m["type"] == "http.response.body" and m.get("body")]
        assert b"".join(chunks) == sse_event({"type": "response.created"}) + sse_event(
            {"type": "response.completed"}
        )
        assert produced == ["created", "completed"]
        await app.state.proxy_handler.aclose()
