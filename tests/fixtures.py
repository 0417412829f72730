"""Fake Copilot upstream and app builders for tests."""

import json
from collections.abc import AsyncIterable

import httpx
from fastapi import FastAPI
from starlette.requests import Request

from copilot_proxy.api.handlers import ProxyHandler
from copilot_proxy.common.token_provider import SharedTokenProvider
from copilot_proxy.config.settings import Config
from copilot_proxy.core.clients import CopilotServiceClient
from copilot_proxy.main import create_app

UPSTREAM_BASE = "https://api.githubcopilot.com"


class FakeUpstream:
    """Records every upstream request and answers with a configured response."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.headers: dict[str, str] = {"content-type": "application/json"}
        self.body: bytes | AsyncIterable[bytes] = b'{"id": "resp_123", "object": "response"}'
        self.error: Exception | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, headers=self.headers, content=self.body)

    @property
    def last_request(self) -> httpx.Request:
        assert self.requests, "upstream was never called"
        return self.requests[-1]

    def last_json(self):
        return json.loads(self.last_request.content)


def build_handler(upstream: FakeUpstream, shared_token: str | None = None) -> ProxyHandler:
    config = Config()
    client = CopilotServiceClient(config.upstream, transport=httpx.MockTransport(upstream))
    return ProxyHandler(config, client, SharedTokenProvider(shared_token))


def build_app(upstream: FakeUpstream, shared_token: str | None = None) -> FastAPI:
    """App wired to the fake upstream; lifespan is not needed."""
    handler = build_handler(upstream, shared_token)
    app = create_app(handler.config)
    app.state.proxy_handler = handler
    return app


def make_request(
    body: bytes = b"",
    headers: dict[str, str] | None = None,
    method: str = "POST",
    path: str = "/v1/responses",
) -> Request:
    """Build a bare starlette Request for calling ProxyHandler.forward directly."""
    raw_headers = [
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in (headers or {}).items()
    ]
    scope = {
        "type": "http",
        "method": method,
        "scheme": "http",
        "server": ("testserver", 80),
        "root_path": "",
        "path": path,
        "query_string": b"",
        "headers": raw_headers,
    }

    async def receive():
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)
