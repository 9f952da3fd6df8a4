"""Shared fixtures: a test config and clients wired to in-process transports."""

from urllib.parse import parse_qs

import httpx
import pytest

from clients import CloudLinkClient
from schemas import ClientConfig

HOST = "https://cloudlink.test/api/"


class Recorder:
    """MockTransport handler that records requests and replies with a fixed body."""

    def __init__(self, body: str = "{}", status_code: int = 200):
        self.body = body
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, text=self.body)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def form(self, index: int = -1) -> dict[str, str]:
        """Decoded form body of a recorded request, one value per field."""
        parsed = parse_qs(self.requests[index].content.decode(), keep_blank_values=True)
        return {k: v[0] for k, v in parsed.items()}


class AsyncWSGITransport(httpx.AsyncBaseTransport):
    """Runs a WSGI app in-process behind an async client."""

    def __init__(self, app):
        self._wsgi = httpx.WSGITransport(app=app)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        await request.aread()
        response = self._wsgi.handle_request(request)
        content = response.read()
        return httpx.Response(
            status_code=response.status_code,
            headers=response.headers,
            content=content,
        )


@pytest.fixture
def client_config() -> ClientConfig:
    return ClientConfig(host=HOST, username="mi5", password="secret")


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def client(client_config, recorder) -> CloudLinkClient:
    return CloudLinkClient(client_config, transport=httpx.MockTransport(recorder))
