"""Shared pytest configuration and fixtures for the extraction proxy tests."""

import asyncio
from collections.abc import Callable

import httpx
import pytest
from fastapi.testclient import TestClient
from starlette.datastructures import UploadFile
from starlette.requests import Request

from app import create_app
from core.config import Config, load_config
from core.request_types import UploadedFile

TEST_TARGET = "https://dox.test"
TEST_SCHEMA = "SO_Auto_Extraction_Schema"


class RecordingLogger:
    """RequestLogger that keeps every message in memory."""

    def __init__(self):
        self.messages: list[tuple[str, str]] = []
        self.errors: list[tuple[str, int, str]] = []

    def debug(self, message: str) -> None:
        self.messages.append(("DEBUG", message))

    def info(self, message: str) -> None:
        self.messages.append(("INFO", message))

    def warning(self, message: str) -> None:
        self.messages.append(("WARNING", message))

    def log_request(self, method: str, path: str, route: str) -> None:
        self.messages.append(("INFO", f"[{method}] {path} ({route})"))

    def log_error(self, route: str, status: int, message: str) -> None:
        self.errors.append((route, status, message))


class StreamedBody(httpx.AsyncByteStream):
    """Response body handed out in chunks, the way a network transport does."""

    def __init__(self, body: bytes, chunk_size: int = 8):
        self._chunks = [body[i : i + chunk_size] for i in range(0, len(body), chunk_size)]

    async def __aiter__(self):
        for chunk in self._chunks:
            yield chunk


def streamed_response(status_code: int, body: bytes = b"", headers=None) -> httpx.Response:
    return httpx.Response(status_code, headers=headers, stream=StreamedBody(body))


class UpstreamRecorder:
    """Mock upstream: records every request it receives, answers with a canned response."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.responder: Callable[[httpx.Request], httpx.Response] = lambda request: streamed_response(
            200, b'{"status":"PENDING"}', {"content-type": "application/json"}
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


async def aparse_multipart(body: bytes, content_type: str) -> list[tuple[str, str | UploadedFile]]:
    """Decode a multipart body with Starlette's parser, files materialized."""
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/",
        "headers": [(b"content-type", content_type.encode("latin-1"))],
    }

    async def receive():
        return {"type": "http.request", "body": body, "more_body": False}

    form = await Request(scope, receive).form()
    items: list[tuple[str, str | UploadedFile]] = []
    for name, value in form.multi_items():
        if isinstance(value, UploadFile):
            items.append(
                (name, UploadedFile(name, value.filename, value.content_type, await value.read()))
            )
        else:
            items.append((name, value))
    await form.close()
    return items


def parse_multipart(body: bytes, content_type: str) -> list[tuple[str, str | UploadedFile]]:
    return asyncio.run(aparse_multipart(body, content_type))


@pytest.fixture
def test_config() -> Config:
    """Configuration as loaded on Cloud Foundry (no log file), pointing at the mock upstream."""
    return load_config({"VCAP_APPLICATION": "{}", "DOX_TARGET_URL": TEST_TARGET})


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def upstream() -> UpstreamRecorder:
    return UpstreamRecorder()


@pytest.fixture
def make_client(recording_logger, upstream):
    """Build a TestClient for a given config, wired to the mock upstream."""
    clients = []

    def _make(config: Config) -> TestClient:
        app = create_app(config, recording_logger, transport=httpx.MockTransport(upstream))
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client, test_config) -> TestClient:
    return make_client(test_config)
