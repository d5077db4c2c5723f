# Ensure tests import the flat top-level packages (core, services, api, ui)
# from this directory regardless of where pytest is invoked.
import os
import sys

import httpx
import pytest

ROOT = os.path.dirname(__file__)
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from core.config import Config  # noqa: E402


class RecordingLogger:
    """RequestLogger stand-in that keeps every event."""

    def __init__(self):
        self.requests = []
        self.redirects = []
        self.responses = []
        self.errors = []
        self.error_ids = []

    def log_request(self, request_id, method, target):
        self.requests.append((request_id, method, target))

    def log_redirect(self, request_id, hop, status, location):
        self.redirects.append((request_id, hop, status, location))

    def log_response(self, request_id, status):
        self.responses.append((request_id, status))

    def log_error(self, route, status, message, request_id=None):
        self.errors.append((route, status, message))
        self.error_ids.append(request_id)


async def _unread(content: bytes):
    yield content


class UpstreamRecorder:
    """Mock upstream that records requests and answers from a handler.

    Responses built with bytes content are already read by httpx, so they are
    re-wrapped in an unread stream the way a real transport returns them.
    """

    def __init__(self, handler):
        self.handler = handler
        self.calls: list[httpx.Request] = []
        self.bodies: list[bytes] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        self.bodies.append(request.content)
        response = self.handler(request)
        try:
            content = response.content
        except httpx.ResponseNotRead:
            return response
        return httpx.Response(
            response.status_code,
            headers=response.headers,
            content=_unread(content),
        )

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def request_logger():
    return RecordingLogger()


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def upstream():
    """Factory for recording mock upstreams."""

    def _create(handler=None):
        handler = handler or (lambda request: httpx.Response(200, content=b"ok"))
        return UpstreamRecorder(handler)

    return _create
