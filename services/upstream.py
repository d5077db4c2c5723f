"""HTTP forwarding to the resolved target with manual redirect following."""

import logging

import httpx
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from core.config import RelaySettings
from core.exceptions import TooManyRedirects, UpstreamTimeoutError, UpstreamUnavailable
from core.headers import HeaderRewriter
from core.protocols import RequestLogger
from core.request_types import IncomingRequest
from core.target import resolve_redirect

logger = logging.getLogger(__name__)

REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})


class UpstreamClient:
    """Forward requests to upstream targets with streaming support."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: RelaySettings,
        request_logger: RequestLogger,
        rewriter: HeaderRewriter | None = None,
    ) -> None:
        self._client = client
        self._settings = settings
        self._logger = request_logger
        self._headers = rewriter or HeaderRewriter(settings)

    async def forward(self, request: IncomingRequest, target: httpx.URL) -> StreamingResponse:
        """Forward the request, following up to ``max_redirects`` redirects.

        The inbound method, headers and body are reused unchanged on every hop,
        including 303 responses.

        Raises:
            TooManyRedirects: The chain is longer than the hop budget.
            UpstreamUnavailable: A hop could not reach its target.
            UpstreamTimeoutError: A hop exceeded its deadline.
            UnsupportedProtocol: A redirect points at a non-http(s) URL.
            InvalidRedirect: A redirect Location does not parse.
        """
        headers = self._headers.build_upstream_headers(request.headers)
        self._logger.log_request(request.request_id, request.method, str(target))

        hops = 0
        while True:
            if hops > self._settings.max_redirects:
                raise TooManyRedirects("Too many redirects")

            response = await self._send(request, target, headers)
            location = response.headers.get("location")
            if response.status_code not in REDIRECT_STATUSES or not location:
                return self._stream(request, response)

            await response.aclose()
            target = resolve_redirect(target, location)
            hops += 1
            logger.debug(
                "Request %s redirect hop %d (%d) -> %s",
                request.request_id,
                hops,
                response.status_code,
                target,
            )
            self._logger.log_redirect(request.request_id, hops, response.status_code, str(target))

    async def _send(
        self,
        request: IncomingRequest,
        target: httpx.URL,
        headers: httpx.Headers,
    ) -> httpx.Response:
        """Issue a single hop; the response is returned unread."""
        req = self._client.build_request(
            request.method,
            target,
            headers=headers,
            content=request.body,
            timeout=self._settings.timeout,
        )
        try:
            return await self._client.send(req, stream=True)
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError("Upstream timeout", target=str(target)) from e
        except httpx.RequestError as e:
            raise UpstreamUnavailable(f"Upstream connection error: {e}", target=str(target)) from e

    def _stream(
        self,
        request: IncomingRequest,
        response: httpx.Response,
    ) -> StreamingResponse:
        """Stream the terminal response back with sanitized headers."""
        self._logger.log_response(request.request_id, response.status_code)

        encoding = response.headers.encoding
        sanitized = self._headers.sanitize_response_headers(response.headers)

        streaming = StreamingResponse(
            response.aiter_raw(),
            status_code=response.status_code,
            background=BackgroundTask(self._cleanup_streaming, response),
        )
        streaming.raw_headers = [
            (key.lower().encode("latin-1"), value.encode(encoding)) for key, value in sanitized
        ]
        return streaming

    async def _cleanup_streaming(self, response: httpx.Response) -> None:
        """Clean up streaming resources."""
        await response.aclose()
