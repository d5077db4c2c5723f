"""FastAPI route handlers."""

import logging

from fastapi import Request, Response
from fastapi.responses import PlainTextResponse, StreamingResponse

from core.config import Config
from core.exceptions import RelayError
from core.protocols import RequestLogger
from core.request_types import IncomingRequest, ReplayableBody
from core.target import resolve_target
from ui.log_utils import write_incoming_log

logger = logging.getLogger(__name__)


def _path_segment(request: Request) -> str:
    """Inbound path without its leading slash, percent-encoding preserved."""
    raw_path = request.scope.get("raw_path")
    path = raw_path.split(b"?", 1)[0].decode("latin-1") if raw_path else request.url.path
    return path[1:] if path.startswith("/") else path


def _has_body(request: Request) -> bool:
    if "transfer-encoding" in request.headers:
        return True
    try:
        return int(request.headers.get("content-length", "0")) > 0
    except ValueError:
        return False


def build_incoming_request(request: Request, replay: bool = True) -> IncomingRequest:
    """Capture the parts of the inbound request the relay forwards."""
    headers = [
        (key.decode("latin-1"), value.decode("latin-1")) for key, value in request.headers.raw
    ]
    body = ReplayableBody(request.stream(), replay=replay) if _has_body(request) else None
    return IncomingRequest(
        method=request.method,
        path_segment=_path_segment(request),
        headers=headers,
        query=request.query_params.multi_items(),
        body=body,
    )


async def handle_options(request: Request) -> Response:
    """Answer CORS preflight requests without forwarding."""
    rewriter = request.app.state.header_rewriter
    return Response(status_code=204, headers=rewriter.cors_headers())


async def handle_proxy(
    request: Request,
    config: Config,
    request_logger: RequestLogger,
) -> Response | StreamingResponse:
    """Resolve the target from the path and forward the request."""
    # Nothing can be resent when the budget allows no redirect hop
    incoming = build_incoming_request(request, replay=config.relay.max_redirects > 0)
    if config.proxy.debug:
        write_incoming_log(incoming.method, incoming.path_segment, dict(incoming.headers))

    try:
        target = resolve_target(incoming.path_segment, incoming.query)
        upstream = request.app.state.upstream_client
        return await upstream.forward(incoming, target)
    except RelayError as e:
        request_logger.log_error(
            incoming.path_segment or "/", e.status_code, str(e), request_id=incoming.request_id
        )
        return PlainTextResponse(str(e), status_code=e.status_code)
    except Exception as e:
        logger.exception("Unexpected failure relaying %s", incoming.path_segment)
        request_logger.log_error(
            incoming.path_segment or "/", 500, str(e), request_id=incoming.request_id
        )
        return PlainTextResponse(f"Error: {e}", status_code=500)
