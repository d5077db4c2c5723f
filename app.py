"""FastAPI application factory."""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from starlette.routing import Route

from api.handlers import handle_options, handle_proxy
from core.config import Config
from core.headers import HeaderRewriter
from core.protocols import RequestLogger
from services.upstream import UpstreamClient


def create_app(
    config: Config,
    logger: RequestLogger,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        limits = httpx.Limits(
            max_connections=config.limits.max_connections,
            max_keepalive_connections=config.limits.max_keepalive_connections,
        )
        # Redirects are followed by UpstreamClient so every hop is rewritten
        client = httpx.AsyncClient(
            timeout=config.relay.timeout,
            limits=limits,
            follow_redirects=False,
            transport=transport,
        )
        rewriter = HeaderRewriter(config.relay)
        app.state.header_rewriter = rewriter
        app.state.upstream_client = UpstreamClient(client, config.relay, logger, rewriter)
        try:
            yield
        finally:
            await client.aclose()

    app = FastAPI(
        title="CORS Relay",
        version="0.1.0",
        lifespan=lifespan,
        openapi_url=None,
        docs_url=None,
        redoc_url=None,
    )

    @app.options("/{path:path}")
    async def relay_preflight(request: Request):
        return await handle_options(request)

    async def relay(request: Request):
        return await handle_proxy(request, config, logger)

    # Starlette route without a method list: every non-OPTIONS method is relayed
    app.router.routes.append(Route("/{path:path}", relay, include_in_schema=False))

    return app
