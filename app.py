"""FastAPI application factory."""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request

from api.handlers import handle_proxy
from core.config import Config
from core.headers import HeaderBuilder
from core.protocols import RequestLogger
from core.router import RouteDecider
from core.transform import MetadataTransformer
from services.routing_service import RoutingService
from services.upstream import UpstreamClient

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


def create_app(
    config: Config,
    logger: RequestLogger,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        limits = httpx.Limits(max_connections=100, max_keepalive_connections=20)
        client = httpx.AsyncClient(
            base_url=config.target.base_url,
            timeout=config.target.timeout,
            limits=limits,
            transport=transport,
        )
        header_builder = HeaderBuilder()
        app.state.upstream_client = UpstreamClient(client, logger, header_builder)
        app.state.routing_service = RoutingService(
            logger=logger,
            decider=RouteDecider(),
            transformer=MetadataTransformer(config.schema_name, logger),
            header_builder=header_builder,
        )
        logger.info(f"Forwarding to {config.target.base_url} with schema {config.schema_name}")
        try:
            yield
        finally:
            await client.aclose()

    app = FastAPI(
        title="Sale Order Extraction Proxy",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    @app.api_route("/{path:path}", methods=PROXY_METHODS)
    async def proxy(request: Request):
        return await handle_proxy(request, config, logger)

    return app
