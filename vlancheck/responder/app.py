"""HTTP responder probed by peer checkers.

Routes::

    GET /ip    -> 200 text/plain, the caller's source address
    GET /info  -> 200 application/json, this host's networks and hostname
    *          -> 404 text/plain

Usage::

    app = create_app(registry)
    serve(registry, port=9999)
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..inventory.network_registry import NetworkRegistry

logger = logging.getLogger(__name__)

DEFAULT_BIND_HOST = "::"
NOT_FOUND_BODY = "404 - Not Found"


def build_info(registry: NetworkRegistry) -> dict[str, object]:
    """Return the ``/info`` document for ``registry``."""
    return {
        "networks": {net.name: net.to_info() for net in registry.networks},
        "hostname": registry.hostname,
    }


def create_app(registry: NetworkRegistry) -> FastAPI:
    """Build the responder application for ``registry``."""
    app = FastAPI(title="vlancheck responder", docs_url=None, redoc_url=None, openapi_url=None)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> PlainTextResponse:
        if exc.status_code == 404:
            return PlainTextResponse(NOT_FOUND_BODY, status_code=404)
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code)

    @app.get("/ip", response_class=PlainTextResponse)
    async def ip(request: Request) -> PlainTextResponse:
        remote = request.client.host if request.client else ""
        logger.debug("/ip from %s", remote)
        return PlainTextResponse(remote)

    @app.get("/info")
    async def info() -> JSONResponse:
        return JSONResponse(build_info(registry))

    return app


def serve(
    registry: NetworkRegistry,
    port: int,
    host: str = DEFAULT_BIND_HOST,
) -> None:
    """Serve the responder until interrupted."""
    import uvicorn

    logger.info("Listening on %s:%d", host, port)
    uvicorn.run(create_app(registry), host=host, port=port, log_level="warning")
