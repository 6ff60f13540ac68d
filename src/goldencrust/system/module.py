"""Plain HTTP routes: service banner and health check."""
from starlette.requests import Request

from goldencrust.core.responses import JSONResponse, Response
from goldencrust.core.routing import HttpModule


def create_system_module(version: str, store_backend: str) -> HttpModule:
    async def index(request: Request) -> Response:
        return JSONResponse({"service": "goldencrust", "version": version, "docs": "/docs"})

    async def health(request: Request) -> Response:
        return JSONResponse({"status": "ok", "store": store_backend})

    return HttpModule("system", prefix="").route("/", index).route("/health", health)
