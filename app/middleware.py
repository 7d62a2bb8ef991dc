from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Response, status
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

if TYPE_CHECKING:
    from fastapi import FastAPI, Request
    from starlette.middleware.base import RequestResponseEndpoint

    from app.config import Settings

MOBILE_PATH_PREFIX = "/api/mobile-"

MOBILE_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


class MobileCORSMiddleware(BaseHTTPMiddleware):
    """Open CORS for the native client endpoints.

    Every ``/api/mobile-*`` response carries the permissive headers and
    ``OPTIONS`` preflights are answered directly, before routing.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not request.url.path.startswith(MOBILE_PATH_PREFIX):
            return await call_next(request)

        if request.method == "OPTIONS":
            return Response(status_code=status.HTTP_200_OK, headers=MOBILE_CORS_HEADERS)

        response = await call_next(request)
        if "access-control-allow-credentials" in response.headers:
            del response.headers["access-control-allow-credentials"]
        response.headers.update(MOBILE_CORS_HEADERS)
        return response


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure application middleware.

    The mobile middleware is added last so it wraps the allow-list CORS
    middleware and sees mobile preflights first.
    """
    app.add_middleware(
        CORSMiddleware,  # ty: ignore[invalid-argument-type]
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(MobileCORSMiddleware)  # ty: ignore[invalid-argument-type]
