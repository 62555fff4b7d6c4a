"""FastAPI application factory and server entrypoint."""

import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from starlette.types import ASGIApp, Receive, Scope, Send

from posts_proxy import metrics as app_metrics
from posts_proxy.config import Settings
from posts_proxy.errors import InternalError, InvalidInputError, PostsError
from posts_proxy.posts_client import PostsApiClient
from posts_proxy.posts_service import PostsService
from posts_proxy.routes import router as posts_router
from posts_proxy.telemetry import (
    add_trace_context,
    configure_stdlib_logging,
    emit_to_otel_logs,
    init_telemetry,
    shutdown_telemetry,
)

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_trace_context,  # type: ignore[list-item]
        emit_to_otel_logs,  # type: ignore[list-item]
        structlog.processors.format_exc_info,
        structlog.dev.ConsoleRenderer(),
    ],
)

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings | None = getattr(app.state, "settings", None)
    if settings is None:
        settings = Settings()
        app.state.settings = settings
    init_telemetry()
    client = PostsApiClient(settings.post_api, timeout=settings.upstream_timeout_seconds)
    app.state.posts_client = client
    app.state.posts_service = PostsService(client, list_delay=settings.list_delay_seconds)

    await log.ainfo(
        "service started", post_api=settings.post_api, list_delay=settings.list_delay_seconds
    )
    yield

    await client.close()
    await log.ainfo("service stopped")
    shutdown_telemetry()


class SettingsCORSMiddleware:
    """CORS for ``settings.frontend_url``, resolved from app state on the first request.

    Settings may only exist once the lifespan has run, so the wrapped
    CORSMiddleware is built lazily.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app
        self._cors: CORSMiddleware | None = None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return
        if self._cors is None:
            settings: Settings = scope["app"].state.settings
            self._cors = CORSMiddleware(
                self.app,
                allow_origins=[settings.frontend_url],
                allow_methods=["GET", "POST", "PATCH"],
                allow_headers=["*"],
            )
        await self._cors(scope, receive, send)


async def _log_requests(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    start = time.monotonic()
    bound_log = log.bind(method=request.method, path=request.url.path)
    await bound_log.ainfo(
        "request_received",
        query=dict(request.query_params) or None,
        body_bytes=int(request.headers.get("content-length", 0)) or None,
    )
    try:
        response = await call_next(request)
    except Exception as exc:
        # Answer here so the outer CORS layer still decorates the 500.
        response = await _handle_unexpected(request, exc)
    app_metrics.http_requests_total.add(
        1, {"method": request.method, "status": response.status_code}
    )
    await bound_log.ainfo(
        "request_completed",
        status=response.status_code,
        duration_ms=round((time.monotonic() - start) * 1000, 1),
    )
    return response


async def _handle_posts_error(request: Request, exc: PostsError) -> JSONResponse:
    if exc.status_code >= 500:
        await log.awarning(
            "request_failed",
            path=request.url.path,
            error=exc.kind,
            detail=exc.message,
            upstream_status=exc.upstream_status,
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def _field_name(loc: tuple[int | str, ...]) -> str:
    """Drop the leading source segment: ("body", "title") -> "title"."""
    return ".".join(str(p) for p in loc[1:]) or str(loc[0])


async def _handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = [{"field": _field_name(err["loc"]), "message": err["msg"]} for err in exc.errors()]
    error = InvalidInputError("Request validation failed")
    return JSONResponse(
        status_code=error.status_code, content=error.to_dict() | {"details": details}
    )


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    await log.aexception("unhandled_error", path=request.url.path, exc_info=exc)
    error = InternalError("Internal server error")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application.

    Without ``settings`` they are loaded from the environment by the lifespan,
    so a missing POST_API aborts startup.
    """
    app = FastAPI(title="Posts Proxy", lifespan=lifespan)
    if settings is not None:
        app.state.settings = settings
    app.include_router(posts_router)

    app.add_exception_handler(PostsError, _handle_posts_error)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError, _handle_request_validation  # type: ignore[arg-type]
    )
    app.add_exception_handler(Exception, _handle_unexpected)

    app.middleware("http")(_log_requests)
    app.add_middleware(SettingsCORSMiddleware)
    FastAPIInstrumentor.instrument_app(app)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()


def run() -> None:
    """Console entrypoint: load settings, fail fast if invalid, and serve with uvicorn."""
    settings = Settings()
    configure_stdlib_logging(settings.log_level)
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(level))
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_config=None,
        log_level=settings.log_level,
    )
