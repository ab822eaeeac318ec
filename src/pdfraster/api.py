"""FastAPI application exposing the PDF rasterization pipeline."""

from __future__ import annotations

import secrets
import time
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers, UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException

from pdfraster import __version__
from pdfraster.converter import build_conversion_options, convert_document
from pdfraster.exceptions import BodyTooLargeError, ConversionError, MissingFileError, UnauthorizedError
from pdfraster.logging import bind_request_context, configure_logging, get_logger, reset_request_context
from pdfraster.settings import Settings, get_settings
from pdfraster.storage import S3ObjectStore
from pdfraster.typing.models import ConversionResponse, ErrorResponse, HealthResponse

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from starlette.responses import Response
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

    from pdfraster.typing.protocol import ObjectStore

logger = get_logger(__name__)

UPLOAD_FIELD = "file"


def _error_response(error: ConversionError) -> JSONResponse:
    """Render a conversion error as its JSON payload and status code."""
    payload = ErrorResponse(error=error.kind, message=error.message, page=error.page)
    return JSONResponse(status_code=error.status_code, content=payload.model_dump())


def _check_token(expected: str | None, supplied: str | None) -> None:
    """Reject the request when a token is configured and does not match.

    Args:
        expected (str | None): Configured token.
        supplied (str | None): Token sent by the caller.

    Raises:
        UnauthorizedError: If the token is missing or incorrect.
    """
    if not expected:
        return
    if supplied is None or not secrets.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8")):
        raise UnauthorizedError(message="Missing or invalid token")


class BodyLimitMiddleware:
    """Reject request bodies over ``limit`` bytes.

    A declared ``Content-Length`` over the limit is answered before the app
    runs. Bodies without one are counted while they stream in, and the
    receive call that crosses the limit raises `BodyTooLargeError`.
    """

    def __init__(self, app: ASGIApp, limit: int) -> None:
        self.app = app
        self.limit = limit

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        declared = Headers(scope=scope).get("content-length")
        if declared and declared.isdigit() and int(declared) > self.limit:
            response = _error_response(BodyTooLargeError(message=f"Request body exceeds the {self.limit} byte limit"))
            await response(scope, receive, send)
            return

        received = 0

        async def _counting_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.limit:
                    raise BodyTooLargeError(message=f"Request body exceeds the {self.limit} byte limit")
            return message

        await self.app(scope, _counting_receive, send)


async def _read_upload(request: Request, limit: int) -> bytes:
    """Read the PDF bytes from the multipart ``file`` field.

    Args:
        request (Request): Incoming request.
        limit (int): Maximum accepted size in bytes.

    Raises:
        MissingFileError: If the form has no ``file`` upload.
        BodyTooLargeError: If the upload exceeds the limit.

    Returns:
        bytes: Uploaded file content.
    """
    async with request.form() as form:
        upload = form.get(UPLOAD_FIELD)
        if not isinstance(upload, UploadFile):
            raise MissingFileError(message=f"Form does not contain a '{UPLOAD_FIELD}' field")
        data = await upload.read(limit + 1)
    if len(data) > limit:
        raise BodyTooLargeError(message=f"Upload exceeds the {limit} byte limit")
    return data


def create_app(settings: Settings | None = None, store: ObjectStore | None = None) -> FastAPI:
    """Build the HTTP application.

    Args:
        settings (Settings | None): Runtime settings; defaults to `get_settings()`.
        store (ObjectStore | None): Object store; built from settings on startup when omitted.

    Returns:
        FastAPI: Configured application.
    """
    config = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings=config)
        if app.state.store is None:
            app.state.store = S3ObjectStore.from_settings(config)
        logger.info("Service ready", extra={"body_limit": config.body_limit_bytes, "auth": bool(config.token)})
        yield

    app = FastAPI(title="pdfraster", version=__version__, lifespan=lifespan)
    app.state.settings = config
    app.state.store = store

    @app.exception_handler(ConversionError)
    async def _handle_conversion_error(request: Request, exc: ConversionError) -> JSONResponse:
        log = logger.warning if exc.status_code < 500 else logger.error  # noqa: PLR2004
        log(
            "Request failed",
            extra={"path": request.url.path, "error": exc.kind, "page": exc.page, "detail": exc.message},
        )
        return _error_response(exc)

    @app.exception_handler(StarletteHTTPException)
    async def _handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        logger.warning("HTTP error", extra={"path": request.url.path, "status": exc.status_code})
        payload = ErrorResponse(error="HTTPError", message=str(exc.detail))
        return JSONResponse(status_code=exc.status_code, content=payload.model_dump())

    @app.exception_handler(Exception)
    async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:  # noqa: ARG001
        logger.exception("Unexpected error", extra={"path": request.url.path})
        payload = ErrorResponse(error="InternalError", message="Internal Server Error")
        return JSONResponse(status_code=500, content=payload.model_dump())

    # Added before the http middlewares so it sits innermost, next to the exception handlers.
    app.add_middleware(BodyLimitMiddleware, limit=config.body_limit_bytes)

    @app.middleware("http")
    async def _trace(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        started = time.perf_counter()
        tokens = bind_request_context(method=request.method, path=request.url.path)
        try:
            response = await call_next(request)
            logger.info(
                "Request handled",
                extra={
                    "status": response.status_code,
                    "elapsed_ms": round((time.perf_counter() - started) * 1000, 1),
                },
            )
        finally:
            reset_request_context(tokens)
        return response

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse()

    @app.post("/", response_model=ConversionResponse)
    async def convert(
        request: Request,
        format: str | None = Query(default=None),  # noqa: A002
        pages: str | None = Query(default=None),
        scale: str | None = Query(default=None),
        password: str | None = Query(default=None),
        token: str | None = Query(default=None),
    ) -> ConversionResponse:
        """Rasterize the uploaded PDF and return the object keys in page order."""
        _check_token(config.token, token)
        options = build_conversion_options(format=format, scale=scale, password=password, pages=pages)
        data = await _read_upload(request, config.body_limit_bytes)
        keys = await convert_document(data, options, request.app.state.store, config)
        return ConversionResponse(images=keys)

    return app
