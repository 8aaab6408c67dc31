"""Preview Host - throwaway static previews on random subdomains.

This FastAPI service accepts a gzipped tarball of a static site and makes
it reachable at ``<slug>.<base_domain>``.

Endpoints:
    POST /upload - Upload a bundle (multipart field "file"), returns the preview URL
    *    /{path} - Any other request is routed by Host header to a preview directory

Security:
    - Uploads require the shared bearer token and must arrive on the bare base domain
    - Uploads from any other host get 404, the same as a missing route
    - Host headers are re-validated on every request before touching the filesystem
    - Upload bodies are capped at MAX_UPLOAD_SIZE before multipart parsing

Responses from /upload always have the shape {"preview_url": ...}; on
failure the field carries a short error message. Routing failures are an
empty 404.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .auth import authorize_upload
from .config import Config
from .errors import (
    PayloadTooLargeError,
    RoutingError,
    StaticServeError,
    UploadError,
    ValidationError,
)
from .ingest import extract_bundle
from .router import resolve_site
from .slugs import SlugAllocator
from .static_files import StaticFileServer

_LOG = logging.getLogger(__name__)

# =============================================================================
# Configuration
# =============================================================================

MAX_UPLOAD_SIZE: int = 50 * 1024 * 1024
"""Maximum upload body size in bytes (50 MiB)."""

UPLOAD_PATH: str = "/upload"
"""Path of the upload endpoint."""

UPLOAD_FIELD: str = "file"
"""Multipart field holding the bundle."""

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


# =============================================================================
# Models
# =============================================================================


class UploadResponse(BaseModel):
    """Response body for POST /upload.

    Attributes:
        preview_url: Public URL of the new preview, or an error message.
    """

    preview_url: str


# =============================================================================
# Dependencies
# =============================================================================


def get_config(request: Request) -> Config:
    """Configuration the application was created with."""
    return request.app.state.config


def get_allocator(request: Request) -> SlugAllocator:
    """Slug allocator bound to the configured data directory."""
    return request.app.state.allocator


# =============================================================================
# Upload Size Limit
# =============================================================================


class UploadSizeLimitMiddleware:
    """Reject upload bodies larger than ``max_size``.

    A declared Content-Length over the limit is refused before the
    application sees the request. Bodies without a usable Content-Length
    are counted as they stream in, and the read fails once the limit is
    crossed.
    """

    def __init__(self, app: ASGIApp, max_size: int = MAX_UPLOAD_SIZE, path: str = UPLOAD_PATH) -> None:
        self.app = app
        self.max_size = max_size
        self.path = path

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] != "POST" or scope["path"] != self.path:
            await self.app(scope, receive, send)
            return

        content_length = _content_length(scope)
        if content_length is not None and content_length > self.max_size:
            _LOG.warning("Rejected upload of %d bytes (limit %d)", content_length, self.max_size)
            response = JSONResponse(
                {"preview_url": PayloadTooLargeError.detail},
                status_code=PayloadTooLargeError.status_code,
            )
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_size:
                    _LOG.warning("Upload body exceeded %d bytes while streaming", self.max_size)
                    raise PayloadTooLargeError()
            return message

        await self.app(scope, limited_receive, send)


def _content_length(scope: Scope) -> int | None:
    for name, value in scope.get("headers", []):
        if name == b"content-length":
            try:
                return int(value)
            except ValueError:
                return None
    return None


# =============================================================================
# Upload
# =============================================================================


async def read_bundle(request: Request) -> bytes:
    """Read the bytes of the first multipart field named "file".

    Args:
        request: Incoming upload request.

    Returns:
        Raw bundle bytes.

    Raises:
        ValidationError: Body is not valid multipart, or has no file field.
    """
    try:
        async with request.form(max_part_size=MAX_UPLOAD_SIZE) as form:
            for value in form.getlist(UPLOAD_FIELD):
                if isinstance(value, UploadFile):
                    return await value.read()
    except (StarletteHTTPException, MultiPartException) as e:
        _LOG.warning("Malformed multipart upload: %s", e)
        raise ValidationError() from e

    _LOG.warning("Upload without a '%s' field", UPLOAD_FIELD)
    raise ValidationError()


router = APIRouter()


@router.post(UPLOAD_PATH, response_model=UploadResponse)
async def upload(
    request: Request,
    authorization: str | None = Header(None),
    config: Config = Depends(get_config),
    allocator: SlugAllocator = Depends(get_allocator),
) -> UploadResponse:
    """Publish a bundle under a fresh random subdomain.

    Checks the token and host, reads the bundle, reserves a slug directory
    and extracts into it. Filesystem work runs in the threadpool.
    """
    authorize_upload(authorization, request.headers.get("host"), config)

    bundle = await read_bundle(request)

    slug, site_dir = await run_in_threadpool(allocator.allocate)
    await run_in_threadpool(extract_bundle, bundle, site_dir)

    preview_url = config.preview_url(slug)
    _LOG.info("Published %s (%d bytes) at %s", slug, len(bundle), preview_url)
    return UploadResponse(preview_url=preview_url)


# =============================================================================
# Preview Serving
# =============================================================================


@router.api_route("/{path:path}", methods=ALL_METHODS, include_in_schema=False)
async def serve_preview(
    request: Request,
    path: str,
    config: Config = Depends(get_config),
) -> Response:
    """Serve a file from the preview named by the Host header."""
    site_dir = resolve_site(request.headers.get("host"), config)
    _LOG.info("Serving static files from: %s", site_dir)
    return StaticFileServer(site_dir).serve(path, request.method, request.url.query)


# =============================================================================
# Error Handlers
# =============================================================================


async def handle_upload_error(request: Request, exc: UploadError) -> JSONResponse:
    return JSONResponse({"preview_url": exc.detail}, status_code=exc.status_code)


async def handle_routing_error(request: Request, exc: RoutingError) -> Response:
    if isinstance(exc, StaticServeError):
        _LOG.warning("Error serving static files: %s", exc)
    return Response(status_code=404)


async def handle_method_not_allowed(request: Request, exc: StarletteHTTPException) -> Response:
    # Methods outside ALL_METHODS (TRACE, PROPFIND, ...) answer like any routing miss
    _LOG.warning("Unrouted method %s %s", request.method, request.url.path)
    return Response(status_code=404)


# =============================================================================
# Application Factory
# =============================================================================


def create_app(config: Config, allocator: SlugAllocator | None = None) -> FastAPI:
    """Build the preview host application.

    Args:
        config: Configuration shared read-only by every request.
        allocator: Slug allocator to use; defaults to one over
            ``config.data_dir``.

    Returns:
        The configured FastAPI application.
    """
    app = FastAPI(
        title="Preview Host",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.config = config
    app.state.allocator = allocator or SlugAllocator(config.data_dir)

    app.add_middleware(UploadSizeLimitMiddleware, max_size=MAX_UPLOAD_SIZE)
    app.add_exception_handler(UploadError, handle_upload_error)
    app.add_exception_handler(RoutingError, handle_routing_error)
    app.add_exception_handler(405, handle_method_not_allowed)
    app.include_router(router)
    return app
