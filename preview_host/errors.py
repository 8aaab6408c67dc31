"""Error taxonomy for the preview host.

Every failure a request can hit is one of these exceptions. They are
raised where the problem is detected and turned into an HTTP response by
the exception handlers registered in ``app.create_app``:

    UploadError subclasses  -> {"preview_url": detail} with their status
    RoutingError subclasses -> empty 404 body
"""

from __future__ import annotations


class PreviewError(Exception):
    """Base class for all preview host errors."""

    status_code: int = 500
    detail: str = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.detail)


class ConfigError(PreviewError):
    """Invalid or missing startup configuration."""

    detail = "Invalid configuration"


# =============================================================================
# Upload errors
# =============================================================================


class UploadError(PreviewError):
    """Failure on POST /upload, rendered as a JSON body."""


class AuthorizationError(UploadError):
    status_code = 401
    detail = "Unauthorized"


class HostMismatchError(UploadError):
    """Upload attempted from a host other than the base domain.

    Reported as 404 so untrusted hosts cannot confirm the upload endpoint
    exists.
    """

    status_code = 404
    detail = "Invalid host"


class ValidationError(UploadError):
    status_code = 400
    detail = "No file provided"


class PayloadTooLargeError(UploadError):
    status_code = 413
    detail = "Payload too large"


class IngestionError(UploadError):
    """The bundle could not be decompressed or unpacked."""

    status_code = 500
    detail = "Failed to extract archive"


class AllocationExhaustedError(UploadError):
    """Every generated slug collided with an existing preview."""

    status_code = 503
    detail = "No preview name available"


# =============================================================================
# Routing errors
# =============================================================================


class RoutingError(PreviewError):
    """Failure while serving a preview, always rendered as an empty 404."""

    status_code = 404
    detail = "Not found"


class RouterNotFoundError(RoutingError):
    """Host header does not name an existing preview."""


class StaticServeError(RoutingError):
    """The static file lookup failed inside an existing preview."""
