"""Static file lookup inside a preview directory."""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import quote

from starlette.responses import FileResponse, RedirectResponse, Response

from .errors import StaticServeError

_LOG = logging.getLogger(__name__)

INDEX_FILE: str = "index.html"
"""File served for directory-style paths."""

SERVABLE_METHODS = frozenset({"GET", "HEAD"})


class StaticFileServer:
    """Serve files from a directory tree with index.html fallback.

    A directory requested without a trailing slash is redirected to the
    slash form, so relative links inside its index page resolve against
    the directory rather than its parent.

    Attributes:
        root: Directory requests are resolved against.
        index_file: Name of the directory index file.
    """

    def __init__(self, root: Path, index_file: str = INDEX_FILE) -> None:
        self.root = root
        self.index_file = index_file

    def _locate(self, request_path: str) -> Path:
        """Resolve a request path to a location inside the root.

        Raises:
            StaticServeError: Path cannot be resolved or escapes the root.
        """
        root = self.root.resolve()
        relative = request_path.lstrip("/")
        try:
            candidate = (root / relative).resolve()
        except (OSError, ValueError) as e:
            raise StaticServeError(f"Unresolvable path: {request_path!r}") from e

        # Security: ensure we're still within the preview directory
        if not candidate.is_relative_to(root):
            raise StaticServeError(f"Path escapes root: {request_path}")
        return candidate

    def resolve(self, request_path: str) -> Path:
        """Find the file a request path refers to.

        Args:
            request_path: URL path (already percent-decoded), e.g. "/css/a.css".

        Returns:
            Absolute path of the file to serve.

        Raises:
            StaticServeError: Path escapes the root, or no file matches.
        """
        candidate = self._locate(request_path)
        try:
            if candidate.is_dir():
                candidate = candidate / self.index_file
            elif request_path.endswith("/"):
                raise StaticServeError(f"Not a directory: {request_path}")

            if not candidate.is_file():
                raise StaticServeError(f"File not found: {request_path}")
        except OSError as e:
            # e.g. ENAMETOOLONG for an overlong path segment
            raise StaticServeError(f"Cannot stat {request_path!r}: {e}") from e

        return candidate

    def needs_slash(self, request_path: str) -> bool:
        """Whether the path names a directory but lacks the trailing slash."""
        if not request_path.strip("/") or request_path.endswith("/"):
            return False
        try:
            return self._locate(request_path).is_dir()
        except OSError:
            return False

    def serve(self, request_path: str, method: str = "GET", query: str = "") -> Response:
        """Build the response for a request inside this tree.

        Args:
            request_path: URL path (already percent-decoded).
            method: HTTP method of the request.
            query: Raw query string, kept on directory redirects.

        Returns:
            A FileResponse, or a redirect to the slash form of a directory.

        Raises:
            StaticServeError: Unsupported method or missing file.
        """
        if method.upper() not in SERVABLE_METHODS:
            raise StaticServeError(f"Method not served: {method}")

        if self.needs_slash(request_path):
            location = quote("/" + request_path.lstrip("/") + "/")
            if query:
                location = f"{location}?{query}"
            _LOG.debug("Redirecting directory %s to %s", request_path, location)
            return RedirectResponse(location)

        file_path = self.resolve(request_path)
        _LOG.debug("Serving %s", file_path)
        return FileResponse(file_path)
