"""Upload authorization.

Uploads need two things: the shared bearer token, and a Host header that
is exactly the base domain. Previews are only ever served from
subdomains, so an upload arriving on any other host is answered with the
same 404 a missing route would get.

The token is compared in constant time and is never written to the log.
"""

from __future__ import annotations

import hmac
import logging

from .config import Config
from .errors import AuthorizationError, HostMismatchError

_LOG = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: str | None) -> str | None:
    """Pull the token out of an ``Authorization: Bearer <token>`` header.

    Args:
        authorization: Raw Authorization header value, if any.

    Returns:
        The token, or None if the header is missing or not a bearer header.
    """
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


def verify_token(token: str | None, config: Config) -> bool:
    """Check a presented token against the configured API token."""
    if not token:
        return False
    return hmac.compare_digest(token.encode(), config.api_token.encode())


def authorize_upload(authorization: str | None, host: str | None, config: Config) -> None:
    """Gate an upload request.

    The credential is checked before the host, so a bad token is always a
    401 regardless of where the request came from.

    Args:
        authorization: Authorization header value.
        host: Host header value.
        config: Active configuration.

    Raises:
        AuthorizationError: Token missing or wrong.
        HostMismatchError: Host is not the base domain.
    """
    if not verify_token(extract_bearer_token(authorization), config):
        _LOG.warning("Invalid authorization token")
        raise AuthorizationError()

    if host != config.base_domain:
        _LOG.warning("Invalid host attempted upload: %s", host)
        raise HostMismatchError()
