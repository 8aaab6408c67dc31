"""Host-based routing.

Every request that is not an upload is routed by its Host header. A
preview is reachable only at ``<slug>.<base_domain>``, and the slug must
name an existing directory under the data directory.

Example, with base domain ``localhost:3000``:
    river-stone-echo.localhost:3000 -> data/river-stone-echo
    localhost:3000                  -> not found (bare base domain)
    a.b.localhost:3000              -> not found (nested subdomain)
    ../etc.localhost:3000           -> not found (invalid characters)
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from .config import Config
from .errors import RouterNotFoundError

_LOG = logging.getLogger(__name__)

SUBDOMAIN_PATTERN = re.compile(r"^[A-Za-z0-9-]+$")
"""Characters allowed in a routed slug. The Host header is untrusted."""

MAX_LABEL_LENGTH: int = 63
"""Longest DNS label, and so the longest slug that can be routed."""


def validate_slug(slug: str) -> bool:
    """Check that a slug only contains ASCII letters, digits and hyphens.

    Args:
        slug: Candidate subdomain label.

    Returns:
        True if the slug is safe to use as a directory name.
    """
    if not slug or len(slug) > MAX_LABEL_LENGTH:
        return False
    return bool(SUBDOMAIN_PATTERN.fullmatch(slug))


def extract_slug(host: str | None, base_domain: str) -> str:
    """Derive the preview slug from a Host header.

    Args:
        host: Host header value.
        base_domain: Configured base domain.

    Returns:
        The validated slug.

    Raises:
        RouterNotFoundError: Host is the base domain itself, is not exactly
            one label below it, or the label has invalid characters.
    """
    if not host:
        _LOG.warning("Request without Host header")
        raise RouterNotFoundError()

    if host == base_domain:
        _LOG.warning("Request to base domain without subdomain")
        raise RouterNotFoundError()

    slug, sep, rest = host.partition(".")
    if not sep or rest != base_domain:
        _LOG.warning("Invalid hostname format: %s", host)
        raise RouterNotFoundError()

    if not validate_slug(slug):
        _LOG.warning("Invalid subdomain characters: %r", slug)
        raise RouterNotFoundError()

    return slug


def resolve_site(host: str | None, config: Config) -> Path:
    """Map a Host header to the directory of an existing preview.

    Args:
        host: Host header value.
        config: Active configuration.

    Returns:
        Path to the preview directory.

    Raises:
        RouterNotFoundError: The host does not name an existing preview.
    """
    slug = extract_slug(host, config.base_domain)
    site_dir = config.site_dir(slug)
    try:
        exists = site_dir.is_dir()
    except OSError as e:
        _LOG.warning("Cannot stat subdomain directory %r: %s", slug, e)
        raise RouterNotFoundError() from e
    if not exists:
        _LOG.warning("Subdomain directory not found: %s", slug)
        raise RouterNotFoundError()
    return site_dir
