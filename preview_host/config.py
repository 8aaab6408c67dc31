"""Process-wide configuration for the preview host.

The configuration is built once at startup and handed to ``create_app``.
Request handlers read it through the ``get_config`` dependency; nothing
else in the package reads the environment.

Environment Variables:
    PV_DATA_DIR: Directory holding one subdirectory per preview (default: data)
    PV_BASE_DOMAIN: Domain uploads are accepted at (default: localhost:3000)
    PV_API_TOKEN: Shared bearer token required for uploads (required)
    PV_USE_HTTPS: Build https:// preview URLs (default: false)
    PV_LOG_LEVEL: Logging level for the entry point (default: INFO)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigError

# =============================================================================
# Defaults
# =============================================================================

DEFAULT_DATA_DIR: str = "data"
"""Data directory used when PV_DATA_DIR is unset."""

DEFAULT_BASE_DOMAIN: str = "localhost:3000"
"""Base domain used when PV_BASE_DOMAIN is unset."""

DEFAULT_HOST: str = "0.0.0.0"
"""Interface the HTTP server binds to."""

DEFAULT_PORT: int = 3000
"""Port the HTTP server listens on."""

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def parse_bool(value: str) -> bool:
    """Parse a boolean environment value.

    Args:
        value: Raw string such as "true", "0" or "yes".

    Returns:
        The parsed boolean.

    Raises:
        ConfigError: If the value is not a recognised boolean.
    """
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigError(f"Invalid boolean value: {value!r}")


@dataclass(frozen=True)
class Config:
    """Immutable settings shared read-only by every request.

    Attributes:
        data_dir: Directory containing one subdirectory per preview site.
        base_domain: Host (optionally with port) uploads are accepted at.
        api_token: Shared bearer token for uploads.
        use_https: Whether generated preview URLs use https.
    """

    data_dir: Path
    base_domain: str
    api_token: str
    use_https: bool = False

    def __post_init__(self) -> None:
        if not self.api_token:
            raise ConfigError("API token is required (set PV_API_TOKEN or --api-token)")
        if not self.base_domain:
            raise ConfigError("Base domain must not be empty")

    @property
    def scheme(self) -> str:
        """URL scheme for generated preview URLs."""
        return "https" if self.use_https else "http"

    def preview_url(self, slug: str) -> str:
        """Build the public URL for a preview slug."""
        return f"{self.scheme}://{slug}.{self.base_domain}"

    def site_dir(self, slug: str) -> Path:
        """Directory backing the preview for ``slug``."""
        return self.data_dir / slug

    @classmethod
    def from_env(
        cls,
        environ: dict[str, str] | None = None,
        **overrides,
    ) -> Config:
        """Build a Config from PV_* environment variables.

        Keyword overrides that are not None take precedence over the
        environment, which is how command line flags are applied.

        Args:
            environ: Mapping to read instead of ``os.environ``.
            **overrides: data_dir, base_domain, api_token or use_https.

        Returns:
            The resulting configuration.

        Raises:
            ConfigError: If the token is missing or a value is malformed.
        """
        env = os.environ if environ is None else environ

        values = {
            "data_dir": env.get("PV_DATA_DIR", DEFAULT_DATA_DIR),
            "base_domain": env.get("PV_BASE_DOMAIN", DEFAULT_BASE_DOMAIN),
            "api_token": env.get("PV_API_TOKEN", ""),
            "use_https": parse_bool(env.get("PV_USE_HTTPS", "false")),
        }
        for key, value in overrides.items():
            if key not in values:
                raise TypeError(f"Unknown config option: {key}")
            if value is not None:
                values[key] = value

        return cls(
            data_dir=Path(values["data_dir"]),
            base_domain=values["base_domain"],
            api_token=values["api_token"],
            use_https=values["use_https"],
        )
