"""Preview Host - server entry point."""

from __future__ import annotations

import argparse
import logging
import os
import sys

import uvicorn

from .app import create_app
from .config import DEFAULT_HOST, DEFAULT_PORT, Config
from .errors import ConfigError

_LOG = logging.getLogger("preview_host")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(threadName)s %(filename)s:%(lineno)d: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    """Command line flags; each one overrides its PV_* environment variable."""
    parser = argparse.ArgumentParser(
        prog="preview-host",
        description="Host uploaded static site bundles on random subdomains",
    )
    parser.add_argument("--data-dir", help="Directory for preview sites (env: PV_DATA_DIR)")
    parser.add_argument("--base-domain", help="Domain uploads are accepted at (env: PV_BASE_DOMAIN)")
    parser.add_argument("--api-token", help="Bearer token required for uploads (env: PV_API_TOKEN)")
    parser.add_argument(
        "--use-https",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Generate https:// preview URLs (env: PV_USE_HTTPS)",
    )
    parser.add_argument("--host", default=DEFAULT_HOST, help=f"Bind address (default {DEFAULT_HOST})")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help=f"Bind port (default {DEFAULT_PORT})")
    parser.add_argument(
        "--log-level",
        default=os.getenv("PV_LOG_LEVEL", "INFO"),
        help="Logging level (env: PV_LOG_LEVEL, default INFO)",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    try:
        config = Config.from_env(
            data_dir=args.data_dir,
            base_domain=args.base_domain,
            api_token=args.api_token,
            use_https=args.use_https,
        )
    except ConfigError as e:
        _LOG.error("Invalid configuration: %s", e)
        sys.exit(1)

    try:
        config.data_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        _LOG.error("Failed to create data directory %s: %s", config.data_dir, e)
        sys.exit(1)

    app = create_app(config)

    _LOG.info("Server running on %s://%s", config.scheme, config.base_domain)
    uvicorn.run(app, host=args.host, port=args.port, log_config=None)


if __name__ == "__main__":
    main()
