"""hookshim runtime entrypoint.

``main`` parses command-line flags, validates the accounts file, and starts
Granian with the ``hookshim.runtime:create_app`` factory. Flags are exported
as ``HOOKSHIM_*`` environment variables so the worker process, which only
sees the environment, builds the same configuration.

Flags and their environment fallbacks:

- ``-p`` / ``HOOKSHIM_PORT``: listen port (default ``9000``)
- ``-i`` / ``HOOKSHIM_POLL_INTERVAL``: seconds to visit every repository
  once (default ``5``)
- ``-c`` / ``HOOKSHIM_CONFIG``: accounts file (default ``config.json``)
- ``-d`` / ``HOOKSHIM_DATA_DIR``: cursor directory (default ``./data``)
- ``-v`` / ``HOOKSHIM_LOG_LEVEL``: debug logging (default ``INFO``)

``HOOKSHIM_HOST``, ``HOOKSHIM_DELIVERY_TIMEOUT``,
``HOOKSHIM_MAX_CONCURRENT_DELIVERIES`` and ``HOOKSHIM_SHUTDOWN_GRACE`` are
read from the environment only.

Run the service directly with ``python -m hookshim.runtime``.
"""

from __future__ import annotations

import argparse
import os
import typing as typ

from hookshim.config import ConfigError, RelaySettings, load_config
from hookshim.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi

    from hookshim.config import RelayConfig

__all__ = ["build_parser", "create_app", "main", "resolve_settings"]

logger = get_logger(__name__)

_FLAG_ENV_NAMES = {
    "port": "HOOKSHIM_PORT",
    "interval": "HOOKSHIM_POLL_INTERVAL",
    "config": "HOOKSHIM_CONFIG",
    "data_dir": "HOOKSHIM_DATA_DIR",
}


def build_parser() -> argparse.ArgumentParser:
    """Return the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="hookshim",
        description="Poll GitHub for issue renames and relay webhooks.",
    )
    parser.add_argument("-p", "--port", help="listen port for inbound webhooks")
    parser.add_argument(
        "-i", "--interval", help="seconds to poll every repository once"
    )
    parser.add_argument("-c", "--config", help="accounts file (JSON or YAML)")
    parser.add_argument("-d", "--data-dir", help="directory for cursor records")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="enable debug logging"
    )
    return parser


def resolve_settings(
    argv: list[str] | None = None,
    environ: typ.Mapping[str, str] | None = None,
) -> RelaySettings:
    """Merge command-line flags over ``HOOKSHIM_*`` variables.

    Raises
    ------
    ConfigError
        If any resulting value is malformed.

    """
    args = build_parser().parse_args(argv)
    merged = dict(os.environ if environ is None else environ)
    for attr, env_name in _FLAG_ENV_NAMES.items():
        value = getattr(args, attr)
        if value is not None:
            merged[env_name] = value
    if args.verbose:
        merged["HOOKSHIM_LOG_LEVEL"] = "DEBUG"
    return RelaySettings.from_env(merged)


def _setup_logging(level: str) -> None:
    normalized_level, invalid_level = configure_logging(level, force=True)
    if invalid_level:
        log_warning(
            logger,
            "Invalid HOOKSHIM_LOG_LEVEL %r, falling back to %s",
            level,
            normalized_level,
        )


def _load_or_exit(settings: RelaySettings) -> RelayConfig:
    try:
        return load_config(settings.config_path)
    except ConfigError as exc:
        # Use error() not exception() - validation failures need no traceback
        log_error(logger, "Invalid configuration in %s:", settings.config_path)
        for issue in exc.issues:
            log_error(logger, "  - %s", issue)
        raise SystemExit(1) from exc


def create_app() -> falcon.asgi.App:
    """Build the full service from ``HOOKSHIM_*`` environment variables.

    Returns
    -------
    falcon.asgi.App
        Application with the relay endpoint and the lifespan-managed poller.

    Raises
    ------
    SystemExit
        If the settings or the accounts file are invalid.

    """
    from hookshim.api.app import create_app as _create_api_app
    from hookshim.api.factory import build_app_dependencies

    try:
        settings = RelaySettings.from_env()
    except ConfigError as exc:
        log_error(logger, "Invalid runtime settings: %s", exc)
        raise SystemExit(1) from exc

    _setup_logging(settings.log_level)
    config = _load_or_exit(settings)
    return _create_api_app(build_app_dependencies(config, settings))


def main(argv: list[str] | None = None) -> None:
    """Start the hookshim server using Granian.

    Raises
    ------
    SystemExit
        With status 1 when flags, environment or accounts file are invalid.

    """
    from granian import Granian
    from granian.constants import Interfaces

    try:
        settings = resolve_settings(argv)
    except ConfigError as exc:
        log_error(logger, "Invalid runtime settings: %s", exc)
        raise SystemExit(1) from exc

    _setup_logging(settings.log_level)
    config = _load_or_exit(settings)
    os.environ.update(settings.to_env())

    log_info(
        logger,
        "Starting hookshim on %s:%d (%d repositories, interval=%.1fs, "
        "data_dir=%s, log_level=%s)",
        settings.host,
        settings.port,
        len(config.repositories()),
        settings.poll_interval_s,
        settings.data_dir,
        settings.log_level,
    )

    server = Granian(
        "hookshim.runtime:create_app",
        address=settings.host,
        port=settings.port,
        interface=Interfaces.ASGI,
        factory=True,
        workers=1,
    )
    server.serve()


if __name__ == "__main__":
    main()
