"""Runtime settings for the hookshim service.

Settings come from command-line flags with environment fallbacks so the
same values reach the Granian worker process, which only sees the
environment.

Usage
-----
>>> import os
>>> os.environ["HOOKSHIM_POLL_INTERVAL"] = "30"
>>> RelaySettings.from_env().poll_interval_s
30.0

"""

from __future__ import annotations

import dataclasses as dc
import os
import typing as typ
from pathlib import Path

from .errors import ConfigError

# TCP port number range limits
_MIN_PORT = 1
_MAX_PORT = 65535

_ENV_PREFIX = "HOOKSHIM_"


@dc.dataclass(frozen=True, slots=True)
class RelaySettings:
    """Process-level knobs that are not part of the accounts file.

    Attributes
    ----------
    host
        Bind address for the inbound listener.
    port
        Listen port for the inbound listener.
    poll_interval_s
        Time budget in seconds for visiting every repository once.
    config_path
        Accounts file (JSON or YAML).
    data_dir
        Directory holding one cursor record per repository.
    log_level
        femtologging level name.
    delivery_timeout_s
        Hard timeout for each outbound webhook POST.
    max_concurrent_deliveries
        Upper bound on simultaneous outbound POSTs.
    shutdown_grace_s
        How long shutdown waits for the poll loop to finish its visit.

    """

    host: str = "0.0.0.0"  # noqa: S104 - listener binds all interfaces
    port: int = 9000
    poll_interval_s: float = 5.0
    config_path: Path = Path("config.json")
    data_dir: Path = Path("./data")
    log_level: str = "INFO"
    delivery_timeout_s: float = 10.0
    max_concurrent_deliveries: int = 4
    shutdown_grace_s: float = 5.0

    @classmethod
    def from_env(cls, environ: typ.Mapping[str, str] | None = None) -> RelaySettings:
        """Build settings from ``HOOKSHIM_*`` environment variables.

        Raises
        ------
        ConfigError
            If a numeric variable is malformed or out of range.

        """
        env = os.environ if environ is None else environ
        defaults = cls()

        def raw(name: str) -> str:
            return env.get(f"{_ENV_PREFIX}{name}", "").strip()

        return cls(
            host=raw("HOST") or defaults.host,
            port=_parse_port(raw("PORT"), defaults.port),
            poll_interval_s=_parse_positive_float(
                "HOOKSHIM_POLL_INTERVAL", raw("POLL_INTERVAL"), defaults.poll_interval_s
            ),
            config_path=Path(raw("CONFIG")) if raw("CONFIG") else defaults.config_path,
            data_dir=Path(raw("DATA_DIR")) if raw("DATA_DIR") else defaults.data_dir,
            log_level=raw("LOG_LEVEL") or defaults.log_level,
            delivery_timeout_s=_parse_positive_float(
                "HOOKSHIM_DELIVERY_TIMEOUT",
                raw("DELIVERY_TIMEOUT"),
                defaults.delivery_timeout_s,
            ),
            max_concurrent_deliveries=_parse_positive_int(
                "HOOKSHIM_MAX_CONCURRENT_DELIVERIES",
                raw("MAX_CONCURRENT_DELIVERIES"),
                defaults.max_concurrent_deliveries,
            ),
            shutdown_grace_s=_parse_positive_float(
                "HOOKSHIM_SHUTDOWN_GRACE",
                raw("SHUTDOWN_GRACE"),
                defaults.shutdown_grace_s,
            ),
        )

    def to_env(self) -> dict[str, str]:
        """Return the environment variables that reproduce these settings."""
        return {
            "HOOKSHIM_HOST": self.host,
            "HOOKSHIM_PORT": str(self.port),
            "HOOKSHIM_POLL_INTERVAL": str(self.poll_interval_s),
            "HOOKSHIM_CONFIG": str(self.config_path),
            "HOOKSHIM_DATA_DIR": str(self.data_dir),
            "HOOKSHIM_LOG_LEVEL": self.log_level,
            "HOOKSHIM_DELIVERY_TIMEOUT": str(self.delivery_timeout_s),
            "HOOKSHIM_MAX_CONCURRENT_DELIVERIES": str(self.max_concurrent_deliveries),
            "HOOKSHIM_SHUTDOWN_GRACE": str(self.shutdown_grace_s),
        }


def _parse_port(raw: str, default: int) -> int:
    if not raw:
        return default
    try:
        port = int(raw)
    except ValueError as exc:
        raise ConfigError.invalid_setting(
            "HOOKSHIM_PORT", raw, f"an integer in {_MIN_PORT}-{_MAX_PORT}"
        ) from exc
    if not (_MIN_PORT <= port <= _MAX_PORT):
        raise ConfigError.invalid_setting(
            "HOOKSHIM_PORT", raw, f"an integer in {_MIN_PORT}-{_MAX_PORT}"
        )
    return port


def _parse_positive_float(name: str, raw: str, default: float) -> float:
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError.invalid_setting(name, raw, "a positive number") from exc
    if value <= 0:
        raise ConfigError.invalid_setting(name, raw, "a positive number")
    return value


def _parse_positive_int(name: str, raw: str, default: int) -> int:
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError.invalid_setting(name, raw, "a positive integer") from exc
    if value < 1:
        raise ConfigError.invalid_setting(name, raw, "a positive integer")
    return value
