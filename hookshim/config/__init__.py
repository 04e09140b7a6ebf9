"""Account configuration and runtime settings.

The accounts file is loaded once at startup into an immutable
:class:`RelayConfig` which is then handed to the scheduler, dispatcher and
relay constructors.

    >>> from hookshim.config import load_config
    >>> config = load_config("config.json")
"""

from __future__ import annotations

from .errors import ConfigError
from .loader import build_config, load_config, normalise_events
from .models import (
    DEFAULT_API_URL,
    WILDCARD_EVENT,
    Account,
    HookRule,
    RelayConfig,
)
from .settings import RelaySettings

__all__ = [
    "DEFAULT_API_URL",
    "WILDCARD_EVENT",
    "Account",
    "ConfigError",
    "HookRule",
    "RelayConfig",
    "RelaySettings",
    "build_config",
    "load_config",
    "normalise_events",
]
