"""Configuration errors raised while starting hookshim."""

from __future__ import annotations

import typing as typ


class ConfigError(RuntimeError):
    """Raised when the accounts file or runtime settings are unusable.

    Configuration problems are fatal: the runtime logs every issue and exits
    before any poller or listener starts.
    """

    def __init__(self, issues: typ.Sequence[str]) -> None:
        """Store the individual problems found during loading."""
        self.issues = list(issues)
        super().__init__("; ".join(self.issues))

    @classmethod
    def unreadable(cls, path: object, reason: object) -> ConfigError:
        """Return an error for a config file that cannot be read or parsed."""
        return cls([f"failed to read {path}: {reason}"])

    @classmethod
    def empty(cls, path: object) -> ConfigError:
        """Return an error for an empty config file."""
        return cls([f"config file {path} is empty"])

    @classmethod
    def invalid_setting(cls, name: str, raw: str, expected: str) -> ConfigError:
        """Return an error for a malformed runtime setting."""
        return cls([f"{name} must be {expected}, got {raw!r}"])
