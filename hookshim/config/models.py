"""Typed account and hook-rule configuration."""

from __future__ import annotations

import msgspec

WILDCARD_EVENT = "*"
DEFAULT_EVENTS: tuple[str, ...] = ("push",)
DEFAULT_API_URL = "https://api.github.com"


class HookRule(msgspec.Struct, frozen=True, kw_only=True):
    """One downstream endpoint subscribed to events of one repository.

    Attributes
    ----------
    repo : str
        Repository name under the owning account.
    events : tuple[str, ...]
        Subscribed event types, or ``("*",)`` for every event.
    url : str
        Downstream endpoint receiving the POSTed webhook.
    secret : str, optional
        HMAC key used to sign synthesized payloads. No signature header is
        sent when absent or empty.

    """

    repo: str
    url: str
    events: tuple[str, ...] = ()
    secret: str | None = None

    @property
    def is_wildcard(self) -> bool:
        """Return whether the rule subscribes to every event type."""
        return self.events == (WILDCARD_EVENT,)

    def matches(self, event_type: str) -> bool:
        """Return whether ``event_type`` is delivered to this rule."""
        return self.is_wildcard or event_type in self.events


class Account(msgspec.Struct, frozen=True, kw_only=True):
    """A provider account with its credential and hook rules.

    Attributes
    ----------
    user : str
        Account login; also the owner of every repository in ``hooks``.
    token : str
        Opaque bearer credential used for API polling.
    hooks : tuple[HookRule, ...]
        Hook rules in configuration order.

    """

    user: str
    token: str
    hooks: tuple[HookRule, ...] = ()


class RelayConfig(msgspec.Struct, frozen=True, kw_only=True):
    """Immutable configuration shared by the poller and the relay."""

    accounts: tuple[Account, ...] = ()
    api_url: str = DEFAULT_API_URL

    def repositories(self) -> list[tuple[str, str]]:
        """Return unique ``(owner, repo)`` pairs in configuration order."""
        seen: dict[tuple[str, str], None] = {}
        for account in self.accounts:
            for hook in account.hooks:
                seen.setdefault((account.user, hook.repo), None)
        return list(seen)

    def account_for(self, owner: str) -> Account | None:
        """Return the first account whose user is ``owner``."""
        return next((acct for acct in self.accounts if acct.user == owner), None)
