"""Load the accounts file into a :class:`RelayConfig`.

The file may be JSON or YAML. It is parsed with a YAML 1.2 loader, which
accepts JSON documents unchanged, and then converted with msgspec. Two
shapes are accepted::

    {"api_url": "https://api.github.com", "accounts": [...]}

or the bare account list used by older deployments::

    [{"user": "octo", "token": "...", "hooks": [...]}]

Keys are matched case-insensitively, so files written as
``{"User": ..., "Hooks": [{"Repo": ..., "URL": ...}]}`` load too.

"""

from __future__ import annotations

from pathlib import Path

import msgspec
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .errors import ConfigError
from .models import DEFAULT_EVENTS, WILDCARD_EVENT, Account, HookRule, RelayConfig

YAML_VERSION = (1, 2)


def load_config(path: Path | str) -> RelayConfig:
    """Read, convert and validate the accounts file at ``path``.

    Raises
    ------
    ConfigError
        If the file cannot be read, does not match the schema, or contains
        accounts or rules with empty required fields.

    """
    path_obj = Path(path)
    try:
        loaded = _yaml().load(path_obj.read_text(encoding="utf-8"))
    except (OSError, YAMLError) as exc:
        raise ConfigError.unreadable(path_obj, exc) from exc

    if loaded is None:
        raise ConfigError.empty(path_obj)

    return build_config(loaded)


def build_config(raw: object) -> RelayConfig:
    """Convert already-parsed data into a normalised :class:`RelayConfig`."""
    if isinstance(raw, list):
        raw = {"accounts": raw}

    try:
        config = msgspec.convert(_lowercase_keys(raw), type=RelayConfig)
    except msgspec.ValidationError as exc:
        msg = f"schema validation failed: {exc}"
        raise ConfigError([msg]) from exc

    config = msgspec.structs.replace(
        config,
        accounts=tuple(_normalise_account(acct) for acct in config.accounts),
    )
    _validate(config)
    return config


def normalise_events(events: tuple[str, ...]) -> tuple[str, ...]:
    """Collapse wildcard subscriptions and apply the default event list.

    Examples
    --------
    >>> normalise_events(("issues", "*"))
    ('*',)
    >>> normalise_events(())
    ('push',)

    """
    if WILDCARD_EVENT in events:
        return (WILDCARD_EVENT,)
    if not events:
        return DEFAULT_EVENTS
    return events


def _lowercase_keys(raw: object) -> object:
    if isinstance(raw, dict):
        return {
            key.lower() if isinstance(key, str) else key: _lowercase_keys(value)
            for key, value in raw.items()
        }
    if isinstance(raw, list):
        return [_lowercase_keys(item) for item in raw]
    return raw


def _normalise_account(account: Account) -> Account:
    hooks = tuple(
        msgspec.structs.replace(hook, events=normalise_events(hook.events))
        for hook in account.hooks
    )
    return msgspec.structs.replace(account, hooks=hooks)


def _validate(config: RelayConfig) -> None:
    issues: list[str] = []
    for index, account in enumerate(config.accounts):
        where = f"accounts[{index}]"
        if not account.user.strip():
            issues.append(f"{where}.user must be non-empty")
        if not account.token.strip():
            issues.append(f"{where}.token must be non-empty")
        issues.extend(_hook_issues(where, account.hooks))
    if issues:
        raise ConfigError(issues)


def _hook_issues(where: str, hooks: tuple[HookRule, ...]) -> list[str]:
    issues: list[str] = []
    for index, hook in enumerate(hooks):
        if not hook.repo.strip() or "/" in hook.repo:
            issues.append(f"{where}.hooks[{index}].repo must be a bare repo name")
        if not hook.url.strip():
            issues.append(f"{where}.hooks[{index}].url must be non-empty")
    return issues


def _yaml() -> YAML:
    yaml = YAML(typ="safe")
    yaml.version = YAML_VERSION
    yaml.allow_duplicate_keys = False
    return yaml
