"""Unit tests for accounts-file loading."""

from __future__ import annotations

import typing as typ

import pytest

from hookshim.config import (
    DEFAULT_API_URL,
    ConfigError,
    HookRule,
    build_config,
    load_config,
)

if typ.TYPE_CHECKING:
    from pathlib import Path

_LEGACY_JSON = """
[
  {
    "user": "octo",
    "token": "ghp_one",
    "hooks": [
      {"repo": "reef", "events": ["issues", "push"], "url": "http://a.test/h",
       "secret": "k"},
      {"repo": "kelp", "url": "http://b.test/h"}
    ]
  }
]
"""

_YAML = """
api_url: https://ghe.example.test/api/v3
accounts:
  - user: octo
    token: ghp_one
    hooks:
      - repo: reef
        events: ["*", "issues"]
        url: http://a.test/h
  - user: coral
    token: ghp_two
    hooks:
      - repo: reef
        events: [issues]
        url: http://c.test/h
"""


def test_load_config_accepts_legacy_json_list(tmp_path: Path) -> None:
    """A bare JSON account list loads with the public API URL."""
    path = tmp_path / "config.json"
    path.write_text(_LEGACY_JSON, encoding="utf-8")

    config = load_config(path)

    assert config.api_url == DEFAULT_API_URL
    assert [account.user for account in config.accounts] == ["octo"]
    reef, kelp = config.accounts[0].hooks
    assert reef.events == ("issues", "push")
    assert reef.secret == "k"
    assert kelp.events == ("push",), "empty events should default to push"
    assert kelp.secret is None


def test_build_config_accepts_capitalised_keys() -> None:
    """Go-style field names load; values keep their case."""
    config = build_config(
        [
            {
                "User": "Octo",
                "Token": "ghp_one",
                "Hooks": [
                    {
                        "Repo": "Reef",
                        "Events": ["issues"],
                        "URL": "http://a.test/h",
                        "Secret": "K",
                    }
                ],
            }
        ]
    )

    (hook,) = config.accounts[0].hooks
    assert config.accounts[0].user == "Octo"
    assert (hook.repo, hook.url, hook.secret) == ("Reef", "http://a.test/h", "K")
    assert hook.events == ("issues",)


def test_load_config_accepts_yaml_mapping(tmp_path: Path) -> None:
    """A YAML mapping sets the API URL and collapses wildcard lists."""
    path = tmp_path / "config.yaml"
    path.write_text(_YAML, encoding="utf-8")

    config = load_config(path)

    assert config.api_url == "https://ghe.example.test/api/v3"
    assert config.accounts[0].hooks[0].events == ("*",)
    assert config.accounts[0].hooks[0].is_wildcard
    assert config.repositories() == [("octo", "reef"), ("coral", "reef")]


def test_repositories_are_unique_in_config_order() -> None:
    """Two rules for one repository yield one poll target."""
    config = build_config(
        [
            {
                "user": "octo",
                "token": "t",
                "hooks": [
                    {"repo": "reef", "url": "http://a.test"},
                    {"repo": "kelp", "url": "http://b.test"},
                    {"repo": "reef", "url": "http://c.test"},
                ],
            }
        ]
    )

    assert config.repositories() == [("octo", "reef"), ("octo", "kelp")]
    assert config.account_for("octo") is config.accounts[0]
    assert config.account_for("nobody") is None


@pytest.mark.parametrize(
    ("events", "event_type", "expected"),
    [
        (("*",), "issues", True),
        (("*",), "push", True),
        (("issues",), "issues", True),
        (("push",), "issues", False),
    ],
)
def test_hook_rule_matches(
    events: tuple[str, ...], event_type: str, *, expected: bool
) -> None:
    """Wildcard rules match every event; others need literal membership."""
    rule = HookRule(repo="reef", url="http://a.test", events=events)
    assert rule.matches(event_type) is expected


def test_load_config_missing_file_raises(tmp_path: Path) -> None:
    """An unreadable file is a configuration error."""
    with pytest.raises(ConfigError, match="failed to read"):
        load_config(tmp_path / "absent.json")


def test_load_config_empty_file_raises(tmp_path: Path) -> None:
    """An empty file is a configuration error."""
    path = tmp_path / "config.json"
    path.write_text("", encoding="utf-8")

    with pytest.raises(ConfigError, match="is empty"):
        load_config(path)


def test_build_config_rejects_schema_mismatch() -> None:
    """Wrongly typed fields are reported as schema failures."""
    with pytest.raises(ConfigError, match="schema validation failed"):
        build_config([{"user": "octo", "token": 5}])


def test_build_config_collects_every_issue() -> None:
    """Blank credentials and qualified repo names are all reported."""
    with pytest.raises(ConfigError) as excinfo:
        build_config(
            [
                {
                    "user": " ",
                    "token": "",
                    "hooks": [{"repo": "octo/reef", "url": ""}],
                }
            ]
        )

    assert excinfo.value.issues == [
        "accounts[0].user must be non-empty",
        "accounts[0].token must be non-empty",
        "accounts[0].hooks[0].repo must be a bare repo name",
        "accounts[0].hooks[0].url must be non-empty",
    ]
