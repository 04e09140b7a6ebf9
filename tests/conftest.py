"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import typing as typ

import pytest

from hookshim.config import build_config
from tests.helpers.github_events import API_URL, HOOK_URL, FakeGitHub

if typ.TYPE_CHECKING:
    from hookshim.config import RelayConfig


@pytest.fixture
def fake_github() -> FakeGitHub:
    """Return an empty fake GitHub API."""
    return FakeGitHub()


@pytest.fixture
def relay_config() -> RelayConfig:
    """Return one account with an ``issues`` hook and a wildcard hook."""
    return build_config(
        {
            "api_url": API_URL,
            "accounts": [
                {
                    "user": "octo",
                    "token": "ghp_test",
                    "hooks": [
                        {
                            "repo": "reef",
                            "events": ["issues"],
                            "url": HOOK_URL,
                            "secret": "s3cret",
                        },
                        {
                            "repo": "reef",
                            "events": ["*"],
                            "url": "https://hooks.test/all",
                        },
                        {
                            "repo": "kelp",
                            "events": ["push"],
                            "url": "https://hooks.test/push",
                        },
                    ],
                }
            ],
        }
    )
