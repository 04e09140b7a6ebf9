"""Unit tests for turning rename events into dispatched webhooks."""

from __future__ import annotations

import json
import typing as typ

import httpx
import msgspec
import pytest

from hookshim.github import CandidateEvent, GitHubRestClient, GitHubRestConfig
from hookshim.polling import RenameNotifier
from hookshim.webhook import EVENT_HEADER, WebhookDispatcher
from tests.helpers.github_events import (
    API_URL,
    HOOK_URL,
    FakeGitHub,
    repository_document,
)

if typ.TYPE_CHECKING:
    from hookshim.config import RelayConfig


def _event(event_id: int) -> CandidateEvent:
    return CandidateEvent(
        event_id=event_id,
        issue=msgspec.Raw(b'{"number":%d}' % event_id),
        actor=msgspec.Raw(b'{"login":"octocat"}'),
    )


def _notifier(
    fake: FakeGitHub, relay_config: RelayConfig
) -> tuple[RenameNotifier, httpx.AsyncClient]:
    http_client = fake.client()
    github = GitHubRestClient(
        GitHubRestConfig(token="t", api_url=API_URL), http_client=http_client
    )
    dispatcher = WebhookDispatcher(relay_config, http_client=http_client)
    return RenameNotifier(dispatcher, {"octo": github}), http_client


@pytest.mark.asyncio
async def test_notify_sends_one_issues_webhook_per_event(
    relay_config: RelayConfig,
) -> None:
    """Each rename becomes an ``issues`` webhook with live repository data."""
    fake = FakeGitHub(repositories={"octo/reef": repository_document("octo", "reef")})
    notifier, http_client = _notifier(fake, relay_config)
    try:
        results = await notifier.notify("octo", "reef", [_event(2), _event(1)])
    finally:
        await http_client.aclose()

    assert len(results) == 4, "two events to two subscribed endpoints"
    to_hook = [r for r in fake.deliveries if str(r.url) == HOOK_URL]
    bodies = [json.loads(request.content) for request in to_hook]
    assert [body["issue"]["number"] for body in bodies] == [2, 1]
    assert all(body["action"] == "updated" for body in bodies)
    assert bodies[0]["repository"]["full_name"] == "octo/reef"
    assert all(r.headers[EVENT_HEADER] == "issues" for r in fake.deliveries)


@pytest.mark.asyncio
async def test_metadata_failure_falls_back_to_empty_repository(
    relay_config: RelayConfig,
) -> None:
    """A failed repository read still delivers the webhook with ``{}``."""
    fake = FakeGitHub()
    notifier, http_client = _notifier(fake, relay_config)
    try:
        await notifier.notify("octo", "reef", [_event(5)])
    finally:
        await http_client.aclose()

    body = json.loads(fake.deliveries[0].content)
    assert body["repository"] == {}


@pytest.mark.asyncio
async def test_no_subscribers_skips_metadata_fetch(relay_config: RelayConfig) -> None:
    """Nothing is fetched or sent when no hook subscribes to ``issues``."""
    fake = FakeGitHub()
    notifier, http_client = _notifier(fake, relay_config)
    try:
        results = await notifier.notify("octo", "kelp", [_event(5)])
    finally:
        await http_client.aclose()

    assert results == []
    assert fake.api_requests == []
    assert fake.deliveries == []
