"""Unit tests for outbound webhook dispatch."""

from __future__ import annotations

import asyncio
import hashlib
import hmac
import typing as typ
import uuid

import httpx
import pytest

from hookshim.webhook import (
    DELIVERY_HEADER,
    EVENT_HEADER,
    SIGNATURE_HEADER,
    DispatcherConfig,
    DispatchTarget,
    WebhookDispatcher,
    sign_payload,
)
from tests.helpers.github_events import HOOK_URL, FakeGitHub

if typ.TYPE_CHECKING:
    from hookshim.config import RelayConfig

_PAYLOAD = b'{"a":1}'


def test_sign_payload_is_hmac_sha1_hex() -> None:
    """The signature is ``sha1=`` followed by the lowercase hex digest."""
    expected = hmac.new(b"s3cret", _PAYLOAD, hashlib.sha1).hexdigest()

    assert sign_payload("s3cret", _PAYLOAD) == f"sha1={expected}"
    assert sign_payload("s3cret", _PAYLOAD) == sign_payload("s3cret", _PAYLOAD)


class TestResolveTargets:
    """Tests for hook-rule matching."""

    def test_issues_event_reaches_issues_and_wildcard_rules(
        self, relay_config: RelayConfig
    ) -> None:
        """Both the literal and the wildcard rule match ``issues``."""
        dispatcher = WebhookDispatcher(relay_config, http_client=httpx.AsyncClient())

        targets = dispatcher.resolve_targets("octo", "reef", "issues")

        assert targets == [
            DispatchTarget(url=HOOK_URL, secret="s3cret"),
            DispatchTarget(url="https://hooks.test/all", secret=None),
        ]

    def test_other_events_reach_only_wildcard_rule(
        self, relay_config: RelayConfig
    ) -> None:
        """A ``push`` on reef matches only the wildcard rule."""
        dispatcher = WebhookDispatcher(relay_config, http_client=httpx.AsyncClient())

        targets = dispatcher.resolve_targets("octo", "reef", "push")

        assert [target.url for target in targets] == ["https://hooks.test/all"]

    def test_unknown_owner_or_repo_has_no_targets(
        self, relay_config: RelayConfig
    ) -> None:
        """Rules are scoped to their account user and repository."""
        dispatcher = WebhookDispatcher(relay_config, http_client=httpx.AsyncClient())

        assert dispatcher.resolve_targets("coral", "reef", "issues") == []
        assert dispatcher.resolve_targets("octo", "kelp", "issues") == []


def test_event_headers_use_fresh_delivery_ids(relay_config: RelayConfig) -> None:
    """Every call generates a new UUID4 delivery id."""
    dispatcher = WebhookDispatcher(relay_config, http_client=httpx.AsyncClient())

    first = dispatcher.event_headers("issues")
    second = dispatcher.event_headers("issues")

    assert first[EVENT_HEADER] == "issues"
    assert first["User-Agent"] == "hookshim"
    assert first[DELIVERY_HEADER] != second[DELIVERY_HEADER]
    assert uuid.UUID(first[DELIVERY_HEADER]).version == 4


@pytest.mark.asyncio
async def test_signature_covers_transmitted_bytes(relay_config: RelayConfig) -> None:
    """The signature header is the HMAC of exactly the bytes received."""
    fake = FakeGitHub()
    http_client = fake.client()
    dispatcher = WebhookDispatcher(relay_config, http_client=http_client)
    try:
        result = await dispatcher.dispatch(
            DispatchTarget(url=HOOK_URL, secret="s3cret"),
            _PAYLOAD,
            dispatcher.event_headers("issues"),
        )
    finally:
        await http_client.aclose()

    (request,) = fake.deliveries
    expected = hmac.new(b"s3cret", request.content, hashlib.sha1).hexdigest()
    assert request.content == _PAYLOAD
    assert request.headers[SIGNATURE_HEADER] == f"sha1={expected}"
    assert request.headers["Content-Type"] == "application/json"
    assert result.ok
    assert result.delivery_id == request.headers[DELIVERY_HEADER]


@pytest.mark.asyncio
async def test_no_signature_without_secret(relay_config: RelayConfig) -> None:
    """Targets without a secret receive no signature header."""
    fake = FakeGitHub()
    http_client = fake.client()
    dispatcher = WebhookDispatcher(relay_config, http_client=http_client)
    try:
        await dispatcher.dispatch(
            DispatchTarget(url=HOOK_URL, secret=""),
            _PAYLOAD,
            dispatcher.event_headers("issues"),
        )
    finally:
        await http_client.aclose()

    assert SIGNATURE_HEADER not in fake.deliveries[0].headers


@pytest.mark.asyncio
async def test_deliver_event_fans_out_to_every_match(
    relay_config: RelayConfig,
) -> None:
    """Each matching endpoint gets one POST with its own delivery id."""
    fake = FakeGitHub()
    http_client = fake.client()
    dispatcher = WebhookDispatcher(relay_config, http_client=http_client)
    try:
        results = await dispatcher.deliver_event("octo", "reef", "issues", _PAYLOAD)
    finally:
        await http_client.aclose()

    assert sorted(str(request.url) for request in fake.deliveries) == sorted(
        [HOOK_URL, "https://hooks.test/all"]
    )
    assert len({result.delivery_id for result in results}) == 2
    signed = {
        str(request.url): SIGNATURE_HEADER in request.headers
        for request in fake.deliveries
    }
    assert signed == {HOOK_URL: True, "https://hooks.test/all": False}


@pytest.mark.asyncio
async def test_deliver_event_without_targets_sends_nothing(
    relay_config: RelayConfig,
) -> None:
    """An unsubscribed event produces no requests."""
    fake = FakeGitHub()
    http_client = fake.client()
    dispatcher = WebhookDispatcher(relay_config, http_client=http_client)
    try:
        results = await dispatcher.deliver_event("octo", "kelp", "issues", _PAYLOAD)
    finally:
        await http_client.aclose()

    assert results == []
    assert fake.deliveries == []


@pytest.mark.asyncio
async def test_error_status_is_reported_not_raised(relay_config: RelayConfig) -> None:
    """A 500 from the endpoint is returned in the result."""
    fake = FakeGitHub(endpoint_status={HOOK_URL: 500})
    http_client = fake.client()
    dispatcher = WebhookDispatcher(relay_config, http_client=http_client)
    try:
        result = await dispatcher.dispatch(
            DispatchTarget(url=HOOK_URL), _PAYLOAD, {}
        )
    finally:
        await http_client.aclose()

    assert result.status_code == 500
    assert not result.ok


@pytest.mark.asyncio
async def test_transport_failure_is_reported_not_raised(
    relay_config: RelayConfig,
) -> None:
    """Connection errors produce a failed result."""

    def _handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(_handler))
    dispatcher = WebhookDispatcher(relay_config, http_client=http_client)
    try:
        result = await dispatcher.dispatch(
            DispatchTarget(url=HOOK_URL), _PAYLOAD, {DELIVERY_HEADER: "d-1"}
        )
    finally:
        await http_client.aclose()

    assert result.status_code is None
    assert result.delivery_id == "d-1"
    assert result.error is not None
    assert "ConnectError" in result.error


@pytest.mark.asyncio
async def test_slow_endpoint_hits_hard_timeout(relay_config: RelayConfig) -> None:
    """A POST exceeding the total timeout is abandoned."""

    async def _handler(_request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(_handler))
    dispatcher = WebhookDispatcher(
        relay_config,
        settings=DispatcherConfig(timeout_s=0.05),
        http_client=http_client,
    )
    try:
        result = await dispatcher.dispatch(DispatchTarget(url=HOOK_URL), _PAYLOAD, {})
    finally:
        await http_client.aclose()

    assert result.error is not None
    assert result.error.startswith("TimeoutError")


@pytest.mark.asyncio
async def test_concurrency_is_bounded(relay_config: RelayConfig) -> None:
    """No more than ``max_concurrency`` POSTs are in flight at once."""
    in_flight = 0
    peak = 0

    async def _handler(_request: httpx.Request) -> httpx.Response:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return httpx.Response(200)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(_handler))
    dispatcher = WebhookDispatcher(
        relay_config,
        settings=DispatcherConfig(max_concurrency=2),
        http_client=http_client,
    )
    targets = [DispatchTarget(url=f"https://hooks.test/{n}") for n in range(6)]
    try:
        results = await dispatcher.dispatch_all(targets, _PAYLOAD, dict)
    finally:
        await http_client.aclose()

    assert len(results) == 6
    assert all(result.ok for result in results)
    assert peak <= 2
