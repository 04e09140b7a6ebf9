"""Credentialed GitHub REST client used by the poller.

One :class:`GitHubRestClient` exists per configured account. It owns an
``httpx.AsyncClient`` carrying that account's bearer token and exposes the two
reads the poller needs: a page of issue events and the repository document.
Every response is consumed inside ``async with client.stream(...)`` so the
connection is returned to the pool on success, early return, and error alike.
"""

from __future__ import annotations

import dataclasses
import typing as typ
from http import HTTPStatus

import httpx
import msgspec

from hookshim.config.models import DEFAULT_API_URL
from hookshim.logging import get_logger, log_warning

from .errors import (
    GitHubAPIError,
    GitHubConfigError,
    GitHubResponseShapeError,
    GitHubTransportError,
)
from .models import IssueEventRecord, IssueEventsPage

logger = get_logger(__name__)

# 304 is handled before this check; redirects are not followed.
_UNEXPECTED_STATUS_THRESHOLD = HTTPStatus.MULTIPLE_CHOICES
_EVENTS_DECODER = msgspec.json.Decoder(list[IssueEventRecord])
_REPOSITORY_DECODER = msgspec.json.Decoder(dict[str, msgspec.Raw])

# Repository fields copied into synthesized webhooks, in output order.
REPOSITORY_FIELDS: tuple[str, ...] = (
    "id",
    "name",
    "full_name",
    "owner",
    "private",
    "html_url",
    "description",
    "fork",
    "url",
    "forks_url",
    "keys_url",
    "collaborators_url",
    "teams_url",
    "hooks_url",
    "issue_events_url",
    "events_url",
    "assignees_url",
    "branches_url",
    "tags_url",
    "blobs_url",
    "git_tags_url",
    "git_refs_url",
    "trees_url",
    "statuses_url",
    "languages_url",
    "stargazers_url",
    "contributors_url",
    "subscribers_url",
    "subscription_url",
    "commits_url",
    "git_commits_url",
    "comments_url",
    "issue_comment_url",
    "contents_url",
    "compare_url",
    "merges_url",
    "archive_url",
    "downloads_url",
    "issues_url",
    "pulls_url",
    "milestones_url",
    "notifications_url",
    "labels_url",
    "releases_url",
    "created_at",
    "updated_at",
    "pushed_at",
    "git_url",
    "ssh_url",
    "clone_url",
    "svn_url",
    "homepage",
    "size",
    "stargazers_count",
    "watchers_count",
    "language",
    "has_issues",
    "has_downloads",
    "has_wiki",
    "has_pages",
    "forks_count",
    "mirror_url",
    "open_issues_count",
    "forks",
    "open_issues",
    "watchers",
    "default_branch",
)


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubRestConfig:
    """Connection settings for one account's REST client."""

    token: str
    api_url: str = DEFAULT_API_URL
    timeout_s: float = 20.0
    user_agent: str = "hookshim"


def last_page_from_link(link: str) -> int:
    """Return the final page number advertised by a ``Link`` header.

    The last comma-separated entry is taken to be the ``rel="last"`` link and
    its ``page`` query parameter is returned. Zero means "unknown", which the
    reconciler treats as a single page.

    Examples
    --------
    >>> last_page_from_link(
    ...     '<https://api.github.com/x?page=2>; rel="next", '
    ...     '<https://api.github.com/x?page=5>; rel="last"'
    ... )
    5

    """
    entries = [entry for entry in link.split(",") if entry.strip()]
    if not entries:
        return 0
    target = entries[-1].split(";", 1)[0].strip(" <>")
    try:
        raw_page = httpx.URL(target).params.get("page")
        return int(raw_page) if raw_page is not None else 0
    except (httpx.InvalidURL, ValueError) as exc:
        log_warning(logger, "Ignoring unparseable Link header %r: %s", link, exc)
        return 0


def filter_repository_fields(body: bytes) -> msgspec.Raw:
    """Restrict a repository document to :data:`REPOSITORY_FIELDS`.

    Absent fields are emitted as ``null``; values are copied verbatim.

    Raises
    ------
    msgspec.DecodeError
        If ``body`` is not a JSON object.

    """
    document = _REPOSITORY_DECODER.decode(body)
    null = msgspec.Raw(b"null")
    filtered = {field: document.get(field, null) for field in REPOSITORY_FIELDS}
    return msgspec.Raw(msgspec.json.encode(filtered))


class GitHubRestClient:
    """Issue-event and repository reads bound to one account's credential."""

    def __init__(
        self,
        config: GitHubRestConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client; an ``http_client`` may be injected for tests."""
        if not config.token.strip():
            raise GitHubConfigError.empty_token()

        self._config = config
        self._base = config.api_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=config.timeout_s,
            headers={
                "Authorization": f"Bearer {config.token}",
                "User-Agent": config.user_agent,
                "Accept": "application/vnd.github+json",
            },
        )

    @property
    def config(self) -> GitHubRestConfig:
        """Return the connection settings this client was built with."""
        return self._config

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    def issue_events_url(self, owner: str, repo: str) -> str:
        """Return the issue-event history URL for ``owner/repo``."""
        return f"{self._base}/repos/{owner}/{repo}/issues/events"

    def repository_url(self, owner: str, repo: str) -> str:
        """Return the repository document URL for ``owner/repo``."""
        return f"{self._base}/repos/{owner}/{repo}"

    async def fetch_issue_events(
        self,
        owner: str,
        repo: str,
        *,
        page: int = 1,
        validator: str | None = None,
    ) -> IssueEventsPage:
        """Fetch one page of issue events, newest first.

        ``validator`` is sent as ``If-None-Match`` and should only be passed
        for page 1. A 304 response yields an empty page flagged
        ``not_modified``.

        Raises
        ------
        GitHubTransportError
            If the request or body read fails below HTTP.
        GitHubAPIError
            If GitHub answers with any other non-2xx status.
        GitHubResponseShapeError
            If the body is not a list of issue events.

        """
        url = self.issue_events_url(owner, repo)
        params = {"page": page} if page > 1 else None
        headers = {"If-None-Match": validator} if validator else None

        try:
            async with self._client.stream(
                "GET", url, params=params, headers=headers
            ) as response:
                if response.status_code == HTTPStatus.NOT_MODIFIED:
                    return IssueEventsPage(records=[], not_modified=True)
                _raise_for_status(response, url)
                body = await response.aread()
                etag = response.headers.get("ETag", "")
                link = response.headers.get("Link", "")
        except httpx.HTTPError as exc:
            raise GitHubTransportError.wrap(url, exc) from exc

        try:
            records = _EVENTS_DECODER.decode(body)
        except msgspec.DecodeError as exc:
            raise GitHubResponseShapeError.undecodable(url, exc) from exc

        return IssueEventsPage(
            records=records,
            etag=etag,
            last_page=last_page_from_link(link) if link else 0,
        )

    async def fetch_repository(self, owner: str, repo: str) -> msgspec.Raw:
        """Fetch the repository document restricted to webhook fields.

        Raises
        ------
        GitHubTransportError
            If the request fails below HTTP.
        GitHubAPIError
            On a non-2xx status.
        GitHubResponseShapeError
            If the body is not a JSON object.

        """
        url = self.repository_url(owner, repo)
        try:
            async with self._client.stream("GET", url) as response:
                _raise_for_status(response, url)
                body = await response.aread()
        except httpx.HTTPError as exc:
            raise GitHubTransportError.wrap(url, exc) from exc

        try:
            return filter_repository_fields(body)
        except msgspec.DecodeError as exc:
            raise GitHubResponseShapeError.undecodable(url, exc) from exc


def _raise_for_status(response: httpx.Response, url: str) -> None:
    if response.status_code >= _UNEXPECTED_STATUS_THRESHOLD:
        raise GitHubAPIError.http_error(response.status_code, url)


class IssueEventSource(typ.Protocol):
    """The subset of :class:`GitHubRestClient` the reconciler depends on."""

    async def fetch_issue_events(
        self,
        owner: str,
        repo: str,
        *,
        page: int = 1,
        validator: str | None = None,
    ) -> IssueEventsPage:
        """Fetch one page of issue events."""
        ...


class RepositorySource(typ.Protocol):
    """The subset of :class:`GitHubRestClient` the notifier depends on."""

    async def fetch_repository(self, owner: str, repo: str) -> msgspec.Raw:
        """Fetch the filtered repository document."""
        ...
