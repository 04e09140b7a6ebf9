"""GitHub REST polling: client, reconciler and poll observability."""

from __future__ import annotations

from .client import (
    REPOSITORY_FIELDS,
    GitHubRestClient,
    GitHubRestConfig,
    filter_repository_fields,
    last_page_from_link,
)
from .errors import (
    GitHubAPIError,
    GitHubConfigError,
    GitHubResponseShapeError,
    GitHubTransportError,
)
from .models import (
    RENAMED_EVENT,
    CandidateEvent,
    IssueEventRecord,
    IssueEventsPage,
    ReconcileResult,
)
from .observability import (
    ErrorCategory,
    PollEventLogger,
    PollEventType,
    PollRunContext,
    categorize_error,
)
from .reconcile import EventReconciler

__all__ = [
    "RENAMED_EVENT",
    "REPOSITORY_FIELDS",
    "CandidateEvent",
    "ErrorCategory",
    "EventReconciler",
    "GitHubAPIError",
    "GitHubConfigError",
    "GitHubResponseShapeError",
    "GitHubRestClient",
    "GitHubRestConfig",
    "GitHubTransportError",
    "IssueEventRecord",
    "IssueEventsPage",
    "PollEventLogger",
    "PollEventType",
    "PollRunContext",
    "ReconcileResult",
    "categorize_error",
    "filter_repository_fields",
    "last_page_from_link",
]
