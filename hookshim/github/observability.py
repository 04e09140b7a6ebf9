"""Structured logging for poll cycles.

Every reconciliation pass emits one tagged log line (``[poll.cycle.*]``)
with ``key=value`` fields so log aggregators can chart polling throughput,
cache hit rate, and failures per repository.
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

from hookshim.logging import get_logger, log_error, log_info, log_warning

from .errors import (
    GitHubAPIError,
    GitHubConfigError,
    GitHubResponseShapeError,
    GitHubTransportError,
)

if typ.TYPE_CHECKING:
    import datetime as dt

    from .models import ReconcileResult

logger = get_logger(__name__)

# HTTP status code threshold for server errors (5xx)
_HTTP_SERVER_ERROR_THRESHOLD = 500


class PollEventType(enum.StrEnum):
    """Structured log event types for poll observability."""

    CYCLE_STARTED = "poll.cycle.started"
    CYCLE_COMPLETED = "poll.cycle.completed"
    CYCLE_NOT_MODIFIED = "poll.cycle.not_modified"
    CYCLE_FAILED = "poll.cycle.failed"
    CURSOR_NOT_PERSISTED = "poll.cursor.not_persisted"


class ErrorCategory(enum.StrEnum):
    """Categories used to route poll failures."""

    TRANSIENT = "transient"
    CLIENT_ERROR = "client_error"
    SCHEMA_DRIFT = "schema_drift"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


@dataclasses.dataclass(frozen=True, slots=True)
class PollRunContext:
    """Identity of a single reconciliation pass."""

    owner: str
    repo: str
    started_at: dt.datetime

    @property
    def slug(self) -> str:
        """Return ``owner/repo``."""
        return f"{self.owner}/{self.repo}"


_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (GitHubTransportError, ErrorCategory.TRANSIENT),
    (GitHubResponseShapeError, ErrorCategory.SCHEMA_DRIFT),
    (GitHubConfigError, ErrorCategory.CONFIGURATION),
)


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Classify a poll failure for alerting.

    GitHub 5xx answers and transport failures are transient; other HTTP
    statuses (401, 403 rate limiting, 404) are client errors.
    """
    if isinstance(exc, GitHubAPIError):
        if (
            exc.status_code is not None
            and exc.status_code >= _HTTP_SERVER_ERROR_THRESHOLD
        ):
            return ErrorCategory.TRANSIENT
        return ErrorCategory.CLIENT_ERROR

    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category

    return ErrorCategory.UNKNOWN


class PollEventLogger:
    """Emit structured poll events through femtologging."""

    def log_cycle_started(self, context: PollRunContext) -> None:
        """Log the start of a reconciliation pass."""
        log_info(
            logger,
            "[%s] repo=%s started_at=%s",
            PollEventType.CYCLE_STARTED,
            context.slug,
            context.started_at.isoformat(),
        )

    def log_cycle_completed(
        self,
        context: PollRunContext,
        result: ReconcileResult,
        duration: dt.timedelta,
    ) -> None:
        """Log a finished pass, distinguishing the 304 fast path."""
        if result.not_modified:
            log_info(
                logger,
                "[%s] repo=%s duration_seconds=%.3f marker=%d",
                PollEventType.CYCLE_NOT_MODIFIED,
                context.slug,
                duration.total_seconds(),
                result.cursor.marker,
            )
            return

        log_info(
            logger,
            "[%s] repo=%s duration_seconds=%.3f pages_fetched=%d "
            "renamed_events=%d marker=%d",
            PollEventType.CYCLE_COMPLETED,
            context.slug,
            duration.total_seconds(),
            result.pages_fetched,
            len(result.events),
            result.cursor.marker,
        )

    def log_cycle_failed(
        self,
        context: PollRunContext,
        error: BaseException,
        duration: dt.timedelta,
    ) -> None:
        """Log an abandoned pass with its error category."""
        log_error(
            logger,
            "[%s] repo=%s duration_seconds=%.3f error_type=%s "
            "error_category=%s error_message=%s",
            PollEventType.CYCLE_FAILED,
            context.slug,
            duration.total_seconds(),
            type(error).__name__,
            categorize_error(error),
            str(error),
            exc_info=error,
        )

    def log_cursor_not_persisted(self, context: PollRunContext, marker: int) -> None:
        """Log that a new cursor lives only in memory until the next save."""
        log_warning(
            logger,
            "[%s] repo=%s marker=%d",
            PollEventType.CURSOR_NOT_PERSISTED,
            context.slug,
            marker,
        )
