"""GitHub REST polling errors."""

from __future__ import annotations


class GitHubAPIError(RuntimeError):
    """Raised when GitHub answers with an unexpected HTTP status."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int, url: str) -> GitHubAPIError:
        """Return an error for a non-2xx, non-304 response."""
        return cls(f"GitHub HTTP {status_code} for {url}", status_code=status_code)


class GitHubTransportError(RuntimeError):
    """Raised when a request never produced a response (DNS, connect, timeout)."""

    @classmethod
    def wrap(cls, url: str, exc: BaseException) -> GitHubTransportError:
        """Return an error describing a failed request to ``url``."""
        return cls(f"request to {url} failed: {type(exc).__name__}: {exc}")


class GitHubResponseShapeError(RuntimeError):
    """Raised when a GitHub response body cannot be decoded as expected."""

    @classmethod
    def undecodable(cls, url: str, reason: object) -> GitHubResponseShapeError:
        """Return an error for a body that failed JSON or schema decoding."""
        return cls(f"unexpected response body from {url}: {reason}")


class GitHubConfigError(RuntimeError):
    """Raised when a GitHub client is built with unusable settings."""

    @classmethod
    def empty_token(cls) -> GitHubConfigError:
        """Return an error when the account token is empty."""
        return cls("GitHub token must be non-empty")
