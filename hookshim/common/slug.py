"""Repository ``owner/name`` helpers.

Webhook payloads identify repositories by ``repository.full_name``. These
helpers turn that string into the ``(owner, repo)`` key used by hook rules
and cursor records.
"""

from __future__ import annotations


def repo_slug(owner: str, repo: str) -> str:
    """Join an owner and repository name into ``owner/repo``.

    Examples
    --------
    >>> repo_slug("octo", "reef")
    'octo/reef'

    """
    return f"{owner}/{repo}"


def parse_repo_slug(full_name: str) -> tuple[str, str]:
    """Split ``owner/repo`` into its two segments.

    Parameters
    ----------
    full_name:
        Value of ``repository.full_name`` from a webhook payload.

    Returns
    -------
    tuple[str, str]
        ``(owner, repo)``.

    Raises
    ------
    ValueError
        If ``full_name`` does not have exactly two non-empty segments.

    Examples
    --------
    >>> parse_repo_slug("octo/reef")
    ('octo', 'reef')

    """
    owner, sep, repo = full_name.partition("/")
    if not sep or not owner or not repo or "/" in repo:
        msg = f"expected 'owner/repo', got {full_name!r}"
        raise ValueError(msg)
    return owner, repo
