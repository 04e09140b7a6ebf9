r"""Durable per-repository cursor records.

Each repository gets one small text file::

    {data_dir}/{owner}/{repo}

holding two newline-terminated lines: the validator (possibly empty) and the
decimal marker. Both operations fail soft. A missing or corrupt record loads
as the zero cursor; a failed write is logged and reported to the caller,
which keeps the new cursor in memory.

Usage
-----
>>> import asyncio
>>> from pathlib import Path
>>> store = FilesystemCursorStore(Path("./data"))
>>> asyncio.run(store.save("octo", "reef", Cursor('W/"abc"', 42)))
True
>>> asyncio.run(store.load("octo", "reef"))
Cursor(validator='W/"abc"', marker=42)

"""

from __future__ import annotations

import asyncio
import os
import typing as typ

from hookshim.common.slug import repo_slug
from hookshim.logging import get_logger, log_debug, log_warning

from .models import Cursor

if typ.TYPE_CHECKING:
    from pathlib import Path

logger = get_logger(__name__)

_RECORD_LINES = 2


class CorruptCursorError(ValueError):
    """Raised when a cursor record cannot be parsed."""

    @classmethod
    def bad_shape(cls, line_count: int) -> CorruptCursorError:
        """Return an error for a record without two terminated lines."""
        return cls(f"expected {_RECORD_LINES} lines, found {line_count}")

    @classmethod
    def bad_marker(cls, raw: str) -> CorruptCursorError:
        """Return an error for a non-numeric or negative marker."""
        return cls(f"marker must be a non-negative integer, got {raw!r}")


@typ.runtime_checkable
class CursorStore(typ.Protocol):
    """Port for loading and saving reconciliation cursors."""

    async def load(self, owner: str, repo: str) -> Cursor:
        """Return the stored cursor, or the zero cursor when unavailable."""
        ...

    async def save(self, owner: str, repo: str, cursor: Cursor) -> bool:
        """Persist ``cursor``; return ``False`` when the write failed."""
        ...


def encode_cursor(cursor: Cursor) -> str:
    """Render a cursor as its two-line text record."""
    return f"{cursor.validator}\n{cursor.marker}\n"


def decode_cursor(text: str) -> Cursor:
    """Parse a two-line text record.

    Raises
    ------
    CorruptCursorError
        If the record is truncated or the marker is not a decimal integer.

    """
    lines = text.split("\n")
    # A well-formed record ends with a newline, leaving an empty tail.
    if len(lines) < _RECORD_LINES + 1:
        raise CorruptCursorError.bad_shape(len(lines) - 1)

    validator = lines[0].strip()
    raw_marker = lines[1].strip()
    if not (raw_marker.isascii() and raw_marker.isdigit()):
        raise CorruptCursorError.bad_marker(raw_marker)
    return Cursor(validator=validator, marker=int(raw_marker))


class FilesystemCursorStore:
    """Store cursors as text files under a data directory.

    Parameters
    ----------
    data_dir
        Root directory; one subdirectory is created per owner.

    """

    def __init__(self, data_dir: Path) -> None:
        """Initialise the store with its root directory."""
        self._data_dir = data_dir

    def path_for(self, owner: str, repo: str) -> Path:
        """Return the record path for ``owner/repo``."""
        return self._data_dir / owner / repo

    async def load(self, owner: str, repo: str) -> Cursor:
        """Read the record for ``owner/repo``, degrading to the zero cursor."""
        path = self.path_for(owner, repo)
        try:
            text = await asyncio.to_thread(path.read_text, "utf-8")
        except FileNotFoundError:
            log_debug(logger, "No cursor stored for %s", repo_slug(owner, repo))
            return Cursor()
        except OSError as exc:
            log_warning(
                logger,
                "Failed to read cursor for %s, rescanning from scratch: %s",
                repo_slug(owner, repo),
                exc,
            )
            return Cursor()
        except UnicodeDecodeError as exc:
            log_warning(
                logger,
                "Undecodable cursor for %s at %s, rescanning from scratch: %s",
                repo_slug(owner, repo),
                path,
                exc,
            )
            return Cursor()

        try:
            return decode_cursor(text)
        except CorruptCursorError as exc:
            log_warning(
                logger,
                "Corrupt cursor for %s at %s, rescanning from scratch: %s",
                repo_slug(owner, repo),
                path,
                exc,
            )
            return Cursor()

    async def save(self, owner: str, repo: str, cursor: Cursor) -> bool:
        """Write the record atomically; log and return ``False`` on failure."""
        path = self.path_for(owner, repo)
        try:
            await asyncio.to_thread(_write_atomic, path, encode_cursor(cursor))
        except OSError as exc:
            log_warning(
                logger,
                "Failed to store cursor for %s, keeping it in memory only: %s",
                repo_slug(owner, repo),
                exc,
            )
            return False
        return True


def _write_atomic(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.tmp")
    tmp_path.write_text(content, encoding="utf-8")
    os.replace(tmp_path, path)
