"""Per-repository reconciliation cursors and their persistence."""

from __future__ import annotations

from .models import Cursor
from .store import (
    CorruptCursorError,
    CursorStore,
    FilesystemCursorStore,
    decode_cursor,
    encode_cursor,
)

__all__ = [
    "CorruptCursorError",
    "Cursor",
    "CursorStore",
    "FilesystemCursorStore",
    "decode_cursor",
    "encode_cursor",
]
