"""Background polling for issue renames."""

from __future__ import annotations

from .notifier import RenameNotifier
from .scheduler import PollScheduler

__all__ = ["PollScheduler", "RenameNotifier"]
