"""Reconciliation checkpoint for one repository."""

from __future__ import annotations

import dataclasses


@dataclasses.dataclass(frozen=True, slots=True)
class Cursor:
    """Validator and high-water marker for a repository's event history.

    Attributes
    ----------
    validator
        ``ETag`` of the last page-1 response, sent back as ``If-None-Match``.
        Empty when no conditional request is possible.
    marker
        Highest issue-event id processed so far. Zero means the repository
        has never been scanned.

    """

    validator: str = ""
    marker: int = 0

    @property
    def is_cold(self) -> bool:
        """Return whether no event has been processed yet."""
        return self.marker == 0

    def advance(self, validator: str, seen: int) -> Cursor:
        """Return the cursor after a pass that observed ``seen`` as its max id.

        The marker never moves backwards.
        """
        return Cursor(validator=validator, marker=max(self.marker, seen))
