"""Log entries and snapshot not yet written to stable storage."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .storage import Entry, Snapshot

_logger = logging.getLogger(__name__)


@dataclass
class Unstable:
    """Entries from ``offset`` onward, plus an optional incoming snapshot."""

    offset: int = 0
    entries: list[Entry] = field(default_factory=list)
    snapshot: Snapshot | None = None

    def maybe_first_index(self) -> int | None:
        """First index if a snapshot is pending, else ``None``."""
        if self.snapshot is not None:
            return self.snapshot.metadata.index + 1
        return None

    def maybe_last_index(self) -> int | None:
        """Last index held here, or ``None`` if nothing is held."""
        if self.entries:
            return self.offset + len(self.entries) - 1
        if self.snapshot is not None:
            return self.snapshot.metadata.index
        return None

    def maybe_term(self, index: int) -> int | None:
        """Term of the entry at ``index`` if known here."""
        if index < self.offset:
            if self.snapshot is not None and self.snapshot.metadata.index == index:
                return self.snapshot.metadata.term
            return None
        last = self.maybe_last_index()
        if last is None or index > last:
            return None
        return self.entries[index - self.offset].term

    def stable_to(self, index: int, term: int) -> None:
        """Drop entries up to ``index`` once they are persisted with ``term``."""
        known = self.maybe_term(index)
        if known is None:
            return
        if known == term and index >= self.offset:
            self.entries = self.entries[index + 1 - self.offset:]
            self.offset = index + 1

    def stable_snap_to(self, index: int) -> None:
        """Drop the pending snapshot once it is persisted."""
        if self.snapshot is not None and self.snapshot.metadata.index == index:
            self.snapshot = None

    def restore(self, snapshot: Snapshot) -> None:
        """Replace everything with ``snapshot``."""
        self.offset = snapshot.metadata.index + 1
        self.entries = []
        self.snapshot = snapshot

    def truncate_and_append(self, entries: list[Entry]) -> None:
        """Append ``entries``, overwriting any held entries from their first index."""
        if not entries:
            return
        after = entries[0].index
        if after == self.offset + len(self.entries):
            self.entries.extend(entries)
        elif after <= self.offset:
            _logger.info("replace the unstable entries from index %d", after)
            self.offset = after
            self.entries = list(entries)
        else:
            _logger.info("truncate the unstable entries before index %d", after)
            self.entries = self.slice(self.offset, after) + list(entries)

    def slice(self, low: int, high: int) -> list[Entry]:
        """Entries in ``[low, high)``."""
        if low > high:
            raise ValueError(f"invalid unstable.slice {low} > {high}")
        upper = self.offset + len(self.entries)
        if low < self.offset or high > upper:
            raise IndexError(
                f"unstable.slice[{low},{high}) out of bound [{self.offset},{upper}]")
        return self.entries[low - self.offset:high - self.offset]