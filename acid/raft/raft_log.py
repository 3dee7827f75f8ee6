"""The Raft log: stable storage plus the entries not yet persisted."""

from __future__ import annotations

import logging

from .storage import (
    NO_LIMIT,
    CompactedError,
    Entry,
    MemoryStorage,
    RaftError,
    Snapshot,
)
from .unstable import Unstable

_logger = logging.getLogger(__name__)


class RaftLog:
    """Log entries split between ``storage`` and an in-memory unstable part.

    ``committed`` is the highest index known to be committed and ``applied``
    the highest index handed to the state machine.
    """

    def __init__(self, storage: MemoryStorage, max_next_entries_size: int = NO_LIMIT) -> None:
        if storage is None:
            raise ValueError("storage must not be None")
        self.storage = storage
        first_index = storage.first_index()
        last_index = storage.last_index()
        if first_index < 0 or last_index < 0:
            raise ValueError("storage reported a negative index")
        # Start from the state of the last compaction.
        self.unstable = Unstable(offset=last_index + 1)
        self.committed = first_index - 1
        self.applied = first_index - 1
        self.max_next_entries_size = max_next_entries_size

    def __str__(self) -> str:
        return (f"committed={self.committed}, applied={self.applied}, "
                f"unstable.offset={self.unstable.offset}, "
                f"len(unstable.entries)={len(self.unstable.entries)}")

    def maybe_append(self, prev_index: int, prev_term: int, committed: int,
                     entries: list[Entry]) -> int | None:
        """Append ``entries`` after ``(prev_index, prev_term)`` if the log matches.

        Returns the index of the last new entry, or ``None`` when the log does
        not contain an entry at ``prev_index`` with ``prev_term``.
        """
        if not self.match_log(prev_index, prev_term):
            return None
        last_new_index = prev_index + len(entries)
        conflict = self.find_conflict(entries)
        if conflict is not None:
            if conflict <= self.committed:
                raise ValueError(
                    f"entry {conflict} conflicts with committed entry "
                    f"[committed({self.committed})]")
            offset = prev_index + 1
            if conflict - offset > len(entries):
                raise IndexError(
                    f"index {conflict - offset} is out of range [{len(entries)}]")
            self.append(entries[conflict - offset:])
        self.commit_to(min(committed, last_new_index))
        return last_new_index

    def append(self, entries: list[Entry]) -> int:
        """Append ``entries`` to the unstable part and return the last index."""
        if not entries:
            return self.last_index()
        after = entries[0].index - 1
        if after < self.committed:
            raise ValueError(
                f"after({after}) is out of range [committed({self.committed})]")
        self.unstable.truncate_and_append(entries)
        return self.last_index()

    def find_conflict(self, entries: list[Entry]) -> int | None:
        """Index of the first entry that is new or disagrees in term, or ``None``."""
        for entry in entries:
            if not self.match_log(entry.index, entry.term):
                if entry.index <= self.last_index():
                    _logger.info(
                        "found conflict at index %d [existing term: %d, conflicting term: %d]",
                        entry.index, self._zero_term_on_compacted(entry.index), entry.term)
                return entry.index
        return None

    def unstable_entries(self) -> list[Entry]:
        """Entries not yet persisted to storage."""
        return list(self.unstable.entries)

    def next_entries(self) -> list[Entry]:
        """Committed entries not yet applied."""
        offset = max(self.applied + 1, self.first_index())
        if self.committed + 1 > offset:
            return self.slice(offset, self.committed + 1, self.max_next_entries_size)
        return []

    def has_next_entries(self) -> bool:
        """Whether some committed entries are not yet applied."""
        offset = max(self.applied + 1, self.first_index())
        return self.committed + 1 > offset

    def snapshot(self) -> Snapshot:
        """The pending snapshot, or the one held by storage."""
        if self.unstable.snapshot is not None:
            return self.unstable.snapshot
        return self.storage.snapshot()

    def first_index(self) -> int:
        index = self.unstable.maybe_first_index()
        if index is not None:
            return index
        return self.storage.first_index()

    def last_index(self) -> int:
        index = self.unstable.maybe_last_index()
        if index is not None:
            return index
        return self.storage.last_index()

    def commit_to(self, to_commit: int) -> None:
        """Raise the commit index to ``to_commit``; never lowers it."""
        if self.committed < to_commit:
            if self.last_index() < to_commit:
                raise IndexError(
                    f"tocommit({to_commit}) is out of range [lastIndex({self.last_index()})]. "
                    "Was the raft log corrupted, truncated, or lost?")
            self.committed = to_commit

    def applied_to(self, index: int) -> None:
        """Record that entries up to ``index`` were applied."""
        if not index:
            return
        if self.committed < index or index < self.applied:
            raise ValueError(
                f"applied({index}) is out of range "
                f"[prevApplied({self.applied}), committed({self.committed})]")
        self.applied = index

    def stable_to(self, index: int, term: int) -> None:
        self.unstable.stable_to(index, term)

    def stable_snap_to(self, index: int) -> None:
        self.unstable.stable_snap_to(index)

    def last_term(self) -> int:
        term = self.term(self.last_index())
        if term is None:
            raise RuntimeError("unexpected error when getting the last term")
        return term

    def term(self, index: int) -> int | None:
        """Term of the entry at ``index``, or ``None`` if outside the log.

        Storage errors (compacted or unavailable) propagate.
        """
        dummy_index = self.first_index() - 1
        if index < dummy_index or index > self.last_index():
            return None
        term = self.unstable.maybe_term(index)
        if term is not None:
            return term
        return self.storage.term(index)

    def entries(self, index: int, max_size: int = NO_LIMIT) -> list[Entry]:
        """Entries from ``index`` to the end, at most ``max_size`` of them."""
        last = self.last_index()
        if index > last:
            return []
        return self.slice(index, last + 1, max_size)

    def all_entries(self) -> list[Entry]:
        """Every entry in the log, retrying if storage compacts meanwhile."""
        while True:
            try:
                return self.entries(self.first_index())
            except CompactedError:
                continue

    def is_up_to_date(self, last_index: int, term: int) -> bool:
        """Whether a log ending at ``(last_index, term)`` is at least as new as this one."""
        last_term = self.last_term()
        return term > last_term or (term == last_term and last_index >= self.last_index())

    def match_log(self, index: int, term: int) -> bool:
        """Whether the entry at ``index`` has ``term``."""
        try:
            known = self.term(index)
        except RaftError:
            return False
        return known is not None and known == term

    def maybe_commit(self, max_index: int, term: int) -> bool:
        """Commit up to ``max_index`` if that entry has ``term``."""
        if max_index > self.committed and self._zero_term_on_compacted(max_index) == term:
            self.commit_to(max_index)
            return True
        return False

    def restore(self, snapshot: Snapshot) -> None:
        """Reset the log to ``snapshot``."""
        _logger.debug("log [%s] starts to restore snapshot [index: %d, term: %d]",
                      self, snapshot.metadata.index, snapshot.metadata.term)
        self.committed = snapshot.metadata.index
        self.unstable.restore(snapshot)

    def slice(self, low: int, high: int, max_size: int = NO_LIMIT) -> list[Entry]:
        """Entries in ``[low, high)``, at most ``max_size`` of them."""
        self._check_out_of_bounds(low, high)
        if low == high:
            return []
        offset = self.unstable.offset
        entries: list[Entry] = []
        if low < offset:
            stored_high = min(high, offset)
            stored = self.storage.entries(low, stored_high, max_size)
            if len(stored) < stored_high - low:
                return stored
            entries = list(stored)
        if high > offset:
            entries.extend(self.unstable.slice(max(low, offset), high))
        return entries[:max_size]

    def _check_out_of_bounds(self, low: int, high: int) -> None:
        if low > high:
            raise ValueError(f"invalid slice {low} > {high}")
        first = self.first_index()
        if low < first:
            raise CompactedError(f"index {low} is compacted")
        last = self.last_index()
        if high > last + 1:
            raise IndexError(f"slice[{low},{high}) out of bound [{first},{last}]")

    def _zero_term_on_compacted(self, index: int) -> int:
        try:
            term = self.term(index)
        except CompactedError:
            return 0
        return 0 if term is None else term