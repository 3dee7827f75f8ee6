"""Raft log entries, snapshots and an in-memory log storage."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum

NO_LIMIT = (1 << 63) - 1


class EntryType(Enum):
    NORMAL = "normal"
    DUMMY = "dummy"


@dataclass
class Entry:
    """One log entry."""

    index: int = 0
    term: int = 0
    type: EntryType = EntryType.NORMAL
    data: bytes = b""


@dataclass
class HardState:
    """State that must be persisted before answering messages."""

    term: int = 0
    vote: int = -1
    commit: int = 0


@dataclass
class SnapshotMetadata:
    index: int = 0
    term: int = 0


@dataclass
class Snapshot:
    metadata: SnapshotMetadata = field(default_factory=SnapshotMetadata)
    data: bytes = b""

    def empty(self) -> bool:
        """Whether this snapshot covers no log entries."""
        return self.metadata.index == 0


class RaftError(Exception):
    """Base class of storage errors."""


class CompactedError(RaftError):
    """The requested index has been compacted away."""


class UnavailableError(RaftError):
    """The requested index is not available yet."""


class SnapshotOutOfDateError(RaftError):
    """The snapshot is older than the one already held."""


class MemoryStorage:
    """Raft log kept in memory; entry zero is a dummy holding the compaction point."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._hard_state = HardState()
        self._snapshot = Snapshot()
        self._entries: list[Entry] = [Entry(type=EntryType.DUMMY)]

    def _offset(self) -> int:
        return self._entries[0].index

    def _last_index(self) -> int:
        return self._entries[0].index + len(self._entries) - 1

    def initial_state(self) -> HardState:
        with self._lock:
            return self._hard_state

    def set_hard_state(self, state: HardState) -> None:
        with self._lock:
            self._hard_state = state

    def entries(self, low: int, high: int, max_size: int = NO_LIMIT) -> list[Entry]:
        """Entries in ``[low, high)``, at most ``max_size`` of them."""
        with self._lock:
            offset = self._offset()
            if low < offset:
                raise CompactedError(f"index {low} is compacted")
            if high > self._last_index() + 1:
                raise IndexError(
                    f"entries high({high}) is out of bound last index({self._last_index()})")
            if len(self._entries) == 1:
                raise UnavailableError("storage holds no entries")
            end = min(high - offset, low - offset + max_size)
            return list(self._entries[low - offset:end])

    def term(self, index: int) -> int:
        """Term of the entry at ``index``."""
        with self._lock:
            offset = self._offset()
            if index < offset:
                raise CompactedError(f"index {index} is compacted")
            if index - offset >= len(self._entries):
                raise UnavailableError(f"index {index} is unavailable")
            return self._entries[index - offset].term

    def last_index(self) -> int:
        with self._lock:
            return self._last_index()

    def first_index(self) -> int:
        with self._lock:
            return self._offset() + 1

    def snapshot(self) -> Snapshot:
        with self._lock:
            return self._snapshot

    def apply_snapshot(self, snapshot: Snapshot) -> None:
        """Replace the log with ``snapshot``."""
        with self._lock:
            if self._snapshot.metadata.index >= snapshot.metadata.index:
                raise SnapshotOutOfDateError(
                    f"snapshot {snapshot.metadata.index} is not newer than "
                    f"{self._snapshot.metadata.index}")
            self._snapshot = snapshot
            self._entries = [Entry(snapshot.metadata.index, snapshot.metadata.term,
                                   EntryType.DUMMY)]

    def create_snapshot(self, index: int, data: bytes) -> Snapshot:
        """Record a snapshot of the state up to ``index`` holding ``data``."""
        with self._lock:
            if index < self._snapshot.metadata.index:
                raise SnapshotOutOfDateError(
                    f"snapshot {index} is older than {self._snapshot.metadata.index}")
            offset = self._offset()
            if index > self._last_index():
                raise IndexError(
                    f"snapshot {index} is out of bound last index({self._last_index()})")
            if index < offset:
                raise CompactedError(f"index {index} is compacted")
            self._snapshot = Snapshot(
                SnapshotMetadata(index, self._entries[index - offset].term), data)
            return self._snapshot

    def compact(self, compact_index: int) -> None:
        """Discard entries before ``compact_index``."""
        with self._lock:
            offset = self._offset()
            if compact_index <= offset:
                raise CompactedError(f"index {compact_index} is compacted")
            if compact_index > self._last_index():
                raise IndexError(
                    f"compact {compact_index} is out of bound last index({self._last_index()})")
            position = compact_index - offset
            head = self._entries[position]
            self._entries = [Entry(head.index, head.term, EntryType.DUMMY),
                             *self._entries[position + 1:]]

    def append(self, entries: list[Entry]) -> None:
        """Append ``entries``, replacing any existing entries they overlap."""
        if not entries:
            return
        with self._lock:
            first = self._offset() + 1
            last = entries[0].index + len(entries) - 1
            if last < first:
                return
            if first > entries[0].index:
                entries = entries[first - entries[0].index:]
            offset = entries[0].index - self._offset()
            if len(self._entries) >= offset:
                self._entries = self._entries[:offset] + list(entries)
            else:
                raise IndexError(
                    f"missing log entry [last: {self._last_index()}, "
                    f"append at: {entries[0].index}]")