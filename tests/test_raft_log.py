import pytest

from acid.raft.raft_log import RaftLog
from acid.raft.storage import (
    CompactedError,
    Entry,
    MemoryStorage,
    Snapshot,
    SnapshotMetadata,
)


def stored_log(*terms):
    storage = MemoryStorage()
    storage.append([Entry(i + 1, term) for i, term in enumerate(terms)])
    return RaftLog(storage)


def test_new_log_over_empty_storage():
    log = RaftLog(MemoryStorage())
    assert log.first_index() == 1
    assert log.last_index() == 0
    assert log.committed == 0
    assert log.applied == 0


def test_missing_storage_rejected():
    with pytest.raises(ValueError):
        RaftLog(None)


def test_append_goes_to_unstable():
    log = RaftLog(MemoryStorage())
    entries = [Entry(1, 1), Entry(2, 1)]
    assert log.append(entries) == 2
    assert log.unstable_entries() == entries
    assert log.term(2) == 1


def test_append_empty_returns_last_index():
    log = stored_log(1, 1, 1)
    assert log.append([]) == log.last_index()


def test_append_before_committed_raises():
    log = stored_log(1, 1, 1)
    log.commit_to(3)
    with pytest.raises(ValueError):
        log.append([Entry(2, 2)])


def test_term_outside_log_is_none():
    log = stored_log(1, 2)
    assert log.term(0) == 0
    assert log.term(2) == 2
    assert log.term(3) is None


def test_match_log():
    log = stored_log(1, 2)
    assert log.match_log(2, 2)
    assert not log.match_log(2, 1)
    assert not log.match_log(5, 2)


def test_find_conflict():
    log = stored_log(1, 1, 1)
    assert log.find_conflict([Entry(1, 1), Entry(2, 1)]) is None
    assert log.find_conflict([Entry(2, 1), Entry(3, 2)]) == 3
    assert log.find_conflict([Entry(4, 1)]) == 4


def test_maybe_append_extends_and_commits():
    log = stored_log(1, 1)
    assert log.maybe_append(2, 1, 2, [Entry(3, 2)]) == 3
    assert log.last_index() == 3
    assert log.committed == 2


def test_maybe_append_commit_limited_by_new_entries():
    log = stored_log(1, 1)
    assert log.maybe_append(2, 1, 10, [Entry(3, 2)]) == 3
    assert log.committed == 3


def test_maybe_append_replaces_conflicting_entries():
    log = stored_log(1, 1, 1)
    assert log.maybe_append(1, 1, 0, [Entry(2, 2)]) == 2
    assert log.last_index() == 2
    assert log.term(2) == 2


def test_maybe_append_mismatch_returns_none():
    log = stored_log(1, 1)
    assert log.maybe_append(2, 5, 2, [Entry(3, 5)]) is None
    assert log.last_index() == 2
    assert log.committed == 0


def test_maybe_append_conflict_with_committed_raises():
    log = stored_log(1, 1, 1)
    log.commit_to(3)
    with pytest.raises(ValueError):
        log.maybe_append(1, 1, 3, [Entry(2, 2)])


def test_commit_to_beyond_last_raises_and_never_lowers():
    log = stored_log(1, 1, 1)
    with pytest.raises(IndexError):
        log.commit_to(4)
    log.commit_to(3)
    log.commit_to(1)
    assert log.committed == 3


def test_applied_to_bounds():
    log = stored_log(1, 1, 1)
    log.commit_to(2)
    with pytest.raises(ValueError):
        log.applied_to(3)
    log.applied_to(2)
    assert log.applied == 2
    with pytest.raises(ValueError):
        log.applied_to(1)


def test_next_entries_follow_commit_and_apply():
    log = stored_log(1, 1, 1)
    assert not log.has_next_entries()
    assert log.next_entries() == []
    log.commit_to(2)
    assert log.has_next_entries()
    assert [entry.index for entry in log.next_entries()] == [1, 2]
    log.applied_to(2)
    assert not log.has_next_entries()
    assert log.next_entries() == []


def test_next_entries_respects_size_limit():
    storage = MemoryStorage()
    storage.append([Entry(1, 1), Entry(2, 1), Entry(3, 1)])
    log = RaftLog(storage, max_next_entries_size=1)
    log.commit_to(3)
    assert [entry.index for entry in log.next_entries()] == [1]


def test_stable_to_moves_entries_to_storage():
    storage = MemoryStorage()
    log = RaftLog(storage)
    entries = [Entry(1, 1), Entry(2, 1)]
    log.append(entries)
    storage.append(entries)
    log.stable_to(2, 1)
    assert log.unstable_entries() == []
    assert log.last_index() == 2
    assert log.entries(1) == entries


def test_slice_spans_storage_and_unstable():
    log = stored_log(1, 1)
    log.append([Entry(3, 2), Entry(4, 2)])
    assert [entry.index for entry in log.slice(2, 5)] == [2, 3, 4]
    assert [entry.index for entry in log.slice(1, 5, 2)] == [1, 2]
    assert log.slice(3, 3) == []


def test_slice_bounds():
    log = stored_log(1, 1)
    with pytest.raises(IndexError):
        log.slice(1, 4)
    with pytest.raises(ValueError):
        log.slice(2, 1)
    with pytest.raises(CompactedError):
        log.slice(0, 2)


def test_entries_past_end_is_empty():
    log = stored_log(1, 1)
    assert log.entries(3) == []


def test_all_entries_after_compaction():
    storage = MemoryStorage()
    storage.append([Entry(i, 1) for i in range(1, 6)])
    storage.compact(3)
    log = RaftLog(storage)
    assert log.first_index() == 4
    assert [entry.index for entry in log.all_entries()] == [4, 5]


def test_last_term_and_up_to_date():
    log = stored_log(1, 2)
    assert log.last_term() == 2
    assert log.is_up_to_date(2, 2)
    assert log.is_up_to_date(1, 3)
    assert not log.is_up_to_date(1, 2)
    assert not log.is_up_to_date(9, 1)


def test_maybe_commit_requires_matching_term():
    log = stored_log(1, 2)
    assert not log.maybe_commit(2, 1)
    assert log.committed == 0
    assert log.maybe_commit(2, 2)
    assert log.committed == 2
    assert not log.maybe_commit(2, 2)


def test_restore_snapshot():
    log = stored_log(1, 1)
    snap = Snapshot(SnapshotMetadata(index=10, term=3), b"state")
    log.restore(snap)
    assert log.committed == 10
    assert log.first_index() == 11
    assert log.last_index() == 10
    assert log.term(10) == 3
    assert log.snapshot() is snap
    log.stable_snap_to(10)
    assert log.snapshot() is log.storage.snapshot()