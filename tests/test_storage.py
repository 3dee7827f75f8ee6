import pytest

from acid.raft.storage import (
    NO_LIMIT,
    CompactedError,
    Entry,
    HardState,
    MemoryStorage,
    Snapshot,
    SnapshotMetadata,
    SnapshotOutOfDateError,
    UnavailableError,
)


def make_entries(start, stop, term=1):
    return [Entry(index, term) for index in range(start, stop)]


@pytest.fixture
def storage():
    store = MemoryStorage()
    store.append([Entry(1, 1), Entry(2, 1), Entry(3, 2)])
    return store


def test_fresh_storage_bounds():
    store = MemoryStorage()
    assert store.first_index() == store.last_index() + 1
    with pytest.raises(UnavailableError):
        store.entries(store.first_index(), store.first_index(), NO_LIMIT)


def test_append_and_term(storage):
    assert storage.first_index() == 1
    assert storage.last_index() == 3
    assert storage.term(3) == 2
    with pytest.raises(UnavailableError):
        storage.term(10)


def test_entries_slice_and_limit(storage):
    got = storage.entries(1, 4, NO_LIMIT)
    assert [entry.index for entry in got] == [1, 2, 3]
    limited = storage.entries(1, 4, 2)
    assert [entry.index for entry in limited] == [1, 2]
    with pytest.raises(IndexError):
        storage.entries(1, 5, NO_LIMIT)


def test_compact(storage):
    storage.compact(2)
    assert storage.first_index() == 3
    assert storage.last_index() == 3
    assert storage.term(2) == 1
    with pytest.raises(CompactedError):
        storage.term(1)
    with pytest.raises(CompactedError):
        storage.entries(1, 3, NO_LIMIT)


def test_compact_errors(storage):
    with pytest.raises(CompactedError):
        storage.compact(0)
    with pytest.raises(IndexError):
        storage.compact(10)


def test_create_snapshot(storage):
    snap = storage.create_snapshot(2, b"data")
    assert snap.metadata == SnapshotMetadata(2, storage.term(2))
    assert snap.data == b"data"
    assert storage.snapshot() is snap
    with pytest.raises(SnapshotOutOfDateError):
        storage.create_snapshot(1, b"old")
    with pytest.raises(IndexError):
        storage.create_snapshot(10, b"late")


def test_apply_snapshot(storage):
    snap = Snapshot(SnapshotMetadata(5, 3), b"state")
    storage.apply_snapshot(snap)
    assert storage.first_index() == 6
    assert storage.last_index() == 5
    assert storage.term(5) == 3
    assert storage.snapshot() is snap
    with pytest.raises(SnapshotOutOfDateError):
        storage.apply_snapshot(Snapshot(SnapshotMetadata(5, 3)))


def test_append_replaces_overlap(storage):
    storage.append([Entry(2, 5)])
    assert storage.last_index() == 2
    assert storage.term(2) == 5


def test_append_gap_raises():
    store = MemoryStorage()
    with pytest.raises(IndexError):
        store.append([Entry(5, 1)])


def test_append_ignores_compacted_entries(storage):
    storage.compact(3)
    storage.append(make_entries(1, 3))
    assert storage.first_index() == 4
    assert storage.last_index() == 3
    storage.append(make_entries(2, 6, term=4))
    assert storage.last_index() == 5
    assert storage.term(4) == 4


def test_snapshot_empty():
    assert Snapshot().empty() is True
    assert Snapshot(SnapshotMetadata(1, 1)).empty() is False


def test_hard_state_round_trip():
    store = MemoryStorage()
    state = HardState(term=2, vote=1, commit=3)
    store.set_hard_state(state)
    assert store.initial_state() == state