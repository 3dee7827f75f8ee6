"""Saving and loading Raft snapshots as files in a directory."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from ..byte_array import ByteArray
from .storage import Snapshot, SnapshotMetadata

_logger = logging.getLogger(__name__)


def encode_snapshot(snapshot: Snapshot) -> bytes:
    """Serialise ``snapshot`` to bytes."""
    buffer = ByteArray()
    buffer.write_varint64(snapshot.metadata.index)
    buffer.write_varint64(snapshot.metadata.term)
    buffer.write_string_vint(snapshot.data)
    buffer.position = 0
    return buffer.to_bytes()


def decode_snapshot(data: bytes) -> Snapshot:
    """Parse bytes made by :func:`encode_snapshot`; raises ``IndexError`` if truncated."""
    buffer = ByteArray()
    buffer.write(data)
    buffer.position = 0
    index = buffer.read_varint64()
    term = buffer.read_varint64()
    payload = buffer.read_string_vint()
    return Snapshot(SnapshotMetadata(index=index, term=term), payload)


class Snapshotter:
    """Keeps snapshots as ``<term>-<index><suffix>`` files in ``directory``."""

    def __init__(self, directory: str | os.PathLike[str], suffix: str = ".snap") -> None:
        self.directory = Path(directory)
        self.suffix = suffix
        if not str(directory):
            _logger.warning("snapshot path is empty")
        if not self.directory.exists():
            _logger.warning("snapshot path: %s does not exist", self.directory)
        elif not self.directory.is_dir():
            _logger.warning("snapshot path: %s is not a directory", self.directory)

    def save_snap(self, snapshot: Snapshot | None) -> bool:
        """Write ``snapshot`` to disk; an absent or empty snapshot is not saved."""
        if snapshot is None or snapshot.empty():
            return False
        name = f"{snapshot.metadata.term:016d}-{snapshot.metadata.index:016d}{self.suffix}"
        with open(self.directory / name, "wb") as handle:
            handle.write(encode_snapshot(snapshot))
            handle.flush()
            os.fsync(handle.fileno())
        return True

    def load_snap(self) -> Snapshot | None:
        """The newest readable snapshot, or ``None``."""
        for name in self.snap_names():
            snapshot = self._read(name)
            if snapshot is not None:
                return snapshot
        return None

    def snap_names(self) -> list[str]:
        """Snapshot file names, newest first."""
        if not self.directory.is_dir():
            return []
        names = []
        for path in self.directory.iterdir():
            if not path.is_file():
                continue
            if path.name.endswith(self.suffix):
                names.append(path.name)
            else:
                _logger.warning("skipped unexpected non snapshot file %s", path.name)
        return sorted(names, reverse=True)

    def _read(self, name: str) -> Snapshot | None:
        data = (self.directory / name).read_bytes()
        if not data:
            return None
        try:
            return decode_snapshot(data)
        except (IndexError, ValueError):
            _logger.warning("failed to read snapshot file %s", name)
            return None