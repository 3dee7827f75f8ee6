"""Abstract byte stream with helpers for exact-length transfers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Union

from .byte_array import ByteArray

BytesLike = Union[bytes, bytearray, memoryview]


class Stream(ABC):
    """A source and sink of bytes."""

    @abstractmethod
    def read(self, size: int) -> bytes:
        """Read up to ``size`` bytes; an empty result means end of stream."""

    @abstractmethod
    def write(self, data: BytesLike) -> int:
        """Write some of ``data`` and return how many bytes were written."""

    @property
    def closed(self) -> bool:
        """Whether :meth:`close` has been called."""
        return getattr(self, "_closed", False)

    def close(self) -> None:
        """Mark the stream as closed."""
        self._closed = True

    def __enter__(self) -> "Stream":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def read_fix_size(self, length: int) -> bytes:
        """Read exactly ``length`` bytes; raise ``EOFError`` if the stream ends first."""
        buffer = bytearray()
        while len(buffer) < length:
            chunk = self.read(length - len(buffer))
            if not chunk:
                raise EOFError(f"stream ended after {len(buffer)} of {length} bytes")
            buffer.extend(chunk)
        return bytes(buffer)

    def write_fix_size(self, data: BytesLike | ByteArray) -> int:
        """Write all of ``data`` and return its length.

        A :class:`ByteArray` contributes its readable bytes, which it consumes.
        Raises ``ConnectionError`` when the stream stops accepting data.
        """
        if isinstance(data, ByteArray):
            data = data.read(data.read_size)
        view = memoryview(data).cast("B")
        offset = 0
        while offset < len(view):
            written = self.write(view[offset:])
            if written <= 0:
                raise ConnectionError(f"stream closed after {offset} of {len(view)} bytes")
            offset += written
        return len(view)