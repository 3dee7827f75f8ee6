"""A growable binary buffer with fixed-width, varint and string codecs."""

from __future__ import annotations

import os
import struct
from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]

_UINT32_MASK = (1 << 32) - 1
_UINT64_MASK = (1 << 64) - 1


def _zigzag_encode(value: int) -> int:
    return value * 2 if value >= 0 else -value * 2 - 1


def _zigzag_decode(value: int) -> int:
    return (value >> 1) ^ -(value & 1)


def _as_bytes(value: str | BytesLike) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def _check_range(value: int, low: int, high: int) -> None:
    if not low <= value <= high:
        raise OverflowError(f"{value} is out of range [{low}, {high}]")


class ByteArray:
    """Binary buffer with a read/write position; big-endian by default.

    Storage grows in blocks of ``base_size`` bytes. Writes happen at the
    current position and extend the data size when they pass its end;
    reads consume data between the position and the data size and raise
    ``IndexError`` when not enough is left.
    """

    def __init__(self, base_size: int = 4096, little_endian: bool = False) -> None:
        if base_size <= 0:
            raise ValueError("base_size must be positive")
        self._base_size = base_size
        self._buffer = bytearray(base_size)
        self._position = 0
        self._size = 0
        self._little_endian = little_endian

    # -- state -----------------------------------------------------------

    @property
    def base_size(self) -> int:
        return self._base_size

    @property
    def little_endian(self) -> bool:
        return self._little_endian

    @little_endian.setter
    def little_endian(self, value: bool) -> None:
        self._little_endian = bool(value)

    @property
    def _order(self) -> str:
        return "little" if self._little_endian else "big"

    @property
    def _struct_prefix(self) -> str:
        return "<" if self._little_endian else ">"

    @property
    def position(self) -> int:
        return self._position

    @position.setter
    def position(self, value: int) -> None:
        if value < 0 or value > len(self._buffer):
            raise IndexError(f"position {value} is out of range")
        self._position = value
        self._size = max(self._size, value)

    @property
    def read_size(self) -> int:
        """Bytes left between the position and the end of the data."""
        return self._size - self._position

    def __len__(self) -> int:
        return self._size

    # -- raw access ------------------------------------------------------

    def _reserve(self, count: int) -> None:
        shortfall = self._position + count - len(self._buffer)
        if shortfall > 0:
            blocks = -(-shortfall // self._base_size)
            self._buffer.extend(bytes(blocks * self._base_size))

    def clear(self) -> None:
        """Drop all data and reset the position."""
        self._buffer = bytearray(self._base_size)
        self._position = 0
        self._size = 0

    def write(self, data: BytesLike) -> None:
        """Write ``data`` at the position and advance past it."""
        view = memoryview(data).cast("B")
        count = len(view)
        if not count:
            return
        self._reserve(count)
        self._buffer[self._position:self._position + count] = view
        self._position += count
        self._size = max(self._size, self._position)

    def read(self, size: int) -> bytes:
        """Read ``size`` bytes from the position and advance past them."""
        if size < 0 or size > self.read_size:
            raise IndexError(f"cannot read {size} bytes, {self.read_size} available")
        start = self._position
        self._position += size
        return bytes(self._buffer[start:self._position])

    def peek(self, size: int, position: int) -> bytes:
        """Read ``size`` bytes starting at ``position`` without moving."""
        if position < 0 or size < 0 or size > self._size - position:
            raise IndexError(f"cannot read {size} bytes at {position}")
        return bytes(self._buffer[position:position + size])

    def to_bytes(self) -> bytes:
        """The readable data, without moving the position."""
        return bytes(self._buffer[self._position:self._size])

    def to_hex_string(self) -> str:
        """Readable data as ``"xx "`` pairs, 32 bytes per line."""
        parts = []
        for index, byte in enumerate(self.to_bytes()):
            if index and index % 32 == 0:
                parts.append("\n")
            parts.append(f"{byte:02x} ")
        return "".join(parts)

    def write_to_file(self, path: str | os.PathLike[str]) -> None:
        """Write the readable data to ``path``."""
        with open(path, "wb") as handle:
            handle.write(self.to_bytes())

    def read_from_file(self, path: str | os.PathLike[str]) -> None:
        """Append the contents of ``path`` at the position."""
        with open(path, "rb") as handle:
            while chunk := handle.read(self._base_size):
                self.write(chunk)

    # -- fixed width integers -------------------------------------------

    def _write_int(self, value: int, width: int, signed: bool) -> None:
        self.write(value.to_bytes(width, self._order, signed=signed))

    def _read_int(self, width: int, signed: bool) -> int:
        return int.from_bytes(self.read(width), self._order, signed=signed)

    def write_int8(self, value: int) -> None:
        self._write_int(value, 1, True)

    def write_uint8(self, value: int) -> None:
        self._write_int(value, 1, False)

    def write_int16(self, value: int) -> None:
        self._write_int(value, 2, True)

    def write_uint16(self, value: int) -> None:
        self._write_int(value, 2, False)

    def write_int32(self, value: int) -> None:
        self._write_int(value, 4, True)

    def write_uint32(self, value: int) -> None:
        self._write_int(value, 4, False)

    def write_int64(self, value: int) -> None:
        self._write_int(value, 8, True)

    def write_uint64(self, value: int) -> None:
        self._write_int(value, 8, False)

    def read_int8(self) -> int:
        return self._read_int(1, True)

    def read_uint8(self) -> int:
        return self._read_int(1, False)

    def read_int16(self) -> int:
        return self._read_int(2, True)

    def read_uint16(self) -> int:
        return self._read_int(2, False)

    def read_int32(self) -> int:
        return self._read_int(4, True)

    def read_uint32(self) -> int:
        return self._read_int(4, False)

    def read_int64(self) -> int:
        return self._read_int(8, True)

    def read_uint64(self) -> int:
        return self._read_int(8, False)

    # -- varints ---------------------------------------------------------

    def _write_varint(self, value: int) -> None:
        encoded = bytearray()
        while value >= 0x80:
            encoded.append((value & 0x7F) | 0x80)
            value >>= 7
        encoded.append(value)
        self.write(encoded)

    def _read_varint(self, bits: int) -> int:
        result = 0
        for shift in range(0, bits, 7):
            byte = self.read_uint8()
            result |= (byte & 0x7F) << shift
            if byte < 0x80:
                break
        return result & ((1 << bits) - 1)

    def write_varuint32(self, value: int) -> None:
        _check_range(value, 0, _UINT32_MASK)
        self._write_varint(value)

    def write_varint32(self, value: int) -> None:
        _check_range(value, -(1 << 31), (1 << 31) - 1)
        self._write_varint(_zigzag_encode(value))

    def write_varuint64(self, value: int) -> None:
        _check_range(value, 0, _UINT64_MASK)
        self._write_varint(value)

    def write_varint64(self, value: int) -> None:
        _check_range(value, -(1 << 63), (1 << 63) - 1)
        self._write_varint(_zigzag_encode(value))

    def read_varuint32(self) -> int:
        return self._read_varint(32)

    def read_varint32(self) -> int:
        return _zigzag_decode(self._read_varint(32))

    def read_varuint64(self) -> int:
        return self._read_varint(64)

    def read_varint64(self) -> int:
        return _zigzag_decode(self._read_varint(64))

    # -- floating point --------------------------------------------------

    def write_float(self, value: float) -> None:
        self.write(struct.pack(self._struct_prefix + "f", value))

    def write_double(self, value: float) -> None:
        self.write(struct.pack(self._struct_prefix + "d", value))

    def read_float(self) -> float:
        return struct.unpack(self._struct_prefix + "f", self.read(4))[0]

    def read_double(self) -> float:
        return struct.unpack(self._struct_prefix + "d", self.read(8))[0]

    # -- strings ---------------------------------------------------------

    def write_string_f16(self, value: str | BytesLike) -> None:
        data = _as_bytes(value)
        self.write_uint16(len(data))
        self.write(data)

    def write_string_f32(self, value: str | BytesLike) -> None:
        data = _as_bytes(value)
        self.write_uint32(len(data))
        self.write(data)

    def write_string_f64(self, value: str | BytesLike) -> None:
        data = _as_bytes(value)
        self.write_uint64(len(data))
        self.write(data)

    def write_string_vint(self, value: str | BytesLike) -> None:
        data = _as_bytes(value)
        self.write_varuint64(len(data))
        self.write(data)

    def write_string(self, value: str | BytesLike) -> None:
        """Write the bytes of ``value`` with no length prefix."""
        self.write(_as_bytes(value))

    def _read_prefixed(self, length: int) -> bytes:
        if length > self.read_size:
            raise IndexError(f"string of {length} bytes, {self.read_size} available")
        return self.read(length)

    def read_string_f16(self) -> bytes:
        return self._read_prefixed(self.read_uint16())

    def read_string_f32(self) -> bytes:
        return self._read_prefixed(self.read_uint32())

    def read_string_f64(self) -> bytes:
        return self._read_prefixed(self.read_uint64())

    def read_string_vint(self) -> bytes:
        return self._read_prefixed(self.read_varuint64())

    def __repr__(self) -> str:
        return (f"ByteArray(size={self._size}, position={self._position}, "
                f"little_endian={self._little_endian})")