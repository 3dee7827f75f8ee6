import math

import pytest

from acid.byte_array import ByteArray


FIXED = [
    ("int8", -(1 << 7), (1 << 7) - 1),
    ("uint8", 0, (1 << 8) - 1),
    ("int16", -(1 << 15), (1 << 15) - 1),
    ("uint16", 0, (1 << 16) - 1),
    ("int32", -(1 << 31), (1 << 31) - 1),
    ("uint32", 0, (1 << 32) - 1),
    ("int64", -(1 << 63), (1 << 63) - 1),
    ("uint64", 0, (1 << 64) - 1),
]


@pytest.mark.parametrize("little", [False, True])
@pytest.mark.parametrize("kind,low,high", FIXED)
def test_fixed_round_trip(kind, low, high, little):
    ba = ByteArray(base_size=3, little_endian=little)
    values = [low, high, (low + high) // 2]
    for value in values:
        getattr(ba, f"write_{kind}")(value)
    ba.position = 0
    assert [getattr(ba, f"read_{kind}")() for _ in values] == values
    assert ba.read_size == 0


VARINTS = [
    ("varint32", -(1 << 31), (1 << 31) - 1),
    ("varuint32", 0, (1 << 32) - 1),
    ("varint64", -(1 << 63), (1 << 63) - 1),
    ("varuint64", 0, (1 << 64) - 1),
]


@pytest.mark.parametrize("kind,low,high", VARINTS)
def test_varint_round_trip(kind, low, high):
    ba = ByteArray(base_size=2)
    values = [low, high, 0, 127, 128, low + 1, high - 1]
    for value in values:
        getattr(ba, f"write_{kind}")(value)
    ba.position = 0
    assert [getattr(ba, f"read_{kind}")() for _ in values] == values


def test_varuint_wire_format():
    ba = ByteArray()
    ba.write_varuint32(300)
    ba.position = 0
    assert ba.to_bytes() == b"\xac\x02"


def test_zigzag_minus_one_matches_one():
    signed = ByteArray()
    signed.write_varint32(-1)
    unsigned = ByteArray()
    unsigned.write_varuint32(1)
    signed.position = 0
    unsigned.position = 0
    assert signed.to_bytes() == unsigned.to_bytes()


def test_big_endian_is_default():
    ba = ByteArray()
    ba.write_uint16(0x0102)
    ba.position = 0
    assert ba.little_endian is False
    assert ba.to_bytes() == b"\x01\x02"


def test_little_endian_order():
    ba = ByteArray(little_endian=True)
    ba.write_uint16(0x0102)
    ba.position = 0
    assert ba.to_bytes() == b"\x02\x01"


def test_float_and_double_round_trip():
    ba = ByteArray()
    ba.write_float(1.5)
    ba.write_double(math.pi)
    ba.position = 0
    assert ba.read_float() == 1.5
    assert ba.read_double() == math.pi


@pytest.mark.parametrize("kind", ["f16", "f32", "f64", "vint"])
@pytest.mark.parametrize("value", ["hello", "", "héllo wörld", b"\x00\xffbin"])
def test_string_round_trip(kind, value):
    ba = ByteArray(base_size=4)
    getattr(ba, f"write_string_{kind}")(value)
    ba.position = 0
    expected = value.encode("utf-8") if isinstance(value, str) else value
    assert getattr(ba, f"read_string_{kind}")() == expected


def test_string_f16_length_prefix():
    ba = ByteArray()
    ba.write_string_f16("abc")
    ba.position = 0
    assert ba.read_uint16() == len("abc")
    assert ba.read(len("abc")) == b"abc"


def test_write_string_has_no_prefix():
    ba = ByteArray()
    ba.write_string("abc")
    assert len(ba) == len("abc")


def test_read_past_end_raises():
    ba = ByteArray()
    ba.write_uint8(7)
    ba.position = 0
    ba.read_uint8()
    with pytest.raises(IndexError):
        ba.read_uint8()


def test_truncated_string_raises():
    ba = ByteArray()
    ba.write_uint16(50)
    ba.write(b"short")
    ba.position = 0
    with pytest.raises(IndexError):
        ba.read_string_f16()


def test_out_of_range_writes_raise():
    ba = ByteArray()
    with pytest.raises(OverflowError):
        ba.write_uint8(256)
    with pytest.raises(OverflowError):
        ba.write_varuint32(1 << 32)
    with pytest.raises(OverflowError):
        ba.write_varint32(1 << 31)


def test_position_beyond_capacity_raises():
    ba = ByteArray(base_size=8)
    with pytest.raises(IndexError):
        ba.position = 9
    assert ba.position == 0
    assert len(ba) == 0


def test_position_within_capacity_extends_size():
    ba = ByteArray(base_size=8)
    ba.position = 5
    assert len(ba) == 5


def test_growth_beyond_base_size():
    data = bytes(range(200))
    ba = ByteArray(base_size=4)
    ba.write(data)
    ba.position = 0
    assert ba.read(len(data)) == data


def test_overwrite_keeps_size():
    ba = ByteArray()
    ba.write(b"abcdef")
    ba.position = 1
    ba.write(b"XY")
    assert len(ba) == 6
    ba.position = 0
    assert ba.to_bytes() == b"aXYdef"


def test_peek_does_not_move():
    ba = ByteArray()
    ba.write(b"abcdef")
    assert ba.peek(3, 2) == b"cde"
    assert ba.position == len(b"abcdef")
    with pytest.raises(IndexError):
        ba.peek(5, 2)


def test_clear():
    ba = ByteArray()
    ba.write(b"abc")
    ba.clear()
    assert len(ba) == 0
    assert ba.position == 0
    assert ba.to_bytes() == b""


def test_hex_string():
    data = bytes(range(40))
    ba = ByteArray()
    ba.write(data)
    ba.position = 0
    text = ba.to_hex_string()
    assert bytes.fromhex("".join(text.split())) == data
    assert all(len(line.split()) <= 32 for line in text.splitlines())
    assert text == text.lower()


def test_file_round_trip(tmp_path):
    path = tmp_path / "data.bin"
    source = ByteArray()
    source.write_string_vint("payload")
    source.write_int64(-42)
    source.position = 0
    source.write_to_file(path)

    target = ByteArray(base_size=3)
    target.read_from_file(path)
    target.position = 0
    assert target.read_string_vint() == b"payload"
    assert target.read_int64() == -42