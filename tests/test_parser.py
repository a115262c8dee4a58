import pytest

from spongekit.buffer import Buffer
from spongekit.parser import (
    NetParser,
    ParseResult,
    as_string,
    unparse_u8,
    unparse_u16,
    unparse_u32,
)


@pytest.mark.parametrize(
    "result,name",
    [
        (ParseResult.NoError, "NoError"),
        (ParseResult.BadChecksum, "BadChecksum"),
        (ParseResult.PacketTooShort, "PacketTooShort"),
        (ParseResult.WrongIPVersion, "WrongIPVersion"),
        (ParseResult.HeaderTooShort, "HeaderTooShort"),
        (ParseResult.TruncatedPacket, "TruncatedPacket"),
    ],
)
def test_as_string(result, name):
    assert as_string(result) == name


def test_parse_big_endian():
    parser = NetParser(Buffer(b"\x12\x34\x56\x78\x9a\xbc\xde"))
    assert parser.u16() == 0x1234
    assert parser.u8() == 0x56
    assert parser.u32() == 0x789ABCDE
    assert not parser.has_error()
    assert len(parser.buffer()) == 0


def test_roundtrip():
    data = unparse_u32(0xDEADBEEF) + unparse_u16(0x0102) + unparse_u8(0x7F)
    assert len(data) == 7
    parser = NetParser(data)
    assert parser.u32() == 0xDEADBEEF
    assert parser.u16() == 0x0102
    assert parser.u8() == 0x7F
    assert parser.error is ParseResult.NoError


def test_unparse_truncates():
    assert unparse_u8(0x1FF) == unparse_u8(0xFF)
    assert unparse_u16(0x12345) == unparse_u16(0x2345)


def test_too_short_sets_error_and_sticks():
    parser = NetParser(b"\x01\x02\x03")
    assert parser.u32() == 0
    assert parser.error is ParseResult.PacketTooShort
    assert parser.has_error()
    assert parser.u8() == 0
    assert len(parser.buffer()) == 3


def test_remove_prefix():
    parser = NetParser(b"\x00\x00\xab")
    parser.remove_prefix(2)
    assert parser.u8() == 0xAB
    parser.remove_prefix(1)
    assert parser.error is ParseResult.PacketTooShort


def test_manual_error_blocks_parsing():
    parser = NetParser(b"\x01\x02")
    parser.error = ParseResult.BadChecksum
    assert parser.u16() == 0
    assert parser.error is ParseResult.BadChecksum


def test_parser_does_not_consume_callers_buffer():
    buf = Buffer(b"\x00\x01")
    parser = NetParser(buf)
    assert parser.u16() == 1
    assert bytes(buf) == b"\x00\x01"