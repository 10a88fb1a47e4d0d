"""Scalar field decoders and encoders.

Decoders take the full response buffer and an absolute offset. Reads
past the end of the buffer return ``0`` (or ``""``) instead of raising:
firmware variants omit trailing optional fields, and a short field must
not make the whole response undecodable.

Date fields are plain byte values, not packed BCD. The year byte holds
the last two digits, so ``0x19`` is 2025. Dates before 2000 or after
2099 come out in the wrong century.
"""

from __future__ import annotations

from ..models.timestamp import DeviceTimestamp

YEAR_BASE = 2000

TIMEZONE_NAMES: dict[int, str] = {
    -12: "UTC-12 (Baker Island)",
    -11: "UTC-11 (Samoa)",
    -10: "UTC-10 (Hawaii)",
    -9: "UTC-9 (Alaska)",
    -8: "UTC-8 (Pacific)",
    -7: "UTC-7 (Mountain)",
    -6: "UTC-6 (Central)",
    -5: "UTC-5 (Eastern)",
    -4: "UTC-4 (Atlantic)",
    -3: "UTC-3 (Brasilia)",
    -2: "UTC-2 (Mid-Atlantic)",
    -1: "UTC-1 (Azores)",
    0: "UTC+0 (London)",
    1: "UTC+1 (Berlin)",
    2: "UTC+2 (Cairo)",
    3: "UTC+3 (Moscow)",
    4: "UTC+4 (Dubai)",
    5: "UTC+5 (Pakistan)",
    6: "UTC+6 (Bangladesh)",
    7: "UTC+7 (Bangkok)",
    8: "UTC+8 (Shanghai)",
    9: "UTC+9 (Tokyo)",
    10: "UTC+10 (Sydney)",
    11: "UTC+11 (Solomon Islands)",
    12: "UTC+12 (New Zealand)",
    13: "UTC+13 (Fiji)",
    14: "UTC+14 (Line Islands)",
}


# ─── DECODERS ────────────────────────────────────────────────────────

def byte_at(data: bytes, offset: int) -> int:
    """Return ``data[offset]``, or 0 if the offset is out of range."""
    if 0 <= offset < len(data):
        return data[offset]
    return 0


def _uint_le(data: bytes, offset: int, width: int) -> int:
    value = 0
    for i in range(width):
        value |= byte_at(data, offset + i) << (8 * i)
    return value


def u8(data: bytes, offset: int) -> int:
    return byte_at(data, offset)


def u16_le(data: bytes, offset: int) -> int:
    return _uint_le(data, offset, 2)


def u24_le(data: bytes, offset: int) -> int:
    return _uint_le(data, offset, 3)


def u32_le(data: bytes, offset: int) -> int:
    return _uint_le(data, offset, 4)


def signed_byte(data: bytes, offset: int) -> int:
    """Two's-complement reading of a single byte."""
    value = byte_at(data, offset)
    return value - 256 if value > 127 else value


def flag(data: bytes, offset: int) -> bool:
    return byte_at(data, offset) != 0


def bcd_year(data: bytes, offset: int) -> int:
    return YEAR_BASE + byte_at(data, offset)


def dotted_ip(data: bytes, offset: int) -> str:
    """Four bytes as a dotted-quad string.

    Returns ``""`` when the field starts past the end of the buffer;
    a partially present address has its missing octets read as 0.
    """
    if offset >= len(data):
        return ""
    return ".".join(str(byte_at(data, offset + i)) for i in range(4))


def fixed_ascii(data: bytes, start: int, end: int | None = None) -> str:
    """Null-padded single-byte string in ``data[start:end]``.

    ``end`` follows slice rules, so a negative value counts back from
    the end of the buffer (``-2`` stops before a trailing checksum).
    Zero bytes are dropped wherever they appear.
    """
    raw = bytes(data[start:end]).replace(b"\x00", b"")
    return raw.decode("latin-1")


def clock_time(data: bytes, offset: int) -> str:
    """Hour and minute bytes as ``HH:MM``."""
    return f"{byte_at(data, offset):02d}:{byte_at(data, offset + 1):02d}"


def timestamp(data: bytes, offset: int) -> DeviceTimestamp:
    """Six bytes of year/month/day/hour/minute/second."""
    return DeviceTimestamp(
        year=bcd_year(data, offset),
        month=byte_at(data, offset + 1),
        day=byte_at(data, offset + 2),
        hour=byte_at(data, offset + 3),
        minute=byte_at(data, offset + 4),
        second=byte_at(data, offset + 5),
    )


def timezone_name(data: bytes, offset: int) -> str:
    hours = signed_byte(data, offset)
    return TIMEZONE_NAMES.get(hours, f"UTC{hours}")


def buffer_length(data: bytes, offset: int) -> int:
    """Number of bytes from ``offset`` to the end of the buffer."""
    return max(0, len(data) - offset)


# ─── ENCODERS ────────────────────────────────────────────────────────

def pack_u8(value: int) -> bytes:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"Value must be 0-255, got {value}")
    return bytes([value])


def pack_u16_le(value: int) -> bytes:
    if not 0 <= value <= 0xFFFF:
        raise ValueError(f"Value must be 0-65535, got {value}")
    return value.to_bytes(2, "little")


def pack_u32_le(value: int) -> bytes:
    if not 0 <= value <= 0xFFFFFFFF:
        raise ValueError(f"Value must fit in 32 bits, got {value}")
    return value.to_bytes(4, "little")


def pack_signed_byte(value: int) -> bytes:
    if not -128 <= value <= 127:
        raise ValueError(f"Signed byte must be -128 to 127, got {value}")
    return bytes([value & 0xFF])

