"""Tests for CRC-16 calculation."""

from anviz_mcp.utils.crc import crc16


def test_crc16_empty():
    """CRC of empty data is the initial register value."""
    assert crc16(b"") == 0xFFFF


def test_crc16_check_value():
    """Standard check string for this parameter set (CRC-16/MODBUS)."""
    assert crc16(b"123456789") == 0x4B37


def test_crc16_single_zero_byte():
    assert crc16(b"\x00") == 0x40BF


def test_crc16_get_clock_request():
    """Checksum region of a GetDeviceClock request for device 5."""
    assert crc16(bytes([0x05, 0x00, 0x00, 0x00, 0x38])) == 0xD2E9


def test_crc16_accepts_bytearray_and_list():
    data = [0x05, 0x00, 0x00, 0x00, 0x38]
    assert crc16(bytearray(data)) == crc16(bytes(data))
    assert crc16(data) == crc16(bytes(data))


def test_crc16_deterministic():
    """Same input should always produce same output."""
    data = b"\x05\x00\x00\x00\x4c\x00\x00\xff\xff"
    assert crc16(data) == crc16(data)


def test_crc16_single_bit_flip():
    """Flipping any bit of the input changes the CRC."""
    data = bytearray(b"\x05\x00\x00\x00\x92\x39\x30\x00\x00")
    original = crc16(data)
    for i in range(len(data)):
        for bit in range(8):
            corrupted = bytearray(data)
            corrupted[i] ^= 1 << bit
            assert crc16(corrupted) != original


def test_crc16_fits_16_bits():
    assert 0 <= crc16(bytes(range(256))) <= 0xFFFF
