"""CRC-16 used by the Anviz terminal protocol.

Reflected polynomial 0xA001, register seeded with 0xFFFF, no final XOR
(the CRC-16/MODBUS parameter set). The result is transmitted low byte
first.
"""

from __future__ import annotations

CRC16_INIT = 0xFFFF
CRC16_POLY = 0xA001


def crc16(data: bytes) -> int:
    """Compute the 16-bit checksum of ``data``."""
    crc = CRC16_INIT
    for byte in data:
        crc ^= byte & 0xFF
        for _ in range(8):
            if crc & 0x0001:
                crc = (crc >> 1) ^ CRC16_POLY
            else:
                crc >>= 1
    return crc
