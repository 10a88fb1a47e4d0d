"""Frame builder and parser for the Anviz TCP protocol.

Frame layout::

    +--------+-----------+---------+------------------+----------+
    | Header | Device ID | Command |     Payload      | Checksum |
    | 1 byte | 4 bytes   | 1 byte  |  variable length |  2 bytes |
    +--------+-----------+---------+------------------+----------+

- Header: constant 0xA5
- Device ID: little-endian unsigned terminal number
- Checksum: CRC-16 over (device ID + command + payload), little-endian

There is no length field. The end of a request is implied by the
command, and the end of a response is whatever the terminal sent.
Responses reuse the same layout.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import ChecksumError, FrameError
from ..utils.crc import crc16

HEADER = 0xA5
MIN_FRAME_SIZE = 8  # header(1) + device_id(4) + command(1) + checksum(2)
MAX_DEVICE_ID = 0xFFFFFFFF

OFF_DEVICE_ID = 1
OFF_COMMAND = 5
OFF_PAYLOAD = 6

# Replies carry data from the command position onward
OFF_REPLY_DATA = OFF_COMMAND


@dataclass(frozen=True)
class Frame:
    """A parsed protocol frame."""

    device_id: int
    command: int
    payload: bytes
    checksum: int

    @property
    def expected_checksum(self) -> int:
        body = (
            self.device_id.to_bytes(4, "little")
            + bytes([self.command])
            + self.payload
        )
        return crc16(body)

    @property
    def checksum_ok(self) -> bool:
        return self.checksum == self.expected_checksum

    def __repr__(self) -> str:
        return (
            f"Frame(device_id={self.device_id}, command=0x{self.command:02X}, "
            f"payload={self.payload.hex(' ') if self.payload else '(empty)'}, "
            f"checksum=0x{self.checksum:04X})"
        )


def build_frame(device_id: int, command: int, payload: bytes = b"") -> bytes:
    """Build a complete request frame.

    Args:
        device_id: Terminal number, 0 to 0xFFFFFFFF.
        command: Single-byte command code.
        payload: Command-specific payload bytes.

    Returns:
        The frame, ready to write to the socket.
    """
    if not 0 <= device_id <= MAX_DEVICE_ID:
        raise ValueError(f"Device ID must fit in 32 bits, got {device_id}")
    if not 0 <= command <= 0xFF:
        raise ValueError(f"Command must be a single byte, got {command}")

    body = device_id.to_bytes(4, "little") + bytes([command]) + bytes(payload)
    checksum = crc16(body).to_bytes(2, "little")
    return bytes([HEADER]) + body + checksum


def parse_frame(data: bytes, strict: bool = False) -> Frame:
    """Split a received frame into its parts.

    The payload is returned uninterpreted. Terminals are not consistent
    about checksums, so a mismatch is only reported through
    ``Frame.checksum_ok`` unless ``strict`` is set.

    Raises:
        FrameError: If the data is shorter than a minimal frame or the
            header byte is wrong.
        ChecksumError: In strict mode, if the checksum does not match.
    """
    if len(data) < MIN_FRAME_SIZE:
        raise FrameError(
            f"Frame is {len(data)} bytes, need at least {MIN_FRAME_SIZE}"
        )
    if data[0] != HEADER:
        raise FrameError(
            f"Bad header byte 0x{data[0]:02X}, expected 0x{HEADER:02X}"
        )

    frame = Frame(
        device_id=int.from_bytes(data[OFF_DEVICE_ID:OFF_COMMAND], "little"),
        command=data[OFF_COMMAND],
        payload=bytes(data[OFF_PAYLOAD:-2]),
        checksum=int.from_bytes(data[-2:], "little"),
    )

    if strict and not frame.checksum_ok:
        raise ChecksumError(expected=frame.expected_checksum, actual=frame.checksum)

    return frame
