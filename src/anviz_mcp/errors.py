"""Exception hierarchy for protocol and transport failures."""

from __future__ import annotations


class AnvizError(Exception):
    """Base class for every error raised by this package."""


class TransportError(AnvizError):
    """The TCP exchange with the terminal failed (refused, reset, closed)."""


class TransportTimeout(TransportError):
    """No complete response arrived before the socket timeout."""


class FrameError(AnvizError):
    """A received frame is too short or does not start with the header byte."""


class ChecksumError(FrameError):
    """Strict mode only: the frame checksum does not match its contents."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            f"Checksum mismatch: frame carries 0x{actual:04X}, "
            f"computed 0x{expected:04X}"
        )
        self.expected = expected
        self.actual = actual


class UnknownCommand(AnvizError):
    """The command code has no entry in the command catalog."""

    def __init__(self, command: int) -> None:
        super().__init__(f"Unknown command code 0x{command:02X}")
        self.command = command


class IncompleteResponse(AnvizError):
    """The response is shorter than the command's declared minimum.

    Callers should treat this as "no data" rather than a device fault.
    """

    def __init__(self, command: int, length: int, min_length: int) -> None:
        super().__init__(
            f"Response to 0x{command:02X} is {length} bytes, "
            f"need at least {min_length}"
        )
        self.command = command
        self.length = length
        self.min_length = min_length
