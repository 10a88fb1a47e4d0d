"""Terminal date/time value.

The terminal stores six single-byte fields: year minus 2000, month,
day, hour, minute, second.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime

SIZE = 6
YEAR_BASE = 2000


@dataclass(frozen=True)
class DeviceTimestamp:
    """A date/time as reported by the terminal.

    Values are kept exactly as received, so an erased record can carry
    an impossible date such as month 0.
    """

    year: int = YEAR_BASE
    month: int = 0
    day: int = 0
    hour: int = 0
    minute: int = 0
    second: int = 0

    def to_bytes(self) -> bytes:
        if not YEAR_BASE <= self.year <= YEAR_BASE + 99:
            raise ValueError(f"Year must be 2000-2099, got {self.year}")
        return bytes([
            self.year - YEAR_BASE, self.month, self.day,
            self.hour, self.minute, self.second,
        ])

    @classmethod
    def from_bytes(cls, data: bytes) -> DeviceTimestamp:
        if len(data) < SIZE:
            data = data + b"\x00" * (SIZE - len(data))
        return cls(
            year=YEAR_BASE + data[0], month=data[1], day=data[2],
            hour=data[3], minute=data[4], second=data[5],
        )

    @classmethod
    def from_datetime(cls, dt: datetime) -> DeviceTimestamp:
        return cls(
            year=dt.year, month=dt.month, day=dt.day,
            hour=dt.hour, minute=dt.minute, second=dt.second,
        )

    def to_datetime(self) -> datetime:
        """Convert to a naive ``datetime``.

        Raises:
            ValueError: If the stored fields are not a real date.
        """
        return datetime(
            self.year, self.month, self.day,
            self.hour, self.minute, self.second,
        )

    def to_dict(self) -> dict:
        return asdict(self)

    def __str__(self) -> str:
        return (
            f"{self.year:04d}-{self.month:02d}-{self.day:02d} "
            f"{self.hour:02d}:{self.minute:02d}:{self.second:02d}"
        )
