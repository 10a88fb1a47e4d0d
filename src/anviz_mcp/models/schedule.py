"""Bell schedule and daylight-saving rule models."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import ClassVar

MAX_BELL_ENTRIES = 8


@dataclass
class BellSchedule:
    """One bell slot: ring at ``hour:minute`` with a melody and volume (4 bytes)."""

    SIZE: ClassVar[int] = 4

    hour: int
    minute: int
    melody: int = 0
    volume: int = 100

    def to_bytes(self) -> bytes:
        if not 0 <= self.hour <= 23:
            raise ValueError(f"Hour must be 0-23, got {self.hour}")
        if not 0 <= self.minute <= 59:
            raise ValueError(f"Minute must be 0-59, got {self.minute}")
        for name in ("melody", "volume"):
            value = getattr(self, name)
            if not 0 <= value <= 0xFF:
                raise ValueError(f"{name.capitalize()} must be 0-255, got {value}")
        return bytes([self.hour, self.minute, self.melody, self.volume])

    @classmethod
    def parse(cls, time: str, melody: int = 0, volume: int = 100) -> BellSchedule:
        """Build an entry from an ``HH:MM`` string."""
        try:
            hour, minute = (int(part) for part in time.split(":"))
        except ValueError as e:
            raise ValueError(f"Bell time must be HH:MM, got {time!r}") from e
        return cls(hour=hour, minute=minute, melody=melody, volume=volume)

    @property
    def time(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"

    def to_dict(self) -> dict:
        return {"time": self.time, "melody": self.melody, "volume": self.volume}


@dataclass
class DstRules:
    """Daylight-saving start and end rules (8 bytes)."""

    SIZE: ClassVar[int] = 8

    start_month: int = 3
    start_week: int = 2
    start_day: int = 0
    start_hour: int = 2
    end_month: int = 10
    end_week: int = 1
    end_day: int = 0
    end_hour: int = 3

    def to_bytes(self) -> bytes:
        values = list(asdict(self).values())
        for value in values:
            if not 0 <= value <= 0xFF:
                raise ValueError(f"DST rule values must be 0-255, got {value}")
        return bytes(values)

    @classmethod
    def from_bytes(cls, data: bytes) -> DstRules:
        if len(data) < cls.SIZE:
            data = data + b"\x00" * (cls.SIZE - len(data))
        return cls(*data[: cls.SIZE])

    def to_dict(self) -> dict:
        return asdict(self)
