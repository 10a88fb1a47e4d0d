"""Attendance record model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from .timestamp import DeviceTimestamp


@dataclass(frozen=True)
class AttendanceRecord:
    """One punch from the terminal's log.

    ``status`` is only present in full downloads; the new-records
    command does not report it.
    """

    user_id: int
    timestamp: DeviceTimestamp
    status: int | None = None

    @classmethod
    def from_fields(cls, fields: Mapping[str, Any]) -> AttendanceRecord:
        return cls(
            user_id=fields["user_id"],
            timestamp=fields["timestamp"],
            status=fields.get("status"),
        )

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "user_id": self.user_id,
            "datetime": str(self.timestamp),
        }
        if self.status is not None:
            d["status"] = self.status
        return d
