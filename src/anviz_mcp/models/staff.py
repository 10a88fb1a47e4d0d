"""Staff (user) entry as uploaded to the terminal."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import ClassVar

NAME_SIZE = 20


@dataclass
class StaffMember:
    """One user record for the staff upload command (23 bytes).

    Layout: user id (u16 LE), name (20 bytes, space-padded ASCII),
    department (u8).
    """

    SIZE: ClassVar[int] = 2 + NAME_SIZE + 1

    user_id: int
    name: str = ""
    department: int = 0

    def to_bytes(self) -> bytes:
        if not 0 <= self.user_id <= 0xFFFF:
            raise ValueError(f"User ID must be 0-65535, got {self.user_id}")
        if not 0 <= self.department <= 0xFF:
            raise ValueError(f"Department must be 0-255, got {self.department}")
        name = self.name.encode("ascii", errors="replace")[:NAME_SIZE]
        name = name + b" " * (NAME_SIZE - len(name))
        return self.user_id.to_bytes(2, "little") + name + bytes([self.department])

    @classmethod
    def from_bytes(cls, data: bytes) -> StaffMember:
        if len(data) < cls.SIZE:
            data = data + b"\x00" * (cls.SIZE - len(data))
        return cls(
            user_id=int.from_bytes(data[0:2], "little"),
            name=data[2 : 2 + NAME_SIZE].rstrip(b" \x00").decode("ascii", errors="replace"),
            department=data[2 + NAME_SIZE],
        )

    def to_dict(self) -> dict:
        return asdict(self)
