"""Response layouts for every command.

Offsets in ``fields`` count from the 0xA5 header byte of the raw
response. Reply data starts at offset 5, the position a request uses
for its command code. Record-stream fields are relative to the record
start. The table is built once at import and never modified.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Mapping

from . import fields as f
from .commands import Command

Decoder = Callable[[bytes, int], Any]

ATTENDANCE_RECORD_SIZE = 16
ATTENDANCE_FIRST_RECORD = 15
BELL_ENTRY_SIZE = 4
BELL_FIRST_ENTRY = 5
BELL_MAX_ENTRIES = 8


@dataclass(frozen=True)
class FieldSpec:
    """A named value decoded at a fixed offset."""

    name: str
    offset: int
    decoder: Decoder


@dataclass(frozen=True)
class RecordStream:
    """A run of fixed-width records following the flat fields."""

    name: str
    record_width: int
    first_record_offset: int
    fields: tuple[FieldSpec, ...]
    max_records: int | None = None

    def record_count(self, length: int) -> int:
        count = max(0, (length - self.first_record_offset) // self.record_width)
        if self.max_records is not None:
            count = min(count, self.max_records)
        return count


@dataclass(frozen=True)
class CommandSpec:
    """Static description of one command's response."""

    command: Command
    name: str
    min_length: int = 0
    fields: tuple[FieldSpec, ...] = ()
    stream: RecordStream | None = None


def _serial_number(data: bytes, offset: int) -> str:
    # Runs to the end of the frame, stopping before the checksum
    return f.fixed_ascii(data, offset, -2)


_ATTENDANCE_FIELDS = (
    FieldSpec("user_id", 0, f.u16_le),
    FieldSpec("timestamp", 6, f.timestamp),
)

_ATTENDANCE_RECORDS = RecordStream(
    name="records",
    record_width=ATTENDANCE_RECORD_SIZE,
    first_record_offset=ATTENDANCE_FIRST_RECORD,
    fields=_ATTENDANCE_FIELDS + (FieldSpec("status", 12, f.u8),),
)

_NEW_ATTENDANCE_RECORDS = RecordStream(
    name="records",
    record_width=ATTENDANCE_RECORD_SIZE,
    first_record_offset=ATTENDANCE_FIRST_RECORD,
    fields=_ATTENDANCE_FIELDS,
)

_BELL_ENTRIES = RecordStream(
    name="schedules",
    record_width=BELL_ENTRY_SIZE,
    first_record_offset=BELL_FIRST_ENTRY,
    fields=(
        FieldSpec("time", 0, f.clock_time),
        FieldSpec("melody", 2, f.u8),
        FieldSpec("volume", 3, f.u8),
    ),
    max_records=BELL_MAX_ENTRIES,
)


def _spec(command: Command, min_length: int = 0, *fields: FieldSpec,
          stream: RecordStream | None = None) -> CommandSpec:
    return CommandSpec(
        command=command,
        name=command.name.lower(),
        min_length=min_length,
        fields=tuple(fields),
        stream=stream,
    )


_SPECS = [
    _spec(Command.GET_DEVICE_CONFIG, 1,
          FieldSpec("language", 5, f.u8),
          FieldSpec("timezone", 6, f.u8)),
    _spec(Command.SET_DEVICE_CONFIG),
    _spec(Command.GET_DEVICE_CONFIG_2, 1,
          FieldSpec("fingerprint_threshold", 5, f.u8),
          FieldSpec("card_detection_time", 6, f.u8)),
    _spec(Command.SET_DEVICE_CONFIG_2),
    _spec(Command.GET_ADVANCED_INFO, 1,
          FieldSpec("total_users", 5, f.u16_le),
          FieldSpec("total_records", 7, f.u16_le),
          FieldSpec("total_templates", 9, f.u16_le),
          FieldSpec("device_status", 11, f.u8)),
    _spec(Command.GET_DEVICE_CLOCK, 15,
          FieldSpec("year", 9, f.bcd_year),
          FieldSpec("month", 10, f.u8),
          FieldSpec("day", 11, f.u8),
          FieldSpec("hour", 12, f.u8),
          FieldSpec("minute", 13, f.u8),
          FieldSpec("second", 14, f.u8)),
    _spec(Command.SET_DEVICE_CLOCK),
    _spec(Command.DOWNLOAD_STAFF_DATA, 1,
          FieldSpec("byte_count", 0, f.buffer_length)),
    _spec(Command.UPLOAD_STAFF_DATA),
    _spec(Command.DOWNLOAD_RECORDS, 1,
          FieldSpec("total_records", 5, f.u24_le),
          stream=_ATTENDANCE_RECORDS),
    _spec(Command.CLEAR_RECORDS, 1),
    _spec(Command.DELETE_RECORD, 1),
    _spec(Command.GET_SERIAL_NUMBER, 10,
          FieldSpec("serial_number", 5, _serial_number)),
    _spec(Command.GET_DEVICE_ID, 10,
          FieldSpec("device_id", 5, f.u32_le)),
    _spec(Command.SET_DEVICE_ID),
    _spec(Command.GET_TCPIP_PARAMS, 25,
          FieldSpec("ip_address", 5, f.dotted_ip),
          FieldSpec("subnet_mask", 9, f.dotted_ip),
          FieldSpec("gateway", 13, f.dotted_ip),
          FieldSpec("port", 17, f.u16_le),
          FieldSpec("dns_primary", 19, f.dotted_ip),
          FieldSpec("dns_secondary", 23, f.dotted_ip)),
    _spec(Command.SET_TCPIP_PARAMS, 1),
    _spec(Command.ENROLL_FINGERPRINT, 1),
    _spec(Command.ENROLL_CARD),
    _spec(Command.DOWNLOAD_NEW_RECORDS, 1, stream=_NEW_ATTENDANCE_RECORDS),
    _spec(Command.OPEN_DOOR),
    _spec(Command.PING),
    _spec(Command.GET_RECORD_INFO, 10,
          FieldSpec("total_records", 5, f.u16_le),
          FieldSpec("new_records", 7, f.u16_le)),
    _spec(Command.DEVICE_PINGS),
    _spec(Command.REBOOT),
    _spec(Command.FACTORY_RESET),
    _spec(Command.DELETE_USER),
    _spec(Command.GET_TIMEZONE, 10,
          FieldSpec("timezone_offset_hours", 5, f.signed_byte),
          FieldSpec("timezone_offset_minutes", 6, f.u8),
          FieldSpec("daylight_saving_enabled", 7, f.flag),
          FieldSpec("timezone_name", 5, f.timezone_name)),
    _spec(Command.SET_TIMEZONE, 1),
    _spec(Command.GET_BELL_SCHEDULE, 1, stream=_BELL_ENTRIES),
    _spec(Command.SET_BELL_SCHEDULE),
    _spec(Command.GET_DST_RULES, 1,
          *(FieldSpec(name, 5 + i, f.u8) for i, name in enumerate([
              "dst_start_month", "dst_start_week", "dst_start_day", "dst_start_hour",
              "dst_end_month", "dst_end_week", "dst_end_day", "dst_end_hour",
          ]))),
    _spec(Command.SET_DST_RULES),
]

CATALOG: Mapping[int, CommandSpec] = MappingProxyType(
    {spec.command.value: spec for spec in _SPECS}
)


def get_spec(command: int) -> CommandSpec | None:
    """Look up the response layout for a command code."""
    return CATALOG.get(command)
