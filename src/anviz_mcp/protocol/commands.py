"""Command codes and request builders.

Each command is a single byte placed after the device ID. Every builder
returns a complete frame addressed to ``device_id``.
"""

from __future__ import annotations

from datetime import datetime
from enum import IntEnum
from typing import Iterable

from ..models.network import TcpIpConfig
from ..models.schedule import MAX_BELL_ENTRIES, BellSchedule, DstRules
from ..models.staff import StaffMember
from ..models.timestamp import DeviceTimestamp
from .fields import pack_signed_byte, pack_u16_le, pack_u32_le, pack_u8
from .framing import build_frame


class Command(IntEnum):
    """Command codes understood by the terminal."""

    GET_DEVICE_CONFIG = 0x30
    SET_DEVICE_CONFIG = 0x31
    GET_DEVICE_CONFIG_2 = 0x32
    SET_DEVICE_CONFIG_2 = 0x33
    GET_ADVANCED_INFO = 0x34
    GET_DEVICE_CLOCK = 0x38
    SET_DEVICE_CLOCK = 0x39
    DOWNLOAD_STAFF_DATA = 0x3C
    UPLOAD_STAFF_DATA = 0x3D
    DOWNLOAD_RECORDS = 0x4C
    CLEAR_RECORDS = 0x4D
    DELETE_RECORD = 0x4E
    GET_SERIAL_NUMBER = 0x50
    GET_DEVICE_ID = 0x52
    SET_DEVICE_ID = 0x53
    GET_TCPIP_PARAMS = 0x5C
    SET_TCPIP_PARAMS = 0x5D
    ENROLL_FINGERPRINT = 0x63
    ENROLL_CARD = 0x64
    DOWNLOAD_NEW_RECORDS = 0x74
    OPEN_DOOR = 0x7E
    PING = 0x81
    GET_RECORD_INFO = 0x82
    DEVICE_PINGS = 0x85
    REBOOT = 0x8B
    FACTORY_RESET = 0x8D
    DELETE_USER = 0x92
    GET_TIMEZONE = 0xB0
    SET_TIMEZONE = 0xB1
    GET_BELL_SCHEDULE = 0xB2
    SET_BELL_SCHEDULE = 0xB3
    GET_DST_RULES = 0xB4
    SET_DST_RULES = 0xB5


# Commands whose request carries no payload
QUERY_COMMANDS = frozenset({
    Command.GET_DEVICE_CONFIG,
    Command.GET_DEVICE_CONFIG_2,
    Command.GET_ADVANCED_INFO,
    Command.GET_DEVICE_CLOCK,
    Command.DOWNLOAD_STAFF_DATA,
    Command.CLEAR_RECORDS,
    Command.GET_SERIAL_NUMBER,
    Command.GET_DEVICE_ID,
    Command.GET_TCPIP_PARAMS,
    Command.DOWNLOAD_NEW_RECORDS,
    Command.OPEN_DOOR,
    Command.PING,
    Command.GET_RECORD_INFO,
    Command.DEVICE_PINGS,
    Command.REBOOT,
    Command.FACTORY_RESET,
    Command.GET_TIMEZONE,
    Command.GET_BELL_SCHEDULE,
    Command.GET_DST_RULES,
})

MIN_TIMEZONE_OFFSET = -12
MAX_TIMEZONE_OFFSET = 14
ALL_RECORDS = 0xFFFF


def build_command(device_id: int, command: Command, payload: bytes = b"") -> bytes:
    """Build a frame for ``command``."""
    return build_frame(device_id, command.value, payload)


def build_query(device_id: int, command: Command) -> bytes:
    """Build a payload-less request (reads and simple control commands)."""
    if command not in QUERY_COMMANDS:
        raise ValueError(f"{command.name} requires a payload")
    return build_command(device_id, command)


def build_set_clock(device_id: int, when: datetime | DeviceTimestamp) -> bytes:
    """Build a SetDeviceClock command.

    The payload is two zero bytes followed by the six date/time bytes.
    """
    if isinstance(when, datetime):
        when = DeviceTimestamp.from_datetime(when)
    return build_command(device_id, Command.SET_DEVICE_CLOCK, b"\x00\x00" + when.to_bytes())


def build_set_device_config(device_id: int, language: int, timezone: int) -> bytes:
    payload = pack_u8(language) + pack_u8(timezone)
    return build_command(device_id, Command.SET_DEVICE_CONFIG, payload)


def build_set_device_config_2(
    device_id: int, fingerprint_threshold: int, card_detection_time: int
) -> bytes:
    payload = pack_u8(fingerprint_threshold) + pack_u8(card_detection_time)
    return build_command(device_id, Command.SET_DEVICE_CONFIG_2, payload)


def build_set_device_id(device_id: int, new_device_id: int) -> bytes:
    """Build a SetDeviceID command.

    Args:
        device_id: Current terminal number (frame address).
        new_device_id: Terminal number to assign.
    """
    return build_command(device_id, Command.SET_DEVICE_ID, pack_u32_le(new_device_id))


def build_upload_staff(device_id: int, members: Iterable[StaffMember]) -> bytes:
    """Build an UploadStaffData command for one or more users."""
    members = list(members)
    if not members:
        raise ValueError("At least one staff member is required")
    payload = b"".join(member.to_bytes() for member in members)
    return build_command(device_id, Command.UPLOAD_STAFF_DATA, payload)


def build_delete_user(device_id: int, user_id: int) -> bytes:
    return build_command(device_id, Command.DELETE_USER, pack_u32_le(user_id))


def build_download_records(
    device_id: int, start_index: int = 0, count: int = ALL_RECORDS
) -> bytes:
    """Build a DownloadRecords command.

    Args:
        start_index: Index of the first record to return.
        count: Maximum number of records; 0xFFFF means all.
    """
    payload = pack_u16_le(start_index) + pack_u16_le(count)
    return build_command(device_id, Command.DOWNLOAD_RECORDS, payload)


def build_delete_record(device_id: int, record_index: int) -> bytes:
    return build_command(device_id, Command.DELETE_RECORD, pack_u16_le(record_index))


def build_enroll_fingerprint(
    device_id: int,
    user_id: int,
    finger_index: int = 1,
    quality_threshold: int = 80,
) -> bytes:
    """Build an EnrollFingerprint command.

    Starts enrollment on the terminal; the finger is scanned there.
    """
    payload = pack_u16_le(user_id) + pack_u8(finger_index) + pack_u8(quality_threshold)
    return build_command(device_id, Command.ENROLL_FINGERPRINT, payload)


def build_enroll_card(device_id: int, user_id: int, card_number: str | int) -> bytes:
    """Build an EnrollCard command.

    The card number is sent as its decimal digits in ASCII.
    """
    card = str(card_number)
    if not card.isdigit() or not card.isascii():
        raise ValueError(f"Card number must be numeric, got {card_number!r}")
    payload = pack_u16_le(user_id) + card.encode("ascii")
    return build_command(device_id, Command.ENROLL_CARD, payload)


def build_set_tcpip(device_id: int, config: TcpIpConfig) -> bytes:
    return build_command(device_id, Command.SET_TCPIP_PARAMS, config.to_bytes())


def build_set_timezone(
    device_id: int,
    offset_hours: int,
    daylight_saving: bool = False,
    minutes: int = 0,
) -> bytes:
    """Build a SetTimezone command.

    Args:
        offset_hours: UTC offset, -12 to 14.
        daylight_saving: Enable DST adjustment.
        minutes: Additional offset minutes (0-255).
    """
    if not MIN_TIMEZONE_OFFSET <= offset_hours <= MAX_TIMEZONE_OFFSET:
        raise ValueError(
            f"Timezone offset must be {MIN_TIMEZONE_OFFSET} to "
            f"{MAX_TIMEZONE_OFFSET}, got {offset_hours}"
        )
    payload = (
        pack_signed_byte(offset_hours)
        + pack_u8(minutes)
        + (b"\x01" if daylight_saving else b"\x00")
    )
    return build_command(device_id, Command.SET_TIMEZONE, payload)


def build_set_bell_schedule(device_id: int, entries: Iterable[BellSchedule]) -> bytes:
    """Build a SetBellSchedule command with up to 8 entries."""
    entries = list(entries)
    if len(entries) > MAX_BELL_ENTRIES:
        raise ValueError(
            f"At most {MAX_BELL_ENTRIES} bell entries, got {len(entries)}"
        )
    payload = b"".join(entry.to_bytes() for entry in entries)
    return build_command(device_id, Command.SET_BELL_SCHEDULE, payload)


def build_set_dst_rules(device_id: int, rules: DstRules | None = None) -> bytes:
    rules = rules or DstRules()
    return build_command(device_id, Command.SET_DST_RULES, rules.to_bytes())
