"""High-level API: one method per terminal operation.

Every call is build frame -> exchange -> check framing -> decode.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable

from .errors import AnvizError, UnknownCommand
from .models import (
    AttendanceRecord,
    BellSchedule,
    DeviceTimestamp,
    DstRules,
    StaffMember,
    TcpIpConfig,
)
from .protocol import commands as cmd
from .protocol.catalog import get_spec
from .protocol.commands import Command
from .protocol.framing import OFF_REPLY_DATA, Frame, parse_frame
from .protocol.parser import DecodedResponse, decode_with_spec
from .transport.tcp_connection import DEFAULT_PORT, DEFAULT_TIMEOUT, TCPConnection

logger = logging.getLogger(__name__)

DEFAULT_DEVICE_ID = 5


class AnvizDevice:
    """A terminal reached over TCP.

    Usage::

        with AnvizDevice("192.168.1.201", device_id=1) as dev:
            print(dev.get_clock())
            for record in dev.download_new_records():
                print(record.user_id, record.timestamp)
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        device_id: int = DEFAULT_DEVICE_ID,
        timeout: float = DEFAULT_TIMEOUT,
        strict_checksum: bool = False,
        connection: TCPConnection | None = None,
    ) -> None:
        self._device_id = device_id
        self._strict = strict_checksum
        self._connection = connection or TCPConnection(host, port, timeout)

    @property
    def device_id(self) -> int:
        return self._device_id

    @property
    def connection(self) -> TCPConnection:
        return self._connection

    @property
    def connected(self) -> bool:
        return self._connection.connected

    def connect(self) -> None:
        self._connection.open()

    def disconnect(self) -> None:
        self._connection.close()

    def __enter__(self) -> AnvizDevice:
        self.connect()
        return self

    def __exit__(self, *exc_info) -> None:
        self.disconnect()

    # ─── CORE EXCHANGE ───────────────────────────────────────────────

    def request(self, command: Command, payload: bytes = b"") -> DecodedResponse:
        """Send ``command`` with ``payload`` and decode the reply.

        Raises:
            UnknownCommand: If the command has no catalog entry.
            TransportError: On socket failure or timeout.
            FrameError: If the reply is not a frame.
            IncompleteResponse: If the reply is too short to decode.
        """
        frame = cmd.build_command(self._device_id, command, payload)
        return self._exchange(command, frame)

    def query(self, command: Command) -> DecodedResponse:
        """Send a payload-less command and decode the reply.

        Raises:
            ValueError: If ``command`` needs a payload.
        """
        return self._exchange(command, cmd.build_query(self._device_id, command))

    def _exchange(self, command: Command, frame: bytes) -> DecodedResponse:
        spec = get_spec(command)
        if spec is None:
            raise UnknownCommand(command)
        raw = self._connection.exchange(frame, min_length=spec.min_length)
        self._check_frame(raw)
        return decode_with_spec(spec, raw)

    def _check_frame(self, raw: bytes) -> Frame:
        reply = parse_frame(raw, strict=self._strict)
        if not reply.checksum_ok:
            logger.warning(
                "Checksum mismatch in reply (got 0x%04X, expected 0x%04X)",
                reply.checksum, reply.expected_checksum,
            )
        return reply

    # ─── CLOCK & CONFIGURATION ───────────────────────────────────────

    def get_clock(self) -> DeviceTimestamp:
        r = self.query(Command.GET_DEVICE_CLOCK)
        return DeviceTimestamp(
            year=r["year"], month=r["month"], day=r["day"],
            hour=r["hour"], minute=r["minute"], second=r["second"],
        )

    def set_clock(self, when: datetime | DeviceTimestamp | None = None) -> None:
        """Set the terminal clock, defaulting to the local time now."""
        when = when or datetime.now()
        self._exchange(Command.SET_DEVICE_CLOCK, cmd.build_set_clock(self._device_id, when))
        logger.info("Device clock set to %s", when)

    def get_device_config(self) -> DecodedResponse:
        return self.query(Command.GET_DEVICE_CONFIG)

    def set_device_config(self, language: int, timezone: int) -> None:
        frame = cmd.build_set_device_config(self._device_id, language, timezone)
        self._exchange(Command.SET_DEVICE_CONFIG, frame)

    def get_device_config_2(self) -> DecodedResponse:
        return self.query(Command.GET_DEVICE_CONFIG_2)

    def set_device_config_2(self, fingerprint_threshold: int, card_detection_time: int) -> None:
        frame = cmd.build_set_device_config_2(
            self._device_id, fingerprint_threshold, card_detection_time
        )
        self._exchange(Command.SET_DEVICE_CONFIG_2, frame)

    def get_advanced_info(self) -> DecodedResponse:
        return self.query(Command.GET_ADVANCED_INFO)

    def get_serial_number(self) -> str:
        return self.query(Command.GET_SERIAL_NUMBER)["serial_number"]

    def get_device_id(self) -> int:
        return self.query(Command.GET_DEVICE_ID)["device_id"]

    def set_device_id(self, new_device_id: int) -> None:
        """Renumber the terminal and address later requests to the new ID."""
        frame = cmd.build_set_device_id(self._device_id, new_device_id)
        self._exchange(Command.SET_DEVICE_ID, frame)
        logger.info("Device ID changed from %d to %d", self._device_id, new_device_id)
        self._device_id = new_device_id

    # ─── USERS ───────────────────────────────────────────────────────

    def download_staff_data(self) -> DecodedResponse:
        return self.query(Command.DOWNLOAD_STAFF_DATA)

    def upload_staff(self, members: Iterable[StaffMember]) -> int:
        """Upload user entries; returns how many were sent."""
        members = list(members)
        self._exchange(Command.UPLOAD_STAFF_DATA, cmd.build_upload_staff(self._device_id, members))
        logger.info("Staff data uploaded: %d users", len(members))
        return len(members)

    def delete_user(self, user_id: int) -> None:
        self._exchange(Command.DELETE_USER, cmd.build_delete_user(self._device_id, user_id))
        logger.info("User %d deleted", user_id)

    def enroll_fingerprint(
        self, user_id: int, finger_index: int = 1, quality_threshold: int = 80
    ) -> None:
        frame = cmd.build_enroll_fingerprint(
            self._device_id, user_id, finger_index, quality_threshold
        )
        self._exchange(Command.ENROLL_FINGERPRINT, frame)
        logger.info("Fingerprint enrollment initiated for user %d", user_id)

    def enroll_card(self, user_id: int, card_number: str | int) -> None:
        frame = cmd.build_enroll_card(self._device_id, user_id, card_number)
        self._exchange(Command.ENROLL_CARD, frame)
        logger.info("Card enrolled for user %d", user_id)

    # ─── RECORDS ─────────────────────────────────────────────────────

    def download_records(
        self, start_index: int = 0, count: int = cmd.ALL_RECORDS
    ) -> tuple[int, list[AttendanceRecord]]:
        """Download attendance records.

        Returns:
            The terminal's reported total and the records in this reply,
            in the order the terminal sent them.
        """
        frame = cmd.build_download_records(self._device_id, start_index, count)
        r = self._exchange(Command.DOWNLOAD_RECORDS, frame)
        records = [AttendanceRecord.from_fields(rec) for rec in r["records"]]
        return r["total_records"], records

    def download_new_records(self) -> list[AttendanceRecord]:
        r = self.query(Command.DOWNLOAD_NEW_RECORDS)
        return [AttendanceRecord.from_fields(rec) for rec in r["records"]]

    def get_record_info(self) -> DecodedResponse:
        return self.query(Command.GET_RECORD_INFO)

    def clear_records(self, confirm: bool = False) -> bool:
        """Erase every attendance record. Requires ``confirm=True``."""
        if not confirm:
            logger.warning("Record deletion requires confirmation")
            return False
        self.query(Command.CLEAR_RECORDS)
        logger.info("All records cleared from device")
        return True

    def delete_record(self, record_index: int) -> None:
        self._exchange(Command.DELETE_RECORD, cmd.build_delete_record(self._device_id, record_index))
        logger.info("Record %d deleted", record_index)

    # ─── NETWORK, TIMEZONE, SCHEDULES ────────────────────────────────

    def get_tcpip(self) -> DecodedResponse:
        return self.query(Command.GET_TCPIP_PARAMS)

    def set_tcpip(self, config: TcpIpConfig) -> None:
        self._exchange(Command.SET_TCPIP_PARAMS, cmd.build_set_tcpip(self._device_id, config))
        logger.info("Network configuration updated")

    def get_timezone(self) -> DecodedResponse:
        return self.query(Command.GET_TIMEZONE)

    def set_timezone(
        self, offset_hours: int, daylight_saving: bool = False, minutes: int = 0
    ) -> None:
        frame = cmd.build_set_timezone(self._device_id, offset_hours, daylight_saving, minutes)
        self._exchange(Command.SET_TIMEZONE, frame)
        logger.info("Timezone set to UTC%+d:%02d", offset_hours, minutes)

    def get_bell_schedule(self) -> list[BellSchedule]:
        r = self.query(Command.GET_BELL_SCHEDULE)
        return [
            BellSchedule.parse(entry["time"], entry["melody"], entry["volume"])
            for entry in r["schedules"]
        ]

    def set_bell_schedule(self, entries: Iterable[BellSchedule]) -> None:
        frame = cmd.build_set_bell_schedule(self._device_id, entries)
        self._exchange(Command.SET_BELL_SCHEDULE, frame)
        logger.info("Bell schedule updated")

    def get_dst_rules(self) -> DstRules:
        r = self.query(Command.GET_DST_RULES)
        return DstRules(
            start_month=r["dst_start_month"], start_week=r["dst_start_week"],
            start_day=r["dst_start_day"], start_hour=r["dst_start_hour"],
            end_month=r["dst_end_month"], end_week=r["dst_end_week"],
            end_day=r["dst_end_day"], end_hour=r["dst_end_hour"],
        )

    def set_dst_rules(self, rules: DstRules | None = None) -> None:
        self._exchange(Command.SET_DST_RULES, cmd.build_set_dst_rules(self._device_id, rules))
        logger.info("DST rules updated")

    # ─── CONTROL ─────────────────────────────────────────────────────

    def open_door(self) -> None:
        self.query(Command.OPEN_DOOR)
        logger.info("Door opened")

    def reboot(self) -> None:
        self.query(Command.REBOOT)
        logger.info("Reboot requested")

    def factory_reset(self, confirm: bool = False) -> bool:
        """Restore factory settings. Requires ``confirm=True``."""
        if not confirm:
            logger.warning("Factory reset requires confirmation")
            return False
        self.query(Command.FACTORY_RESET)
        logger.warning("Factory reset requested")
        return True

    def ping(self) -> bool:
        """Return True if the terminal answers with a well-formed frame."""
        try:
            self.query(Command.PING)
        except AnvizError as e:
            logger.info("Ping failed: %s", e)
            return False
        return True

    def device_pings(self) -> bytes:
        """Reply data of the device-pings command, checksum excluded."""
        r = self.query(Command.DEVICE_PINGS)
        return r.raw[OFF_REPLY_DATA:-2]
