"""MCP server entry point for Anviz access-control terminals.

Exposes tools and resources via the Model Context Protocol using the
official Python MCP SDK with stdio transport.

Connection defaults come from the environment::

    ANVIZ_HOST             terminal address (no default)
    ANVIZ_PORT             TCP port (5010)
    ANVIZ_DEVICE_ID        terminal number (5)
    ANVIZ_TIMEOUT          socket timeout in seconds (5)
    ANVIZ_STRICT_CHECKSUM  reject replies with a bad checksum (false)
    ANVIZ_LOG_LEVEL        logging level (INFO)
"""

from __future__ import annotations

import functools
import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Mapping

from mcp.server.fastmcp import FastMCP

from .device import DEFAULT_DEVICE_ID, AnvizDevice
from .errors import AnvizError, IncompleteResponse
from .models import BellSchedule, DstRules, StaffMember, TcpIpConfig
from .protocol.catalog import CATALOG
from .transport.tcp_connection import DEFAULT_PORT, DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

YES_ANSWER = ("true", "1", "yes", "y", "on")


@dataclass
class ServerConfig:
    """Connection defaults, read from the environment when needed."""

    host: str = ""
    port: int = DEFAULT_PORT
    device_id: int = DEFAULT_DEVICE_ID
    timeout: float = DEFAULT_TIMEOUT
    strict_checksum: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ServerConfig:
        """Build a config from ``ANVIZ_*`` variables.

        Raises:
            ValueError: If a numeric variable does not parse.
        """
        env = os.environ if environ is None else environ
        return cls(
            host=env.get("ANVIZ_HOST", ""),
            port=_env_number(env, "ANVIZ_PORT", int, DEFAULT_PORT),
            device_id=_env_number(env, "ANVIZ_DEVICE_ID", int, DEFAULT_DEVICE_ID),
            timeout=_env_number(env, "ANVIZ_TIMEOUT", float, DEFAULT_TIMEOUT),
            strict_checksum=env.get("ANVIZ_STRICT_CHECKSUM", "0").casefold() in YES_ANSWER,
            log_level=env.get("ANVIZ_LOG_LEVEL", "INFO").upper(),
        )


def _env_number(env: Mapping[str, str], name: str, kind: type, default):
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return kind(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


mcp = FastMCP(
    "anviz",
    instructions="MCP server for Anviz biometric access-control terminals",
)

# Global connection state
_device: AnvizDevice | None = None


def _get_device() -> AnvizDevice:
    """Get the connected terminal, raising if not connected."""
    if _device is None or not _device.connected:
        raise RuntimeError(
            "Not connected to device. Use the 'connect' tool first."
        )
    return _device


def _device_errors(fn: Callable[..., dict[str, Any]]) -> Callable[..., dict[str, Any]]:
    """Report protocol failures and rejected values as ``{"error": ...}``.

    Builders and models raise ``ValueError`` for out-of-range input;
    other exceptions propagate.
    """

    @functools.wraps(fn)
    def wrapper(*args, **kwargs) -> dict[str, Any]:
        try:
            return fn(*args, **kwargs)
        except IncompleteResponse as e:
            return {"error": "No data in device response", "detail": str(e)}
        except AnvizError as e:
            logger.warning("%s failed: %s", fn.__name__, e)
            return {"error": str(e)}
        except ValueError as e:
            return _invalid_argument(e)

    return wrapper


def _invalid_argument(error: Exception) -> dict[str, str]:
    return {"error": f"Invalid argument: {error}"}


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(
    host: str | None = None,
    port: int | None = None,
    device_id: int | None = None,
) -> dict[str, Any]:
    """Open a TCP connection to an Anviz terminal.

    Arguments left out fall back to ANVIZ_HOST, ANVIZ_PORT and
    ANVIZ_DEVICE_ID. Sends a ping to confirm the terminal answers.
    """
    global _device
    if _device is not None and _device.connected:
        return {
            "connected": True,
            "message": "Already connected",
            "host": _device.connection.info.host,
        }

    try:
        config = ServerConfig.from_env()
    except ValueError as e:
        return {"connected": False, "error": str(e)}

    host = host or config.host
    if not host:
        return {"error": "No host given and ANVIZ_HOST is not set"}

    device = AnvizDevice(
        host,
        port=port or config.port,
        device_id=config.device_id if device_id is None else device_id,
        timeout=config.timeout,
        strict_checksum=config.strict_checksum,
    )
    try:
        device.connect()
    except AnvizError as e:
        return {"connected": False, "error": str(e)}

    responding = device.ping()
    _device = device
    info = device.connection.info
    return {
        "connected": True,
        "host": info.host,
        "port": info.port,
        "device_id": device.device_id,
        "responding": responding,
    }


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the TCP connection to the terminal."""
    global _device
    if _device is None:
        return {"disconnected": True}
    _device.disconnect()
    _device = None
    return {"disconnected": True}


@mcp.tool()
def ping() -> dict[str, Any]:
    """Check whether the terminal answers."""
    return {"responding": _get_device().ping()}


# ─── DEVICE INFORMATION ───────────────────────────────────────────────

@mcp.tool()
@_device_errors
def get_device_info() -> dict[str, Any]:
    """Read serial number, device ID and user/record/template counters."""
    dev = _get_device()
    info = dev.get_advanced_info().to_dict()
    info["serial_number"] = dev.get_serial_number()
    info["device_id"] = dev.get_device_id()
    return info


@mcp.tool()
@_device_errors
def get_device_config() -> dict[str, Any]:
    """Read basic (language, timezone) and advanced (fingerprint
    threshold, card detection time) configuration."""
    dev = _get_device()
    result = dev.get_device_config().to_dict()
    result.update(dev.get_device_config_2().to_dict())
    return result


@mcp.tool()
@_device_errors
def set_device_config(
    language: int | None = None,
    timezone: int | None = None,
    fingerprint_threshold: int | None = None,
    card_detection_time: int | None = None,
) -> dict[str, Any]:
    """Write basic and/or advanced configuration.

    Values left out are read back from the terminal first, so a single
    setting can change without touching its neighbour.
    """
    dev = _get_device()
    updated: dict[str, int] = {}

    if language is not None or timezone is not None:
        current = dev.get_device_config()
        if language is None:
            language = current["language"]
        if timezone is None:
            timezone = current["timezone"]
        dev.set_device_config(language, timezone)
        updated.update(language=language, timezone=timezone)

    if fingerprint_threshold is not None or card_detection_time is not None:
        current = dev.get_device_config_2()
        if fingerprint_threshold is None:
            fingerprint_threshold = current["fingerprint_threshold"]
        if card_detection_time is None:
            card_detection_time = current["card_detection_time"]
        dev.set_device_config_2(fingerprint_threshold, card_detection_time)
        updated.update(
            fingerprint_threshold=fingerprint_threshold,
            card_detection_time=card_detection_time,
        )

    return {"updated": updated}


@mcp.tool()
@_device_errors
def set_device_id(new_device_id: int) -> dict[str, Any]:
    """Renumber the terminal. Later requests use the new ID."""
    dev = _get_device()
    dev.set_device_id(new_device_id)
    return {"device_id": dev.device_id}


# ─── CLOCK ────────────────────────────────────────────────────────────

@mcp.tool()
@_device_errors
def get_clock() -> dict[str, Any]:
    """Read the terminal's date and time."""
    clock = _get_device().get_clock()
    return {"datetime": str(clock), **clock.to_dict()}


@mcp.tool()
@_device_errors
def set_clock(datetime_str: str | None = None) -> dict[str, Any]:
    """Set the terminal's date and time.

    Args:
        datetime_str: "YYYY-MM-DD HH:MM:SS"; defaults to the local time now.
    """
    if datetime_str:
        when = datetime.strptime(datetime_str, "%Y-%m-%d %H:%M:%S")
    else:
        when = datetime.now().replace(microsecond=0)
    _get_device().set_clock(when)
    return {"datetime": str(when)}


# ─── USERS ────────────────────────────────────────────────────────────

@mcp.tool()
@_device_errors
def download_staff_data() -> dict[str, Any]:
    """Download the staff table as raw bytes."""
    r = _get_device().download_staff_data()
    return {"byte_count": r["byte_count"], "raw_hex": r.raw.hex(" ")}


@mcp.tool()
@_device_errors
def upload_staff(users: list[dict[str, Any]]) -> dict[str, Any]:
    """Upload users to the terminal.

    Args:
        users: Entries like {"id": 12, "name": "Ana", "department": 1}.
            Names longer than 20 characters are truncated.
    """
    try:
        members = [
            StaffMember(
                user_id=int(u["id"]),
                name=str(u.get("name", "")),
                department=int(u.get("department", 0)),
            )
            for u in users
        ]
    except (KeyError, TypeError, ValueError) as e:
        return _invalid_argument(e)
    return {"uploaded": _get_device().upload_staff(members)}


@mcp.tool()
@_device_errors
def delete_user(user_id: int) -> dict[str, Any]:
    """Delete a user from the terminal."""
    _get_device().delete_user(user_id)
    return {"deleted": user_id}


@mcp.tool()
@_device_errors
def enroll_fingerprint(
    user_id: int, finger_index: int = 1, quality_threshold: int = 80
) -> dict[str, Any]:
    """Start fingerprint enrollment for a user; the finger is scanned
    on the terminal itself."""
    _get_device().enroll_fingerprint(user_id, finger_index, quality_threshold)
    return {"enrolling": user_id, "finger_index": finger_index}


@mcp.tool()
@_device_errors
def enroll_card(user_id: int, card_number: str) -> dict[str, Any]:
    """Assign an RFID card number (digits only) to a user."""
    _get_device().enroll_card(user_id, card_number)
    return {"user_id": user_id, "card_number": card_number}


# ─── RECORDS ──────────────────────────────────────────────────────────

@mcp.tool()
@_device_errors
def download_records(start_index: int = 0, count: int = 0xFFFF) -> dict[str, Any]:
    """Download attendance records.

    Args:
        start_index: First record index.
        count: Maximum records to return (65535 = all).
    """
    total, records = _get_device().download_records(start_index, count)
    return {
        "total_records": total,
        "records": [r.to_dict() for r in records],
    }


@mcp.tool()
@_device_errors
def download_new_records() -> dict[str, Any]:
    """Download records the terminal has not reported before."""
    records = _get_device().download_new_records()
    return {"records": [r.to_dict() for r in records]}


@mcp.tool()
@_device_errors
def get_record_info() -> dict[str, Any]:
    """Total and new record counts."""
    return _get_device().get_record_info().to_dict()


@mcp.tool()
@_device_errors
def clear_records(confirm: bool = False) -> dict[str, Any]:
    """Erase all attendance records. Pass confirm=True to proceed."""
    return {"cleared": _get_device().clear_records(confirm)}


@mcp.tool()
@_device_errors
def delete_record(record_index: int) -> dict[str, Any]:
    """Delete a single attendance record by index."""
    _get_device().delete_record(record_index)
    return {"deleted": record_index}


# ─── NETWORK / TIMEZONE / SCHEDULES ───────────────────────────────────

@mcp.tool()
@_device_errors
def get_network_settings() -> dict[str, Any]:
    """Read IP address, mask, gateway, port and DNS servers."""
    return _get_device().get_tcpip().to_dict()


@mcp.tool()
@_device_errors
def set_network_settings(
    ip_address: str,
    subnet_mask: str,
    gateway: str,
    port: int = DEFAULT_PORT,
    dns_primary: str | None = None,
) -> dict[str, Any]:
    """Write the terminal's TCP/IP parameters.

    The terminal may stop answering on the old address afterwards.
    """
    config = TcpIpConfig(ip_address, subnet_mask, gateway, port, dns_primary)
    _get_device().set_tcpip(config)
    return {"updated": config.to_dict()}


@mcp.tool()
@_device_errors
def get_timezone() -> dict[str, Any]:
    """Read the UTC offset and DST flag."""
    return _get_device().get_timezone().to_dict()


@mcp.tool()
@_device_errors
def set_timezone(
    offset_hours: int, daylight_saving: bool = False, minutes: int = 0
) -> dict[str, Any]:
    """Set the UTC offset (-12 to 14) and DST flag."""
    _get_device().set_timezone(offset_hours, daylight_saving, minutes)
    return {
        "offset_hours": offset_hours,
        "minutes": minutes,
        "daylight_saving": daylight_saving,
    }


@mcp.tool()
@_device_errors
def get_bell_schedule() -> dict[str, Any]:
    """Read up to 8 bell entries."""
    schedules = _get_device().get_bell_schedule()
    return {"schedules": [s.to_dict() for s in schedules]}


@mcp.tool()
@_device_errors
def set_bell_schedule(schedules: list[dict[str, Any]]) -> dict[str, Any]:
    """Write up to 8 bell entries.

    Args:
        schedules: Entries like {"time": "08:00", "melody": 1, "volume": 90}.
    """
    try:
        entries = [
            BellSchedule.parse(s["time"], int(s.get("melody", 0)), int(s.get("volume", 100)))
            for s in schedules
        ]
    except (KeyError, TypeError, ValueError) as e:
        return _invalid_argument(e)
    _get_device().set_bell_schedule(entries)
    return {"schedules": [e.to_dict() for e in entries]}


@mcp.tool()
@_device_errors
def get_dst_rules() -> dict[str, Any]:
    """Read daylight-saving start/end rules."""
    return _get_device().get_dst_rules().to_dict()


@mcp.tool()
@_device_errors
def set_dst_rules(rules: dict[str, int] | None = None) -> dict[str, Any]:
    """Write daylight-saving rules.

    Keys left out use the defaults: start month 3, week 2, day 0,
    hour 2; end month 10, week 1, day 0, hour 3.
    """
    try:
        dst = DstRules(**(rules or {}))
    except TypeError as e:
        return _invalid_argument(e)
    _get_device().set_dst_rules(dst)
    return {"updated": dst.to_dict()}


# ─── CONTROL ──────────────────────────────────────────────────────────

@mcp.tool()
@_device_errors
def open_door() -> dict[str, Any]:
    """Release the door lock without verification."""
    _get_device().open_door()
    return {"opened": True}


@mcp.tool()
@_device_errors
def reboot() -> dict[str, Any]:
    """Reboot the terminal. The connection will drop."""
    _get_device().reboot()
    return {"rebooting": True}


@mcp.tool()
@_device_errors
def factory_reset(confirm: bool = False) -> dict[str, Any]:
    """Restore factory settings. Pass confirm=True to proceed."""
    return {"reset": _get_device().factory_reset(confirm)}


@mcp.tool()
@_device_errors
def device_pings() -> dict[str, Any]:
    """Raw payload of the device-pings command."""
    return {"payload_hex": _get_device().device_pings().hex(" ")}


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("anviz://device/status")
def resource_device_status() -> str:
    """Connection state and addressing."""
    if _device is None or not _device.connected:
        return json.dumps({"connected": False})

    info = _device.connection.info
    return json.dumps({
        "connected": True,
        "host": info.host,
        "port": info.port,
        "local_address": info.local_address,
        "device_id": _device.device_id,
    })


@mcp.resource("anviz://catalog/commands")
def resource_command_catalog() -> str:
    """Every supported command with its code and response fields."""
    commands = []
    for code, spec in sorted(CATALOG.items()):
        entry: dict[str, Any] = {
            "code": f"0x{code:02X}",
            "name": spec.name,
            "min_length": spec.min_length,
            "fields": [fs.name for fs in spec.fields],
        }
        if spec.stream is not None:
            entry["stream"] = {
                "name": spec.stream.name,
                "record_width": spec.stream.record_width,
                "fields": [fs.name for fs in spec.stream.fields],
            }
        commands.append(entry)
    return json.dumps({"commands": commands})


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    try:
        config = ServerConfig.from_env()
    except ValueError as e:
        raise SystemExit(f"anviz-mcp: {e}") from e
    logging.basicConfig(level=getattr(logging, config.log_level, logging.INFO))
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
