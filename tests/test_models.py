"""Tests for value models."""

from datetime import datetime

import pytest

from anviz_mcp.models import (
    AttendanceRecord,
    BellSchedule,
    DeviceTimestamp,
    DstRules,
    StaffMember,
    TcpIpConfig,
)


# ─── DeviceTimestamp ──────────────────────────────────────────────────

def test_timestamp_to_bytes():
    ts = DeviceTimestamp(2025, 3, 15, 10, 30, 0)
    assert ts.to_bytes() == bytes([0x19, 3, 15, 10, 30, 0])


def test_timestamp_from_bytes():
    assert DeviceTimestamp.from_bytes(bytes([24, 12, 31, 23, 59, 58])) == DeviceTimestamp(
        2024, 12, 31, 23, 59, 58
    )


def test_timestamp_from_short_bytes():
    assert DeviceTimestamp.from_bytes(b"\x01") == DeviceTimestamp(2001, 0, 0, 0, 0, 0)


@pytest.mark.parametrize("year", [1999, 2100])
def test_timestamp_year_out_of_range(year):
    with pytest.raises(ValueError):
        DeviceTimestamp(year, 1, 1).to_bytes()


def test_timestamp_datetime_conversion():
    dt = datetime(2025, 3, 15, 10, 30, 5)
    assert DeviceTimestamp.from_datetime(dt).to_datetime() == dt


def test_timestamp_keeps_impossible_dates():
    """Erased records decode to month 0; only to_datetime rejects them."""
    ts = DeviceTimestamp(2000, 0, 0)
    assert str(ts) == "2000-00-00 00:00:00"
    with pytest.raises(ValueError):
        ts.to_datetime()


def test_timestamp_str():
    assert str(DeviceTimestamp(2025, 3, 5, 8, 0, 9)) == "2025-03-05 08:00:09"


# ─── StaffMember ──────────────────────────────────────────────────────

def test_staff_to_bytes():
    data = StaffMember(0x0102, "Ana", 7).to_bytes()
    assert len(data) == StaffMember.SIZE == 23
    assert data[:2] == b"\x02\x01"
    assert data[2:22] == b"Ana".ljust(20)
    assert data[22] == 7


def test_staff_name_truncated():
    data = StaffMember(1, "X" * 30).to_bytes()
    assert data[2:22] == b"X" * 20


def test_staff_from_bytes():
    member = StaffMember.from_bytes(StaffMember(42, "Bruno", 3).to_bytes())
    assert member == StaffMember(42, "Bruno", 3)


@pytest.mark.parametrize("kwargs", [{"user_id": 70000}, {"user_id": 1, "department": 256}])
def test_staff_out_of_range(kwargs):
    with pytest.raises(ValueError):
        StaffMember(**kwargs).to_bytes()


# ─── TcpIpConfig ──────────────────────────────────────────────────────

def test_tcpip_to_bytes_without_dns():
    config = TcpIpConfig("10.0.0.5", "255.0.0.0", "10.0.0.1", 5010)
    assert config.to_bytes() == bytes([10, 0, 0, 5, 255, 0, 0, 0, 10, 0, 0, 1, 0x92, 0x13])


def test_tcpip_to_bytes_with_dns():
    config = TcpIpConfig("10.0.0.5", "255.0.0.0", "10.0.0.1", 80, dns_primary="1.1.1.1")
    data = config.to_bytes()
    assert len(data) == 18
    assert data[12:14] == b"\x50\x00"
    assert data[14:] == bytes([1, 1, 1, 1])


@pytest.mark.parametrize("address", ["256.0.0.1", "10.0.0", "abc", "::1"])
def test_tcpip_invalid_address(address):
    with pytest.raises(ValueError):
        TcpIpConfig(address, "255.255.255.0", "10.0.0.1").to_bytes()


def test_tcpip_invalid_port():
    with pytest.raises(ValueError):
        TcpIpConfig("10.0.0.5", "255.0.0.0", "10.0.0.1", 70000).to_bytes()


# ─── BellSchedule / DstRules ──────────────────────────────────────────

def test_bell_parse():
    entry = BellSchedule.parse("07:45", melody=2, volume=60)
    assert (entry.hour, entry.minute) == (7, 45)
    assert entry.time == "07:45"
    assert entry.to_bytes() == bytes([7, 45, 2, 60])


@pytest.mark.parametrize("text", ["0745", "7:45:00", "aa:bb", ""])
def test_bell_parse_invalid(text):
    with pytest.raises(ValueError):
        BellSchedule.parse(text)


@pytest.mark.parametrize(
    "entry",
    [BellSchedule(24, 0), BellSchedule(8, 60), BellSchedule(8, 0, 256), BellSchedule(8, 0, 0, -1)],
)
def test_bell_out_of_range(entry):
    with pytest.raises(ValueError):
        entry.to_bytes()


def test_bell_to_dict():
    assert BellSchedule(12, 0).to_dict() == {"time": "12:00", "melody": 0, "volume": 100}


def test_dst_defaults():
    assert DstRules().to_bytes() == bytes([3, 2, 0, 2, 10, 1, 0, 3])


def test_dst_from_bytes():
    rules = DstRules.from_bytes(bytes([4, 1, 0, 2, 9, 5, 0, 3]))
    assert rules.start_month == 4
    assert rules.end_week == 5


def test_dst_out_of_range():
    with pytest.raises(ValueError):
        DstRules(start_month=300).to_bytes()


# ─── AttendanceRecord ─────────────────────────────────────────────────

def test_record_from_fields_with_status():
    ts = DeviceTimestamp(2025, 1, 2, 3, 4, 5)
    record = AttendanceRecord.from_fields({"user_id": 9, "timestamp": ts, "status": 1})
    assert record.to_dict() == {"user_id": 9, "datetime": "2025-01-02 03:04:05", "status": 1}


def test_record_without_status():
    ts = DeviceTimestamp(2025, 1, 2, 3, 4, 5)
    record = AttendanceRecord.from_fields({"user_id": 9, "timestamp": ts})
    assert record.status is None
    assert "status" not in record.to_dict()
