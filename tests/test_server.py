"""Tests for the MCP tool layer with FastMCP and the device mocked."""

from __future__ import annotations

import json
import os
import sys
from unittest.mock import MagicMock, patch

import pytest

from anviz_mcp.errors import IncompleteResponse, TransportTimeout
from anviz_mcp.models import AttendanceRecord, BellSchedule, DeviceTimestamp
from anviz_mcp.protocol.parser import DecodedResponse


def _get_server_module():
    """Import server module with FastMCP mocked to avoid init issues."""
    mock_fastmcp_cls = MagicMock()
    mock_fastmcp_instance = MagicMock()
    # Make the @mcp.tool() decorator a no-op that returns the function unchanged
    mock_fastmcp_instance.tool.return_value = lambda fn: fn
    mock_fastmcp_instance.resource.return_value = lambda fn: fn
    mock_fastmcp_instance.prompt.return_value = lambda fn: fn
    mock_fastmcp_cls.return_value = mock_fastmcp_instance

    with patch.dict(sys.modules, {}):
        with patch("mcp.server.fastmcp.FastMCP", mock_fastmcp_cls):
            # Remove cached server module so it re-imports with our mock
            sys.modules.pop("anviz_mcp.server", None)
            import anviz_mcp.server as server_mod

    return server_mod


def _decoded(command: int, **fields) -> DecodedResponse:
    return DecodedResponse(command=command, name="test", fields=fields)


def test_get_clock_tool():
    server = _get_server_module()
    dev = MagicMock()
    dev.get_clock.return_value = DeviceTimestamp(2025, 3, 15, 10, 30, 0)

    with patch.object(server, "_get_device", return_value=dev):
        result = server.get_clock()

    assert result["datetime"] == "2025-03-15 10:30:00"
    assert result["year"] == 2025


def test_incomplete_response_reported_as_no_data():
    server = _get_server_module()
    dev = MagicMock()
    dev.get_clock.side_effect = IncompleteResponse(0x38, 8, 15)

    with patch.object(server, "_get_device", return_value=dev):
        result = server.get_clock()

    assert result["error"] == "No data in device response"


def test_transport_error_reported():
    server = _get_server_module()
    dev = MagicMock()
    dev.get_timezone.side_effect = TransportTimeout("Timed out after 0 of 10 bytes")

    with patch.object(server, "_get_device", return_value=dev):
        result = server.get_timezone()

    assert "Timed out" in result["error"]


def test_set_clock_rejects_bad_format():
    server = _get_server_module()
    dev = MagicMock()

    with patch.object(server, "_get_device", return_value=dev):
        result = server.set_clock("15/03/2025 10:30")

    assert result["error"].startswith("Invalid argument")
    dev.set_clock.assert_not_called()


def test_set_clock_parses_datetime():
    server = _get_server_module()
    dev = MagicMock()

    with patch.object(server, "_get_device", return_value=dev):
        result = server.set_clock("2025-03-15 10:30:00")

    assert result == {"datetime": "2025-03-15 10:30:00"}
    assert dev.set_clock.call_args.args[0].hour == 10


def test_set_device_config_keeps_unchanged_values():
    """Leaving out timezone reads the current one back first."""
    server = _get_server_module()
    dev = MagicMock()
    dev.get_device_config.return_value = _decoded(0x30, language=1, timezone=8)

    with patch.object(server, "_get_device", return_value=dev):
        result = server.set_device_config(language=3)

    dev.set_device_config.assert_called_once_with(3, 8)
    dev.set_device_config_2.assert_not_called()
    assert result == {"updated": {"language": 3, "timezone": 8}}


def test_upload_staff_tool():
    server = _get_server_module()
    dev = MagicMock()
    dev.upload_staff.return_value = 2

    with patch.object(server, "_get_device", return_value=dev):
        result = server.upload_staff([{"id": 1, "name": "Ana"}, {"id": "2"}])

    assert result == {"uploaded": 2}
    members = dev.upload_staff.call_args.args[0]
    assert [m.user_id for m in members] == [1, 2]
    assert members[1].name == ""


def test_upload_staff_missing_id():
    server = _get_server_module()
    with patch.object(server, "_get_device", return_value=MagicMock()):
        result = server.upload_staff([{"name": "Ana"}])
    assert "error" in result


def test_download_records_tool():
    server = _get_server_module()
    dev = MagicMock()
    ts = DeviceTimestamp(2025, 3, 15, 8, 0, 5)
    dev.download_records.return_value = (1, [AttendanceRecord(101, ts, 0)])

    with patch.object(server, "_get_device", return_value=dev):
        result = server.download_records()

    assert result == {
        "total_records": 1,
        "records": [{"user_id": 101, "datetime": "2025-03-15 08:00:05", "status": 0}],
    }


def test_clear_records_without_confirm():
    server = _get_server_module()
    dev = MagicMock()
    dev.clear_records.return_value = False

    with patch.object(server, "_get_device", return_value=dev):
        result = server.clear_records()

    dev.clear_records.assert_called_once_with(False)
    assert result == {"cleared": False}


def test_set_bell_schedule_tool():
    server = _get_server_module()
    dev = MagicMock()

    with patch.object(server, "_get_device", return_value=dev):
        result = server.set_bell_schedule([{"time": "08:00", "melody": 1}])

    dev.set_bell_schedule.assert_called_once_with([BellSchedule(8, 0, 1, 100)])
    assert result["schedules"][0]["time"] == "08:00"


def test_set_timezone_out_of_range():
    server = _get_server_module()
    dev = MagicMock()
    dev.set_timezone.side_effect = ValueError("Timezone offset must be -12 to 14, got 20")

    with patch.object(server, "_get_device", return_value=dev):
        result = server.set_timezone(20)

    assert "Invalid argument" in result["error"]


def test_connect_without_host():
    server = _get_server_module()
    with patch.dict(os.environ, {"ANVIZ_HOST": ""}):
        result = server.connect()
    assert "error" in result


def test_bad_port_variable_does_not_break_import():
    """A malformed ANVIZ_PORT is reported by connect, not at import."""
    with patch.dict(os.environ, {"ANVIZ_PORT": "50x10"}):
        server = _get_server_module()
        result = server.connect("192.0.2.10")
    assert result["connected"] is False
    assert "ANVIZ_PORT" in result["error"]


def test_main_exits_on_bad_timeout_variable():
    server = _get_server_module()
    with patch.dict(os.environ, {"ANVIZ_TIMEOUT": "soon"}):
        with pytest.raises(SystemExit):
            server.main()
    server.mcp.run.assert_not_called()


def test_server_config_from_env():
    server = _get_server_module()
    config = server.ServerConfig.from_env({
        "ANVIZ_HOST": "192.0.2.10",
        "ANVIZ_PORT": "5011",
        "ANVIZ_DEVICE_ID": "9",
        "ANVIZ_TIMEOUT": "2.5",
        "ANVIZ_STRICT_CHECKSUM": "Yes",
        "ANVIZ_LOG_LEVEL": "debug",
    })
    assert config == server.ServerConfig("192.0.2.10", 5011, 9, 2.5, True, "DEBUG")


def test_server_config_defaults():
    server = _get_server_module()
    config = server.ServerConfig.from_env({"ANVIZ_PORT": ""})
    assert config.port == 5010
    assert config.device_id == 5
    assert config.strict_checksum is False


def test_connect_reports_silent_terminal():
    server = _get_server_module()
    dev = MagicMock()
    dev.ping.return_value = False
    dev.device_id = 5

    with patch.object(server, "AnvizDevice", return_value=dev):
        result = server.connect("192.0.2.10")

    assert result["connected"] is True
    assert result["responding"] is False


def test_decoder_bug_is_not_reported_as_bad_argument():
    """Only rejected values become error dicts; other failures propagate."""
    server = _get_server_module()
    dev = MagicMock()
    dev.get_record_info.side_effect = KeyError("total_records")

    with patch.object(server, "_get_device", return_value=dev):
        with pytest.raises(KeyError):
            server.get_record_info()


def test_set_dst_rules_unknown_key():
    server = _get_server_module()
    dev = MagicMock()

    with patch.object(server, "_get_device", return_value=dev):
        result = server.set_dst_rules({"start_moth": 4})

    assert result["error"].startswith("Invalid argument")
    dev.set_dst_rules.assert_not_called()


def test_set_bell_schedule_missing_time():
    server = _get_server_module()
    with patch.object(server, "_get_device", return_value=MagicMock()):
        result = server.set_bell_schedule([{"melody": 1}])
    assert result["error"].startswith("Invalid argument")


def test_connect_uses_device():
    server = _get_server_module()
    dev = MagicMock()
    dev.connected = False
    dev.device_id = 5
    dev.connection.info.host = "192.0.2.10"
    dev.connection.info.port = 5010
    dev.ping.return_value = True

    with patch.object(server, "AnvizDevice", return_value=dev) as device_cls:
        result = server.connect("192.0.2.10")

    assert result["connected"] is True
    assert result["responding"] is True
    assert device_cls.call_args.args[0] == "192.0.2.10"
    dev.connect.assert_called_once()


def test_status_resource_disconnected():
    server = _get_server_module()
    assert json.loads(server.resource_device_status()) == {"connected": False}


def test_catalog_resource_lists_every_command():
    server = _get_server_module()
    data = json.loads(server.resource_command_catalog())
    codes = {entry["code"] for entry in data["commands"]}
    assert "0x38" in codes
    assert len(codes) == 33
    records = next(e for e in data["commands"] if e["code"] == "0x4C")
    assert records["stream"]["record_width"] == 16
