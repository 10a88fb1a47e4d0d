"""Value models for terminal settings and records."""

from .timestamp import DeviceTimestamp
from .staff import StaffMember
from .network import TcpIpConfig
from .schedule import BellSchedule, DstRules
from .record import AttendanceRecord
