"""
Enumeration definitions for the application.

All enums are defined here to maintain consistency and type safety.
"""
from enum import Enum


class SnmpVersion(str, Enum):
    """
    Supported SNMP protocol versions.

    Only the two community-based variants are implemented; values match
    what callers send on the wire (``"1"`` / ``"2c"``).
    """

    V1 = "1"
    V2C = "2c"

    @property
    def mp_model(self) -> int:
        """pysnmp message processing model: 0 = v1, 1 = v2c."""
        return 0 if self is SnmpVersion.V1 else 1


class DeviceCategory(str, Enum):
    """Coarse infrastructure role derived from sysObjectID / sysDescr."""

    SWITCH = "Switch"
    ROUTER = "Router"
    AP = "AP"
    FIREWALL = "Firewall"
    CONTROLLER = "Controller"
    OTHER = "Other"


class InvalidVlanReason(str, Enum):
    """Why a VLAN observed on a device was not accepted as active."""

    INVALID_RANGE = "Invalid VLAN ID range"
    INACTIVE = "Inactive VLAN (status not 1)"
    OVER_CAP = "Exceeded maximum valid VLAN count (4094)"


class MacDeviceType(str, Enum):
    """Coarse end-host category assigned by the OUI classifier."""

    DESKTOP = "Desktop"
    MOBILE = "Mobile"
    IOT = "IoT"
    SERVER = "Server"
    NETWORK = "Network"


class DiscoveryStatus(str, Enum):
    """
    Overall outcome of a multi-VLAN sweep.

    - SUCCESS: every attempted VLAN walk ran to completion
    - PARTIAL: at least one VLAN failed or hit its wall-clock cap
    """

    SUCCESS = "success"
    PARTIAL = "partial"
