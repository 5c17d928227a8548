"""Core module - contains enums and configuration."""
from .enums import (
    DeviceCategory,
    DiscoveryStatus,
    InvalidVlanReason,
    MacDeviceType,
    SnmpVersion,
)
from .config import settings

__all__ = [
    "DeviceCategory",
    "DiscoveryStatus",
    "InvalidVlanReason",
    "MacDeviceType",
    "SnmpVersion",
    "settings",
]
