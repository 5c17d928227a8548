"""Pydantic schemas for discovery results."""
from .discovery import (
    DeviceInfo,
    InvalidVlan,
    MacAddressRecord,
    MacDiscoveryChunk,
    MacDiscoveryResult,
    MacDiscoverySummary,
    RawResponse,
    Vlan,
    VlanDiscoveryResult,
    VlanRawResponses,
)

__all__ = [
    "DeviceInfo",
    "InvalidVlan",
    "MacAddressRecord",
    "MacDiscoveryChunk",
    "MacDiscoveryResult",
    "MacDiscoverySummary",
    "RawResponse",
    "Vlan",
    "VlanDiscoveryResult",
    "VlanRawResponses",
]
